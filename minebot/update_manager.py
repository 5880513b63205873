"""
Update channel operations for the MineBot Discord bot.

Announcements, channel lock/unlock and the start/finish update flow used by
the dashboards and the daily auto-update schedule.
"""
import logging
from datetime import time as dtime
from typing import Any, Awaitable, Callable, List, Optional
from zoneinfo import ZoneInfo

import discord
from discord.ext import tasks

from .config_manager import BotConfig
from .exceptions import ChannelNotFoundError
from .models import UpdateState

logger = logging.getLogger(__name__)

COLOR_UPDATE = 0xFFD700
COLOR_PREMIUM = 0x8B5CF6

AUTO_UPDATE_ENABLED_STATUS = 'Auto Update Enabled ✅'
AUTO_UPDATE_DISABLED_STATUS = 'Auto Update Disabled ❌'

LOG_CLEARING = '🧹 Clearing old messages…'
LOG_CLEARED = '✅ Messages cleared.'
LOG_STARTED = '🚀 Update started, channel locked.'
LOG_FINISHED = '🔓 Update finished, channel unlocked.'

LogListener = Callable[[str], Awaitable[Any]]


def resolve_channel(bot: Any, channel_id: Any) -> Optional[Any]:
    """
    Look up a channel in the bot's cache.

    Returns:
        The channel, or None for a placeholder/non-numeric id or an unknown channel
    """
    try:
        numeric_id = int(channel_id)
    except (TypeError, ValueError):
        logger.warning(f"Channel id {channel_id!r} is not numeric")
        return None
    return bot.get_channel(numeric_id)


async def set_send_permission(channel: Any, allowed: Optional[bool]) -> None:
    """
    Set send_messages for the default role, keeping its other overwrites.

    Args:
        channel: Guild text channel
        allowed: True to allow, False to deny, None to reset to the role default
    """
    everyone = channel.guild.default_role
    overwrite = channel.overwrites_for(everyone)
    overwrite.send_messages = allowed
    await channel.set_permissions(everyone, overwrite=overwrite)


def build_update_embed(message: Optional[str]) -> discord.Embed:
    """Embed for an update posted from the dashboard."""
    embed = discord.Embed(
        title='🔄 Bot Update',
        description=message,
        color=COLOR_UPDATE,
        timestamp=discord.utils.utcnow(),
    )
    embed.set_footer(text='Premium Bot Update System')
    return embed


async def announce(channel: Any, embed: discord.Embed) -> Any:
    """Send an embed that pings @everyone."""
    return await channel.send(
        content='@everyone',
        embed=embed,
        allowed_mentions=discord.AllowedMentions(everyone=True),
    )


class UpdateManager:
    """Runs update announcements and the start/finish update flow on the update channel."""

    def __init__(self, bot: Any, config: BotConfig):
        self.bot = bot
        self.config = config
        self.state = UpdateState()
        self._auto_start_loop: Optional[tasks.Loop] = None
        self._auto_finish_loop: Optional[tasks.Loop] = None
        self._log_listeners: List[LogListener] = []

    def add_log_listener(self, listener: LogListener) -> None:
        """Register a coroutine function that receives each progress line of an update."""
        self._log_listeners.append(listener)

    def remove_log_listener(self, listener: LogListener) -> None:
        if listener in self._log_listeners:
            self._log_listeners.remove(listener)

    async def publish(self, text: str) -> None:
        """Send a progress line to every listener. A failing listener does not stop the update."""
        for listener in list(self._log_listeners):
            try:
                await listener(text)
            except Exception as e:
                logger.warning(f"Update log listener failed: {e}")

    def get_update_channel(self) -> Any:
        """
        Raises:
            ChannelNotFoundError: If the configured channel is not known to the bot
        """
        channel = resolve_channel(self.bot, self.config.update_channel_id)
        if channel is None:
            raise ChannelNotFoundError(f"Update channel {self.config.update_channel_id} not found")
        return channel

    def build_premium_embed(self, title: str, description: str) -> discord.Embed:
        embed = discord.Embed(
            title=f'✨ {title}',
            description=description,
            color=COLOR_PREMIUM,
            timestamp=discord.utils.utcnow(),
        )
        icon_url = self.bot.user.display_avatar.url if self.bot.user else None
        embed.set_author(name='⚡ Minecraft Bot', icon_url=icon_url)
        embed.set_footer(text='🚀 Minecraft Bot | Update System', icon_url=icon_url)
        return embed

    async def post_update(self, message: Optional[str]) -> Any:
        """Post a dashboard update to the update channel. The message is sent as given."""
        channel = self.get_update_channel()
        sent = await announce(channel, build_update_embed(message))
        logger.info(f"Posted update announcement to channel {channel.id}")
        return sent

    async def lock_channel(self) -> None:
        channel = self.get_update_channel()
        await set_send_permission(channel, False)
        logger.info(f"Locked channel {channel.id}")

    async def unlock_channel(self) -> None:
        channel = self.get_update_channel()
        await set_send_permission(channel, True)
        logger.info(f"Unlocked channel {channel.id}")

    async def start_update(self) -> bool:
        """
        Lock the update channel, announce the update and clear older messages.

        Returns:
            False if an update was already running
        """
        if self.state.active:
            logger.info("Start update requested while an update is already active")
            return False

        channel = self.get_update_channel()
        self.state.active = True

        await set_send_permission(channel, False)
        start_message = await announce(channel, self.build_premium_embed(
            '🚀 Bot Update — Starting',
            '⚡ **Minecraft Bot** is upgrading to the **latest version**.\n\n'
            '🔒 Channel locked.\n🕒 Please wait…'
        ))
        self.state.start_message_id = start_message.id
        logger.info(f"Update started in channel {channel.id}")
        await self.publish(LOG_STARTED)

        await self.clear_channel(channel)
        return True

    async def finish_update(self) -> bool:
        """
        Unlock the update channel and announce completion.

        Returns:
            False if no update was running
        """
        if not self.state.active:
            logger.info("Finish update requested while no update is active")
            return False

        channel = self.get_update_channel()
        await set_send_permission(channel, None)
        finish_message = await announce(channel, self.build_premium_embed(
            '✅ Bot Update — Completed',
            '🎉 Update finished successfully!\n\n'
            '🔓 Channel unlocked.\n💎 Enjoy the **new features**!'
        ))
        self.state.finish_message_id = finish_message.id
        self.state.active = False
        logger.info(f"Update finished in channel {channel.id}")
        await self.publish(LOG_FINISHED)
        return True

    async def clear_channel(self, channel: Any) -> int:
        """
        Delete the channel history except the update announcements.

        Errors are logged; the update itself carries on.

        Returns:
            Number of deleted messages
        """
        keep = set(self.state.protected_message_ids())
        logger.info(f"Clearing old messages in channel {channel.id}")
        await self.publish(LOG_CLEARING)
        try:
            deleted = await channel.purge(limit=None, check=lambda m: m.id not in keep)
        except discord.HTTPException as e:
            logger.error(f"Failed to clear channel {channel.id}: {e}")
            await self.publish(f'❌ Error: {e}')
            return 0
        logger.info(f"Cleared {len(deleted)} messages in channel {channel.id}")
        await self.publish(LOG_CLEARED)
        return len(deleted)

    def toggle_auto_update(self) -> str:
        self.state.auto_update_enabled = not self.state.auto_update_enabled
        status = AUTO_UPDATE_ENABLED_STATUS if self.state.auto_update_enabled else AUTO_UPDATE_DISABLED_STATUS
        logger.info(status)
        return status

    def should_suppress(self, message: Any) -> bool:
        """True for messages posted in the update channel while an update is running."""
        if not self.state.active:
            return False
        return str(message.channel.id) == str(self.config.update_channel_id)

    async def suppress(self, message: Any) -> None:
        try:
            await message.delete()
        except discord.HTTPException as e:
            logger.warning(f"Could not delete message {message.id} during update: {e}")

    async def _auto_start(self) -> None:
        if not self.state.auto_update_enabled:
            return
        logger.info("[AUTO] Starting daily update…")
        try:
            await self.start_update()
        except Exception:
            logger.exception("[AUTO] Daily update start failed")

    async def _auto_finish(self) -> None:
        if not self.state.auto_update_enabled:
            return
        logger.info("[AUTO] Finishing daily update…")
        try:
            await self.finish_update()
        except Exception:
            logger.exception("[AUTO] Daily update finish failed")

    def _scheduled_time(self, at: dtime) -> dtime:
        return at.replace(tzinfo=ZoneInfo(self.config.auto_update_timezone))

    def start_schedule(self) -> None:
        """Start the daily start/finish loops in the configured timezone."""
        self._auto_start_loop = tasks.loop(time=self._scheduled_time(self.config.auto_update_start))(self._auto_start)
        self._auto_finish_loop = tasks.loop(time=self._scheduled_time(self.config.auto_update_finish))(self._auto_finish)
        self._auto_start_loop.start()
        self._auto_finish_loop.start()
        logger.info(
            f"Auto update scheduled daily {self.config.auto_update_start:%H:%M}-"
            f"{self.config.auto_update_finish:%H:%M} ({self.config.auto_update_timezone})"
        )

    def stop_schedule(self) -> None:
        for loop in (self._auto_start_loop, self._auto_finish_loop):
            if loop is not None:
                loop.cancel()
