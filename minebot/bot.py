import discord
from discord.ext import commands, tasks
import logging
import math
import time
from typing import Any, Optional, Union

from .catalog import CatalogLoader, ContentCatalog
from .commands import CommandContext, dispatch, is_automated, resolve_command
from .config_manager import BotConfig
from .dashboard import DashboardServer, create_app
from .models import QuizOutcome, QuizQuestion, QuizSession, ReplyPayload
from .quiz_engine import QuizEngine, outcome_message
from .update_manager import UpdateManager

logger = logging.getLogger(__name__)

KEEP_ALIVE_MINUTES = 5


def render_reply(payload: ReplyPayload) -> Union[discord.Embed, str]:
    """Turn a handler's payload into an embed, or plain text when it has no title."""
    if not payload.is_embed:
        return payload.body

    embed = discord.Embed(
        title=payload.title,
        description=payload.body,
        color=payload.color,
        timestamp=discord.utils.utcnow() if payload.timestamp else None,
    )
    for name, value, inline in payload.fields:
        embed.add_field(name=name, value=value, inline=inline)
    if payload.footer:
        embed.set_footer(text=payload.footer)
    return embed


async def send_reply(message: discord.Message, payload: ReplyPayload) -> discord.Message:
    rendered = render_reply(payload)
    if isinstance(rendered, discord.Embed):
        return await message.reply(embed=rendered)
    return await message.reply(rendered)


class MineBot(commands.Bot):
    """Discord bot answering Minecraft prefix commands"""

    def __init__(self, config: BotConfig, catalog: Optional[ContentCatalog] = None):
        intents = discord.Intents.default()
        intents.message_content = True  # Prefix commands need message content
        intents.members = True  # User count for !info

        super().__init__(
            command_prefix=config.prefix,
            intents=intents,
            help_command=None  # !help is answered by the command table
        )

        self.app_config = config
        self.catalog = catalog
        self.quiz_engine = QuizEngine()
        self.update_manager = UpdateManager(self, config)
        self.dashboard: Optional[DashboardServer] = None
        self._ready_at: Optional[float] = None

    async def setup_hook(self):
        """Called when the bot is starting up"""
        try:
            logger.info("Setting up bot components...")

            if self.catalog is None:
                self.catalog = CatalogLoader(self.app_config.catalog_file).load()

            self.dashboard = DashboardServer(
                create_app(self.update_manager, self.app_config),
                self.app_config.port,
            )
            await self.dashboard.start()

            self.keep_alive.start()
            self.update_manager.start_schedule()

            logger.info("Bot setup completed successfully")

        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            raise

    async def on_ready(self):
        """Called when the bot has successfully connected to Discord"""
        if self._ready_at is None:
            self._ready_at = time.monotonic()
        logger.info(f"✅ Bot is online as {self.user}")
        logger.info(f"Bot is in {len(self.guilds)} guilds")
        await self.change_presence(activity=discord.Game(name=f'Minecraft | {self.app_config.prefix}help'))

    async def on_error(self, event, *args, **kwargs):
        """Handle general bot errors"""
        logger.error(f"An error occurred in event {event}", exc_info=True)

    @tasks.loop(minutes=KEEP_ALIVE_MINUTES)
    async def keep_alive(self):
        logger.info("Bot is alive!")

    @property
    def uptime_ms(self) -> int:
        if self._ready_at is None:
            return 0
        return int((time.monotonic() - self._ready_at) * 1000)

    @property
    def api_latency_ms(self) -> int:
        # latency is nan/inf until the first heartbeat
        if not math.isfinite(self.latency):
            return 0
        return round(self.latency * 1000)

    def build_context(self, message: discord.Message) -> CommandContext:
        """Bundle catalog access, sender identity and reply capability for one message."""
        latency = discord.utils.utcnow() - message.created_at

        async def reply(payload: ReplyPayload) -> discord.Message:
            return await send_reply(message, payload)

        def start_quiz(question: QuizQuestion) -> None:
            self.quiz_engine.start_session(
                question,
                user_id=message.author.id,
                channel_id=message.channel.id,
                emit=self.make_quiz_emitter(message.channel),
            )

        return CommandContext(
            catalog=self.catalog,
            author_id=message.author.id,
            channel_id=message.channel.id,
            reply=reply,
            start_quiz=start_quiz,
            prefix=self.app_config.prefix,
            latency_ms=max(0, int(latency.total_seconds() * 1000)),
            api_latency_ms=self.api_latency_ms,
            guild_count=len(self.guilds),
            user_count=len(self.users),
            uptime_ms=self.uptime_ms,
        )

    def make_quiz_emitter(self, channel: Any):
        """Answers are replied to; a timeout is announced to the channel."""
        async def emit(session: QuizSession, answer: Optional[discord.Message]) -> None:
            text = outcome_message(session)
            if session.outcome is QuizOutcome.TIMED_OUT or answer is None:
                await channel.send(text)
            else:
                await answer.reply(text)
        return emit

    async def on_message(self, message: discord.Message):
        if is_automated(message.author):
            return

        if self.update_manager.should_suppress(message):
            await self.update_manager.suppress(message)
            return

        self.quiz_engine.dispatch_message(message)

        command = resolve_command(message.content, self.app_config.prefix)
        if command is None:
            return

        logger.debug(f"Command {command.name!r} from {message.author.id} in {message.channel.id}")
        await dispatch(self.build_context(message), command)

    async def close(self):
        self.quiz_engine.cancel_all()
        self.keep_alive.cancel()
        self.update_manager.stop_schedule()
        if self.dashboard is not None:
            await self.dashboard.stop()
        await super().close()


async def run_bot(token: str, config: BotConfig):
    """Run the bot and its dashboard until it is stopped."""
    bot = MineBot(config)
    async with bot:
        await bot.start(token)
