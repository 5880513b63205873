#!/usr/bin/env python3
"""
MineBot - Main Entry Point

This script runs the Minecraft Discord bot and its web dashboard. Configure
the bot through environment variables (a .env file is read) or config.json.

Usage:
    python main.py

Environment Variables:
    BOT_TOKEN: Your Discord bot token
    ADMIN_PASSWORD: Password for the /admin dashboard
    UPDATE_CHANNEL_ID: Channel that receives update announcements
    ADMIN_ROLE_ID: Admin role id
    PORT: Dashboard port (default 3000)
"""

import asyncio
import logging
import sys
from pathlib import Path

from minebot.config_manager import ConfigManager


def setup_logging(level: str = 'INFO', log_directory: str = './logs/'):
    """Set up console and file logging."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    log_path = Path(log_directory)

    # Create logs directory
    log_path.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_path / "bot.log", encoding='utf-8')
        ]
    )

    # Errors also go to their own file
    error_handler = logging.FileHandler(log_path / "errors.log", encoding='utf-8')
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logging.getLogger().addHandler(error_handler)

    # Reduce discord.py noise
    logging.getLogger('discord').setLevel(logging.WARNING)
    logging.getLogger('discord.http').setLevel(logging.WARNING)


async def run_bot_with_config():
    """Run the bot with configuration."""
    config_manager = ConfigManager()
    config = config_manager.load()

    setup_logging(config.log_level, config.log_directory)
    config_manager.log_health_check()
    logging.getLogger(__name__).info(config_manager.get_settings_summary())

    # Import and run bot
    from minebot.bot import run_bot
    await run_bot(config.token, config)


if __name__ == "__main__":
    try:
        print("🤖 Starting MineBot...")
        asyncio.run(run_bot_with_config())
    except KeyboardInterrupt:
        print("\n👋 Bot stopped by user")
    except Exception as e:
        print(f"❌ Failed to start bot: {e}")
        sys.exit(1)
