"""Minecraft trivia Discord bot with update and admin dashboards."""

__version__ = "1.0.0"
