"""Discord bot class."""

import logging

import discord
from discord.ext import commands

from src.database.engine import init_db

logger = logging.getLogger(__name__)

EXTENSIONS = ("src.cogs.ticket",)


class TicketBot(commands.Bot):
    """サポートチケット Bot。"""

    def __init__(self) -> None:
        intents = discord.Intents.default()
        # トランスクリプトにメッセージ本文を含めるため
        intents.message_content = True
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            activity=discord.Game(name="/ticket"),
        )

    async def setup_hook(self) -> None:
        """DB 初期化、Cog 読み込み、スラッシュコマンド同期を行う。"""
        await init_db()

        for extension in EXTENSIONS:
            await self.load_extension(extension)

        synced = await self.tree.sync()
        logger.info("Synced %d application commands", len(synced))

    async def on_ready(self) -> None:
        if self.user is None:
            return
        logger.info(
            "Logged in as %s (%s) in %d guilds",
            self.user,
            self.user.id,
            len(self.guilds),
        )
