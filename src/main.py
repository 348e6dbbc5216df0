"""Entry point for the ticket bot."""

import asyncio
import logging

from src.bot import TicketBot
from src.config import settings


def setup_logging() -> None:
    """ルートロガーを設定する。"""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # discord.py の HTTP ログはノイズが多いので抑える
    logging.getLogger("discord.http").setLevel(logging.WARNING)


async def main() -> None:
    """Run the bot."""
    bot = TicketBot()
    async with bot:
        await bot.start(settings.discord_token)


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
