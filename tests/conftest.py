"""Shared pytest fixtures."""

import os

# Set env before any src imports to avoid validation error / file DB creation
os.environ.setdefault("DISCORD_TOKEN", "test-token-for-testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import discord  # noqa: E402
import pytest  # noqa: E402


def make_text_channel(
    channel_id: int = 200,
    name: str = "ticket-alice-1",
    topic: str | None = "ticket|1|Default",
    channel_type: discord.ChannelType = discord.ChannelType.text,
) -> MagicMock:
    """テスト用の TextChannel モックを作成する。"""
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = channel_id
    channel.name = name
    channel.topic = topic
    channel.type = channel_type
    channel.mention = f"<#{channel_id}>"
    channel.send = AsyncMock()
    channel.delete = AsyncMock()
    channel.permissions_for = MagicMock(
        return_value=discord.Permissions(
            manage_channels=True,
            read_message_history=True,
            send_messages=True,
            attach_files=True,
        )
    )
    return channel


def make_guild(
    guild_id: int = 100,
    channels: list[MagicMock] | None = None,
    manage_channels: bool = True,
) -> MagicMock:
    """テスト用の Guild モックを作成する。"""
    guild = MagicMock(spec=discord.Guild)
    guild.id = guild_id
    guild.name = "Test Server"
    guild.icon = None
    guild.channels = channels or []
    guild.default_role = MagicMock(spec=discord.Role, name="@everyone")
    guild.me = MagicMock(spec=discord.Member)
    guild.me.guild_permissions = discord.Permissions(manage_channels=manage_channels)
    guild.me.top_role = MagicMock(spec=discord.Role, name="bot-role")
    guild.get_role = MagicMock(return_value=None)
    guild.get_channel = MagicMock(return_value=None)
    for channel in guild.channels:
        channel.guild = guild
    return guild


def make_user(user_id: int = 1, name: str = "alice") -> MagicMock:
    """テスト用の User モックを作成する。"""
    user = MagicMock(spec=discord.Member)
    user.id = user_id
    user.name = name
    user.mention = f"<@{user_id}>"
    user.send = AsyncMock()
    return user


@pytest.fixture
def guild() -> MagicMock:
    return make_guild()


@pytest.fixture
def user() -> MagicMock:
    return make_user()
