"""Database test fixtures with factory helpers."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from faker import Faker
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from src.constants import DEFAULT_TEST_DATABASE_URL
from src.database.models import Base, TicketCategory
from src.services.db_service import create_ticket_category

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

fake = Faker()

TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    DEFAULT_TEST_DATABASE_URL,
)


def snowflake() -> str:
    """Discord の ID らしい 18 桁の数字文字列を返す。"""
    return str(fake.random_number(digits=18, fix_len=True))


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """テストごとに空のインメモリ DB を用意する。"""
    # StaticPool: インメモリ SQLite を 1 接続で共有する
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def guild_id() -> str:
    return snowflake()


@pytest.fixture
async def category(db_session: AsyncSession, guild_id: str) -> TicketCategory:
    """スタッフロール付きのカテゴリを 1 件作成する。"""
    return await create_ticket_category(
        db_session,
        guild_id,
        fake.word().capitalize(),
        [int(snowflake())],
    )
