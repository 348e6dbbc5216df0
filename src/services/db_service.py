"""Database service functions with side effects.

チケット設定とチケットカテゴリの CRUD 操作を提供する。
各関数は AsyncSession を受け取り、SQL クエリを実行する。

Examples:
    基本的な使い方::

        from src.database.engine import async_session
        from src.services.db_service import get_ticket_settings

        async with async_session() as session:
            ticket_settings = await get_ticket_settings(session, "123456")
            if ticket_settings:
                print(f"Limit: {ticket_settings.ticket_limit}")

See Also:
    - :mod:`src.database.models`: テーブル定義
    - :mod:`src.database.engine`: データベース接続設定
    - :mod:`src.services.settings_service`: Discord 側から使う読み取り API

Notes:
    - 各関数は session.commit() を内部で呼び出す
    - エラー時は session.rollback() を呼び出し元で行う必要がある
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.core.builders import build_role_id_string, parse_role_id_string
from src.database.models import TicketCategory, TicketSettings

# =============================================================================
# TicketSettings (チケット設定) 操作
# =============================================================================


async def get_ticket_settings(
    session: AsyncSession, guild_id: str
) -> TicketSettings | None:
    """ギルドのチケット設定を取得する。"""
    result = await session.execute(
        select(TicketSettings).where(TicketSettings.guild_id == guild_id)
    )
    return result.scalar_one_or_none()


async def get_or_create_ticket_settings(
    session: AsyncSession, guild_id: str
) -> TicketSettings:
    """ギルドのチケット設定を取得し、なければデフォルト値で作成する。"""
    ticket_settings = await get_ticket_settings(session, guild_id)
    if ticket_settings is not None:
        return ticket_settings

    ticket_settings = TicketSettings(
        guild_id=guild_id,
        log_channel_id=None,
        ticket_limit=settings.default_ticket_limit,
    )
    session.add(ticket_settings)
    await session.commit()
    await session.refresh(ticket_settings)
    return ticket_settings


async def set_log_channel(
    session: AsyncSession, guild_id: str, log_channel_id: str | None
) -> TicketSettings:
    """ログチャンネルを設定する。None を渡すと解除。"""
    ticket_settings = await get_or_create_ticket_settings(session, guild_id)
    ticket_settings.log_channel_id = log_channel_id
    await session.commit()
    return ticket_settings


async def set_ticket_limit(
    session: AsyncSession, guild_id: str, ticket_limit: int
) -> TicketSettings:
    """同時オープン上限を設定する。"""
    ticket_settings = await get_or_create_ticket_settings(session, guild_id)
    ticket_settings.ticket_limit = ticket_limit
    await session.commit()
    return ticket_settings


async def delete_ticket_settings(session: AsyncSession, guild_id: str) -> bool:
    """ギルドのチケット設定を削除する。"""
    ticket_settings = await get_ticket_settings(session, guild_id)
    if ticket_settings:
        await session.delete(ticket_settings)
        await session.commit()
        return True
    return False


# =============================================================================
# TicketCategory (チケットカテゴリ) 操作
# =============================================================================


async def create_ticket_category(
    session: AsyncSession,
    guild_id: str,
    name: str,
    staff_role_ids: list[int] | None = None,
) -> TicketCategory:
    """チケットカテゴリを作成する。

    同名カテゴリがある場合は IntegrityError になるので、
    呼び出し側で get_ticket_category_by_name による確認を行うこと。
    """
    category = TicketCategory(
        guild_id=guild_id,
        name=name,
        staff_role_ids=build_role_id_string(staff_role_ids or []),
    )
    session.add(category)
    await session.commit()
    await session.refresh(category)
    return category


async def get_ticket_category_by_name(
    session: AsyncSession, guild_id: str, name: str
) -> TicketCategory | None:
    """カテゴリ名からチケットカテゴリを取得する。"""
    result = await session.execute(
        select(TicketCategory).where(
            TicketCategory.guild_id == guild_id,
            TicketCategory.name == name,
        )
    )
    return result.scalar_one_or_none()


async def get_ticket_categories_by_guild(
    session: AsyncSession, guild_id: str
) -> list[TicketCategory]:
    """サーバーの全チケットカテゴリを作成順に取得する。"""
    result = await session.execute(
        select(TicketCategory)
        .where(TicketCategory.guild_id == guild_id)
        .order_by(TicketCategory.id)
    )
    return list(result.scalars().all())


async def toggle_ticket_category_staff_role(
    session: AsyncSession, category: TicketCategory, role_id: int
) -> bool:
    """カテゴリのスタッフロールを追加/削除する。

    Returns:
        追加した場合 True、削除した場合 False
    """
    role_ids = parse_role_id_string(category.staff_role_ids)
    if role_id in role_ids:
        role_ids.remove(role_id)
        added = False
    else:
        role_ids.append(role_id)
        added = True
    category.staff_role_ids = build_role_id_string(role_ids)
    await session.commit()
    return added


async def delete_ticket_category(
    session: AsyncSession, guild_id: str, name: str
) -> bool:
    """チケットカテゴリを削除する。"""
    category = await get_ticket_category_by_name(session, guild_id, name)
    if category:
        await session.delete(category)
        await session.commit()
        return True
    return False
