"""Read-only view of a guild's ticket configuration.

ハンドラーから使う設定ストア。DB の行をそのまま渡さず、
セッションの外でも安全に扱える不変オブジェクトに変換して返す。
"""

from dataclasses import dataclass, field

from src.config import settings
from src.core.builders import parse_role_id_string
from src.database.engine import async_session
from src.services.db_service import (
    get_ticket_categories_by_guild,
    get_ticket_settings,
)


@dataclass(frozen=True)
class CategoryConfig:
    """カテゴリ名と担当スタッフロール ID。"""

    name: str
    staff_role_ids: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class TicketConfig:
    """ギルドのチケット設定。"""

    log_channel_id: int | None = None
    limit: int = settings.default_ticket_limit
    categories: list[CategoryConfig] = field(default_factory=list)

    def find_category(self, name: str) -> CategoryConfig | None:
        """名前でカテゴリを探す。"""
        for category in self.categories:
            if category.name == name:
                return category
        return None


def _to_channel_id(raw: str | None) -> int | None:
    if raw and raw.isdigit():
        return int(raw)
    return None


async def get_ticket_config(guild_id: int) -> TicketConfig:
    """ギルドのチケット設定を読み込む。

    設定レコードがない場合はデフォルト値 (ログチャンネルなし、
    上限 ``settings.default_ticket_limit``) を返す。DB には書き込まない。

    Args:
        guild_id: Discord ギルド ID

    Returns:
        チケット設定
    """
    async with async_session() as session:
        ticket_settings = await get_ticket_settings(session, str(guild_id))
        categories = await get_ticket_categories_by_guild(session, str(guild_id))

    category_configs = [
        CategoryConfig(
            name=category.name,
            staff_role_ids=parse_role_id_string(category.staff_role_ids),
        )
        for category in categories
    ]

    if ticket_settings is None:
        return TicketConfig(categories=category_configs)

    return TicketConfig(
        log_channel_id=_to_channel_id(ticket_settings.log_channel_id),
        limit=ticket_settings.ticket_limit,
        categories=category_configs,
    )
