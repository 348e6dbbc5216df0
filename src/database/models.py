"""SQLAlchemy table definitions.

チケットそのものは DB に保存しない (チャンネルトピックが唯一の保存先)。
ここで扱うのはギルドごとのチケット設定とカテゴリのみ。

Tables:
    - ticket_settings: ギルドごとのログチャンネルと同時オープン上限
    - ticket_categories: カテゴリ名と担当スタッフロール
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all models."""


class TicketSettings(Base):
    """ギルドごとのチケット設定。

    Attributes:
        guild_id: Discord ギルド ID
        log_channel_id: クローズ通知とトランスクリプトの送信先 (未設定なら None)
        ticket_limit: 同時にオープンできるチケット数の上限
    """

    __tablename__ = "ticket_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    guild_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    log_channel_id: Mapped[str | None] = mapped_column(String, nullable=True)
    ticket_limit: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<TicketSettings guild_id={self.guild_id} "
            f"log_channel_id={self.log_channel_id} limit={self.ticket_limit}>"
        )


class TicketCategory(Base):
    """チケットカテゴリ。

    staff_role_ids はカンマ区切りのロール ID 文字列。
    """

    __tablename__ = "ticket_categories"
    __table_args__ = (
        UniqueConstraint("guild_id", "name", name="uq_ticket_category_guild_name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    guild_id: Mapped[str] = mapped_column(String, index=True)
    name: Mapped[str] = mapped_column(String)
    staff_role_ids: Mapped[str] = mapped_column(String, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<TicketCategory guild_id={self.guild_id} name={self.name!r}>"
