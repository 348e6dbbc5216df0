"""Ticket system UI components.

チケットシステム用の UI コンポーネント。
パネルのボタン、カテゴリ選択メニュー、チケット内のクローズボタンを提供する。

UI の構成:
  - TicketOpenView: パネルの「チケット作成」ボタン (永続 View)
  - TicketCategorySelectView: カテゴリ選択メニュー (60 秒でタイムアウト)
  - TicketCloseView: チケットチャンネル内のクローズボタン (永続 View)

custom_id は既存メッセージとの互換性のため固定:
  - TICKET_CREATE / TICKET_CLOSE / ticket-menu
"""

import contextlib
import logging
from typing import Any

import discord

from src.config import settings
from src.constants import (
    DEFAULT_EMBED_COLOR,
    DEFAULT_TICKET_CATEGORY,
    TICKET_CLOSE_CUSTOM_ID,
    TICKET_CREATE_CUSTOM_ID,
    TICKET_MENU_CUSTOM_ID,
)
from src.core.builders import build_category_options, build_ticket_channel_name
from src.core.permissions import build_ticket_overwrites, has_open_permissions
from src.core.ticket_topic import TicketTopic
from src.services.settings_service import (
    CategoryConfig,
    TicketConfig,
    get_ticket_config,
)
from src.services.ticket_service import (
    CloseStatus,
    close_ticket,
    get_existing_ticket_channel,
    get_ticket_channels,
)

logger = logging.getLogger(__name__)

# クローズ結果 → ユーザー向けメッセージ
CLOSE_MESSAGES: dict[CloseStatus, str] = {
    CloseStatus.SUCCESS: "チケットをクローズしました。",
    CloseStatus.MISSING_PERMISSIONS: (
        "チケットをクローズできませんでした。"
        "Bot に `チャンネルの管理` 権限がありません。"
    ),
    CloseStatus.ERROR: "チケットをクローズできませんでした。エラーが発生しました。",
}


# =============================================================================
# ヘルパー関数
# =============================================================================


def create_ticket_panel_embed(
    title: str | None = None,
    description: str | None = None,
) -> discord.Embed:
    """チケットパネルの Embed を作成する。"""
    return discord.Embed(
        title=title or "Support Ticket",
        description=description
        or "下のボタンをクリックしてチケットを作成してください。",
        color=DEFAULT_EMBED_COLOR,
    )


def create_ticket_welcome_embed(
    user: discord.abc.User,
    ticket_number: int,
    category_name: str | None,
) -> discord.Embed:
    """チケット開始時の Embed を作成する。

    Args:
        user: チケット作成者
        ticket_number: チケット番号
        category_name: 選択されたカテゴリ (カテゴリなしの場合は None)

    Returns:
        チケット開始 Embed
    """
    description = f"こんにちは {user.mention} さん\nまもなくスタッフが対応します。"
    if category_name:
        description += f"\n\n**Category:** {category_name}"

    embed = discord.Embed(description=description, color=DEFAULT_EMBED_COLOR)
    embed.set_author(name=f"Ticket #{ticket_number}")
    embed.set_footer(text="下のボタンからいつでもチケットをクローズできます")
    return embed


# =============================================================================
# ハンドラー
# =============================================================================


async def _select_category(
    interaction: discord.Interaction,
    config: TicketConfig,
) -> CategoryConfig | None:
    """カテゴリ選択メニューを表示して選択を待つ。

    Returns:
        選択されたカテゴリ。タイムアウト時は None
    """
    view = TicketCategorySelectView(
        config.categories,
        user_id=interaction.user.id,
        timeout=settings.category_select_timeout,
    )
    await interaction.followup.send(
        "チケットのカテゴリを選択してください。", view=view, ephemeral=True
    )
    timed_out = await view.wait()
    if timed_out or view.selected is None:
        await interaction.edit_original_response(
            content="タイムアウトしました。もう一度お試しください。", view=None
        )
        return None

    await interaction.edit_original_response(content="処理中...", view=None)
    return config.find_category(view.selected) or CategoryConfig(name=view.selected)


async def handle_ticket_open(interaction: discord.Interaction) -> None:
    """チケット作成ボタンの処理。

    権限・重複・上限を確認し、必要ならカテゴリを選ばせてから
    プライベートなチケットチャンネルを作成する。
    """
    await interaction.response.defer(ephemeral=True, thinking=True)
    guild = interaction.guild
    user = interaction.user
    if guild is None:
        await interaction.followup.send(
            "サーバー内でのみ使用できます。", ephemeral=True
        )
        return

    if not has_open_permissions(guild.me.guild_permissions):
        await interaction.followup.send(
            "チケットチャンネルを作成できません。Bot に `チャンネルの管理` "
            "権限がありません。サーバー管理者に連絡してください。",
            ephemeral=True,
        )
        return

    existing_channel = get_existing_ticket_channel(guild, user.id)
    if existing_channel is not None:
        await interaction.followup.send(
            f"既にオープン中のチケットがあります: {existing_channel.mention}",
            ephemeral=True,
        )
        return

    config = await get_ticket_config(guild.id)

    existing = len(get_ticket_channels(guild))
    if existing >= config.limit:
        await interaction.followup.send(
            "オープン中のチケットが多すぎます。しばらくしてからもう一度お試しください。",
            ephemeral=True,
        )
        return

    category: CategoryConfig | None = None
    if config.categories:
        category = await _select_category(interaction, config)
        if category is None:
            return

    try:
        ticket_number = existing + 1
        topic = TicketTopic(
            owner_id=str(user.id),
            category=category.name if category else DEFAULT_TICKET_CATEGORY,
        )
        overwrites = build_ticket_overwrites(
            guild, user, category.staff_role_ids if category else None
        )

        channel = await guild.create_text_channel(
            name=build_ticket_channel_name(user.name, ticket_number),
            topic=topic.encode(),
            overwrites=overwrites,  # type: ignore[arg-type]
            reason=f"Ticket #{ticket_number} by {user.name}",
        )

        embed = create_ticket_welcome_embed(
            user, ticket_number, category.name if category else None
        )
        await channel.send(content=user.mention, embed=embed, view=TicketCloseView())

        logger.info(
            "Created ticket %s (%s) for user %s in guild %s",
            channel.name,
            channel.id,
            user.id,
            guild.id,
        )
        await interaction.edit_original_response(
            content=f"チケットを作成しました: {channel.mention}"
        )
    except Exception:
        logger.exception(
            "Failed to create ticket channel (guild=%s, user=%s)", guild.id, user.id
        )
        with contextlib.suppress(discord.HTTPException):
            await interaction.edit_original_response(
                content="チケットチャンネルの作成に失敗しました。エラーが発生しました。",
                view=None,
            )


async def handle_ticket_close(interaction: discord.Interaction) -> None:
    """クローズボタンの処理。"""
    await interaction.response.defer(ephemeral=True, thinking=True)
    if not isinstance(interaction.channel, discord.TextChannel):
        await interaction.followup.send(
            "このチャンネルではこの操作を実行できません。", ephemeral=True
        )
        return

    result = await close_ticket(
        interaction.client, interaction.channel, interaction.user
    )
    # チャンネルは削除済みの場合があるので返信の失敗は無視する
    with contextlib.suppress(discord.HTTPException):
        await interaction.followup.send(CLOSE_MESSAGES[result.status], ephemeral=True)


# =============================================================================
# TicketOpenView (パネルボタン)
# =============================================================================


class TicketOpenButton(discord.ui.Button[Any]):
    """チケット作成ボタン。

    custom_id: TICKET_CREATE
    """

    def __init__(self) -> None:
        super().__init__(
            label="Open Ticket",
            emoji="\U0001f3ab",
            style=discord.ButtonStyle.success,
            custom_id=TICKET_CREATE_CUSTOM_ID,
        )

    async def callback(self, interaction: discord.Interaction) -> None:
        await handle_ticket_open(interaction)


class TicketOpenView(discord.ui.View):
    """チケットパネルの View (永続)。

    timeout=None で Bot 再起動後もボタンが動作する。
    """

    def __init__(self) -> None:
        super().__init__(timeout=None)
        self.add_item(TicketOpenButton())


# =============================================================================
# TicketCategorySelectView (カテゴリ選択)
# =============================================================================


class TicketCategorySelect(discord.ui.Select[Any]):
    """カテゴリ選択メニュー。

    custom_id: ticket-menu
    """

    def __init__(self, categories: list[CategoryConfig]) -> None:
        options = [
            discord.SelectOption(label=label, value=value)
            for label, value in build_category_options([c.name for c in categories])
        ]
        super().__init__(
            custom_id=TICKET_MENU_CUSTOM_ID,
            placeholder="チケットのカテゴリを選択",
            min_values=1,
            max_values=1,
            options=options,
        )

    async def callback(self, interaction: discord.Interaction) -> None:
        view = self.view
        if not isinstance(view, TicketCategorySelectView):
            return
        view.selected = self.values[0]
        await interaction.response.defer()
        view.stop()


class TicketCategorySelectView(discord.ui.View):
    """カテゴリ選択メニューの View。

    チケットを作成しようとしているユーザー以外の操作は受け付けない。
    """

    def __init__(
        self,
        categories: list[CategoryConfig],
        user_id: int,
        timeout: float | None = 60.0,
    ) -> None:
        super().__init__(timeout=timeout)
        self.user_id = user_id
        self.selected: str | None = None
        self.add_item(TicketCategorySelect(categories))

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return interaction.user.id == self.user_id


# =============================================================================
# TicketCloseView (チケット内操作ボタン)
# =============================================================================


class TicketCloseButton(discord.ui.Button[Any]):
    """チケットクローズボタン。

    custom_id: TICKET_CLOSE
    """

    def __init__(self) -> None:
        super().__init__(
            label="Close Ticket",
            emoji="\U0001f512",
            style=discord.ButtonStyle.primary,
            custom_id=TICKET_CLOSE_CUSTOM_ID,
        )

    async def callback(self, interaction: discord.Interaction) -> None:
        await handle_ticket_close(interaction)


class TicketCloseView(discord.ui.View):
    """チケットチャンネル内のクローズボタン View (永続)。"""

    def __init__(self) -> None:
        super().__init__(timeout=None)
        self.add_item(TicketCloseButton())
