"""Ticket system cog for support ticket management.

チケットシステム機能を提供する Cog。
パネルボタンからチケット作成、クローズ時にトランスクリプトを保存。

機能:
  - /ticket setup: チケット作成パネルを設置
  - /ticket close: チケットクローズ + トランスクリプト保存
  - /ticket closeall: 全チケットを一括クローズ
  - /ticket log: ログチャンネルを設定
  - /ticket limit: 同時オープン上限を設定
  - /ticket category add/remove/list/staff: カテゴリ管理
"""

import contextlib
import logging

import discord
from discord import app_commands
from discord.ext import commands

from src.constants import MAX_TICKET_LIMIT, MIN_TICKET_LIMIT
from src.core.builders import parse_role_id_string
from src.core.validators import validate_category_name, validate_ticket_limit
from src.database.engine import async_session
from src.services.db_service import (
    create_ticket_category,
    delete_ticket_category,
    get_ticket_categories_by_guild,
    get_ticket_category_by_name,
    set_log_channel,
    set_ticket_limit,
    toggle_ticket_category_staff_role,
)
from src.services.ticket_service import (
    close_all_tickets,
    close_ticket,
    is_ticket_channel,
)
from src.ui.ticket_view import (
    CLOSE_MESSAGES,
    TicketCloseView,
    TicketOpenView,
    create_ticket_panel_embed,
)

logger = logging.getLogger(__name__)


class TicketCog(commands.Cog):
    """チケットシステム機能を提供する Cog。"""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        """Cog 読み込み時に永続 View を登録する。

        custom_id が固定なので、Bot 再起動前に送信したボタンもそのまま動作する。
        """
        self.bot.add_view(TicketOpenView())
        self.bot.add_view(TicketCloseView())
        logger.info("Registered ticket persistent views")

    # -------------------------------------------------------------------------
    # スラッシュコマンド
    # -------------------------------------------------------------------------

    ticket_group = app_commands.Group(
        name="ticket",
        description="チケットシステムの管理コマンド",
        default_permissions=discord.Permissions(manage_guild=True),
        guild_only=True,
    )

    category_group = app_commands.Group(
        name="category",
        description="チケットカテゴリの管理",
        parent=ticket_group,
    )

    @ticket_group.command(name="setup", description="チケット作成パネルを設置する")
    @app_commands.describe(
        channel="パネルを送信するチャンネル (省略時は現在のチャンネル)",
        title="パネルのタイトル",
        description="パネルの説明文",
    )
    async def ticket_setup(
        self,
        interaction: discord.Interaction,
        channel: discord.TextChannel | None = None,
        title: str | None = None,
        description: str | None = None,
    ) -> None:
        """チケット作成ボタン付きのパネルを送信する。"""
        target = channel or interaction.channel
        if not isinstance(target, discord.TextChannel):
            await interaction.response.send_message(
                "テキストチャンネルを指定してください。", ephemeral=True
            )
            return

        embed = create_ticket_panel_embed(title, description)
        try:
            await target.send(embed=embed, view=TicketOpenView())
        except discord.HTTPException as e:
            logger.warning("Failed to send ticket panel to %s: %s", target.id, e)
            await interaction.response.send_message(
                "パネルを送信できませんでした。Bot の権限を確認してください。",
                ephemeral=True,
            )
            return

        await interaction.response.send_message(
            f"{target.mention} にチケットパネルを設置しました。", ephemeral=True
        )

    @ticket_group.command(name="close", description="チケットをクローズする")
    @app_commands.describe(reason="クローズ理由")
    async def ticket_close(
        self,
        interaction: discord.Interaction,
        reason: str | None = None,
    ) -> None:
        """チケットチャンネル内でチケットをクローズする。"""
        if not is_ticket_channel(interaction.channel):
            await interaction.response.send_message(
                "このチャンネルはチケットチャンネルではありません。",
                ephemeral=True,
            )
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        result = await close_ticket(
            self.bot,
            interaction.channel,  # type: ignore[arg-type]
            interaction.user,
            reason,
        )
        # チャンネル削除後は返信先がない
        with contextlib.suppress(discord.HTTPException):
            await interaction.followup.send(
                CLOSE_MESSAGES[result.status], ephemeral=True
            )

    @ticket_group.command(name="closeall", description="全てのチケットをクローズする")
    async def ticket_closeall(self, interaction: discord.Interaction) -> None:
        """ギルド内の全チケットを一括でクローズする。"""
        if interaction.guild is None:
            await interaction.response.send_message(
                "サーバー内でのみ使用できます。", ephemeral=True
            )
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        success, failed = await close_all_tickets(
            self.bot, interaction.guild, interaction.user
        )
        message = f"完了しました。成功: `{success}` 件 / 失敗: `{failed}` 件"
        # 実行したチャンネル自体がチケットだった場合
        with contextlib.suppress(discord.HTTPException):
            await interaction.followup.send(message, ephemeral=True)

    @ticket_group.command(name="log", description="クローズログの送信先を設定する")
    @app_commands.describe(channel="ログチャンネル (省略すると解除)")
    async def ticket_log(
        self,
        interaction: discord.Interaction,
        channel: discord.TextChannel | None = None,
    ) -> None:
        """ログチャンネルを設定/解除する。"""
        if interaction.guild is None:
            await interaction.response.send_message(
                "サーバー内でのみ使用できます。", ephemeral=True
            )
            return

        if channel is not None:
            perms = channel.permissions_for(interaction.guild.me)
            if not (perms.send_messages and perms.attach_files):
                await interaction.response.send_message(
                    f"Bot は {channel.mention} にメッセージやファイルを送信できません。",
                    ephemeral=True,
                )
                return

        async with async_session() as session:
            await set_log_channel(
                session,
                str(interaction.guild.id),
                str(channel.id) if channel else None,
            )

        if channel is None:
            await interaction.response.send_message(
                "ログチャンネルを解除しました。", ephemeral=True
            )
        else:
            await interaction.response.send_message(
                f"ログチャンネルを {channel.mention} に設定しました。", ephemeral=True
            )

    @ticket_group.command(name="limit", description="同時オープン上限を設定する")
    @app_commands.describe(limit="同時にオープンできるチケット数")
    async def ticket_limit(
        self,
        interaction: discord.Interaction,
        limit: int,
    ) -> None:
        """同時にオープンできるチケット数の上限を設定する。"""
        if interaction.guild is None:
            await interaction.response.send_message(
                "サーバー内でのみ使用できます。", ephemeral=True
            )
            return

        if not validate_ticket_limit(limit):
            await interaction.response.send_message(
                f"上限は {MIN_TICKET_LIMIT} から {MAX_TICKET_LIMIT} の間で"
                "指定してください。",
                ephemeral=True,
            )
            return

        async with async_session() as session:
            await set_ticket_limit(session, str(interaction.guild.id), limit)

        await interaction.response.send_message(
            f"同時オープン上限を `{limit}` に設定しました。", ephemeral=True
        )

    # -------------------------------------------------------------------------
    # カテゴリ管理
    # -------------------------------------------------------------------------

    @category_group.command(name="add", description="チケットカテゴリを追加する")
    @app_commands.describe(name="カテゴリ名", staff_role="担当スタッフのロール")
    async def category_add(
        self,
        interaction: discord.Interaction,
        name: str,
        staff_role: discord.Role | None = None,
    ) -> None:
        """チケットカテゴリを追加する。"""
        if interaction.guild is None:
            await interaction.response.send_message(
                "サーバー内でのみ使用できます。", ephemeral=True
            )
            return

        name = name.strip()
        if not validate_category_name(name):
            await interaction.response.send_message(
                "カテゴリ名は 1〜100 文字で、`|` を含めることはできません。",
                ephemeral=True,
            )
            return

        guild_id = str(interaction.guild.id)
        async with async_session() as session:
            if await get_ticket_category_by_name(session, guild_id, name):
                await interaction.response.send_message(
                    f"カテゴリ `{name}` は既に存在します。", ephemeral=True
                )
                return
            await create_ticket_category(
                session,
                guild_id,
                name,
                [staff_role.id] if staff_role else None,
            )

        await interaction.response.send_message(
            f"カテゴリ `{name}` を追加しました。", ephemeral=True
        )

    @category_group.command(name="remove", description="チケットカテゴリを削除する")
    @app_commands.describe(name="カテゴリ名")
    async def category_remove(
        self,
        interaction: discord.Interaction,
        name: str,
    ) -> None:
        """チケットカテゴリを削除する。"""
        if interaction.guild is None:
            await interaction.response.send_message(
                "サーバー内でのみ使用できます。", ephemeral=True
            )
            return

        async with async_session() as session:
            deleted = await delete_ticket_category(
                session, str(interaction.guild.id), name
            )

        if deleted:
            message = f"カテゴリ `{name}` を削除しました。"
        else:
            message = f"カテゴリ `{name}` が見つかりません。"
        await interaction.response.send_message(message, ephemeral=True)

    @category_group.command(name="list", description="チケットカテゴリを一覧表示する")
    async def category_list(self, interaction: discord.Interaction) -> None:
        """チケットカテゴリと担当ロールを一覧表示する。"""
        if interaction.guild is None:
            await interaction.response.send_message(
                "サーバー内でのみ使用できます。", ephemeral=True
            )
            return

        async with async_session() as session:
            categories = await get_ticket_categories_by_guild(
                session, str(interaction.guild.id)
            )

        if not categories:
            await interaction.response.send_message(
                "カテゴリは設定されていません。", ephemeral=True
            )
            return

        lines: list[str] = []
        for category in categories:
            role_ids = parse_role_id_string(category.staff_role_ids)
            roles = " ".join(f"<@&{role_id}>" for role_id in role_ids) or "-"
            lines.append(f"- **{category.name}**: {roles}")

        embed = discord.Embed(
            title="Ticket Categories",
            description="\n".join(lines),
            color=discord.Color.blue(),
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @category_group.command(
        name="staff", description="カテゴリの担当ロールを追加/削除する"
    )
    @app_commands.describe(name="カテゴリ名", role="担当スタッフのロール")
    async def category_staff(
        self,
        interaction: discord.Interaction,
        name: str,
        role: discord.Role,
    ) -> None:
        """カテゴリの担当ロールを切り替える。"""
        if interaction.guild is None:
            await interaction.response.send_message(
                "サーバー内でのみ使用できます。", ephemeral=True
            )
            return

        async with async_session() as session:
            category = await get_ticket_category_by_name(
                session, str(interaction.guild.id), name
            )
            if category is None:
                await interaction.response.send_message(
                    f"カテゴリ `{name}` が見つかりません。", ephemeral=True
                )
                return
            added = await toggle_ticket_category_staff_role(session, category, role.id)

        if added:
            message = f"{role.mention} をカテゴリ `{name}` の担当に追加しました。"
        else:
            message = f"{role.mention} をカテゴリ `{name}` の担当から外しました。"
        await interaction.response.send_message(message, ephemeral=True)


async def setup(bot: commands.Bot) -> None:
    """Cog を Bot に追加する。"""
    await bot.add_cog(TicketCog(bot))
