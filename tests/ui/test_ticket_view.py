"""Tests for ticket UI components."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from src.services.settings_service import CategoryConfig, TicketConfig
from src.services.ticket_service import CloseResult, CloseStatus
from src.ui.ticket_view import (
    CLOSE_MESSAGES,
    TicketCategorySelect,
    TicketCategorySelectView,
    TicketCloseButton,
    TicketCloseView,
    TicketOpenButton,
    TicketOpenView,
    create_ticket_panel_embed,
    create_ticket_welcome_embed,
    handle_ticket_close,
    handle_ticket_open,
)
from tests.conftest import make_guild, make_text_channel, make_user

# =============================================================================
# Helper factories
# =============================================================================


def _make_interaction(
    guild: MagicMock | None = None,
    user: MagicMock | None = None,
    channel: MagicMock | None = None,
) -> MagicMock:
    """テスト用の Interaction モックを作成する。"""
    interaction = MagicMock(spec=discord.Interaction)
    interaction.guild = guild if guild is not None else make_guild()
    interaction.user = user or make_user()
    interaction.channel = channel or make_text_channel(
        channel_id=300, name="support", topic=None
    )
    interaction.client = MagicMock(spec=discord.Client)
    interaction.response = AsyncMock()
    interaction.followup = AsyncMock()
    interaction.edit_original_response = AsyncMock()
    return interaction


def _make_created_channel() -> MagicMock:
    return make_text_channel(channel_id=777, name="ticket-alice-1")


def _patch_config(config: TicketConfig) -> object:
    return patch(
        "src.ui.ticket_view.get_ticket_config",
        new_callable=AsyncMock,
        return_value=config,
    )


# =============================================================================
# Embed
# =============================================================================


class TestEmbeds:
    """Embed 作成のテスト。"""

    def test_panel_embed_defaults(self) -> None:
        embed = create_ticket_panel_embed()

        assert embed.title == "Support Ticket"
        assert embed.description

    def test_panel_embed_custom(self) -> None:
        embed = create_ticket_panel_embed("Help", "Click")

        assert embed.title == "Help"
        assert embed.description == "Click"

    def test_welcome_embed_with_category(self) -> None:
        embed = create_ticket_welcome_embed(make_user(), 3, "VIP")

        assert embed.author.name == "Ticket #3"
        assert "<@1>" in (embed.description or "")
        assert "**Category:** VIP" in (embed.description or "")

    def test_welcome_embed_without_category(self) -> None:
        embed = create_ticket_welcome_embed(make_user(), 1, None)

        assert "Category" not in (embed.description or "")


# =============================================================================
# handle_ticket_open
# =============================================================================


class TestHandleTicketOpen:
    """handle_ticket_open のテスト。"""

    async def test_missing_manage_channels(self) -> None:
        guild = make_guild(manage_channels=False)
        interaction = _make_interaction(guild=guild)

        with _patch_config(TicketConfig()) as mock_config:
            await handle_ticket_open(interaction)

        interaction.response.defer.assert_awaited_once_with(
            ephemeral=True, thinking=True
        )
        assert "チャンネルの管理" in interaction.followup.send.await_args.args[0]
        guild.create_text_channel.assert_not_called()
        mock_config.assert_not_awaited()

    async def test_already_has_ticket(self) -> None:
        existing = make_text_channel(channel_id=5, topic="ticket|1|Default")
        guild = make_guild(channels=[existing])
        interaction = _make_interaction(guild=guild, user=make_user(user_id=1))

        with _patch_config(TicketConfig()):
            await handle_ticket_open(interaction)

        assert "<#5>" in interaction.followup.send.await_args.args[0]
        guild.create_text_channel.assert_not_called()

    async def test_limit_reached(self) -> None:
        """上限に達している場合はチャンネルを作成しない。"""
        tickets = [
            make_text_channel(channel_id=i, topic=f"ticket|{i + 100}|Default")
            for i in range(2)
        ]
        guild = make_guild(channels=tickets)
        guild.create_text_channel = AsyncMock()
        interaction = _make_interaction(guild=guild)

        with _patch_config(TicketConfig(limit=2)):
            await handle_ticket_open(interaction)

        guild.create_text_channel.assert_not_awaited()
        interaction.response.defer.assert_awaited_once()
        interaction.followup.send.assert_awaited_once()
        interaction.edit_original_response.assert_not_awaited()

    async def test_without_categories(self) -> None:
        """カテゴリなしの場合はメニューを出さず Default で作成する。"""
        other = make_text_channel(channel_id=9, topic="ticket|99|Default")
        guild = make_guild(channels=[other])
        created = _make_created_channel()
        guild.create_text_channel = AsyncMock(return_value=created)
        user = make_user(user_id=1, name="alice")
        interaction = _make_interaction(guild=guild, user=user)

        with (
            _patch_config(TicketConfig(limit=10)),
            patch("src.ui.ticket_view.TicketCategorySelectView") as mock_view_class,
        ):
            await handle_ticket_open(interaction)

        mock_view_class.assert_not_called()
        kwargs = guild.create_text_channel.await_args.kwargs
        assert kwargs["name"] == "ticket-alice-2"
        assert kwargs["topic"] == "ticket|1|Default"
        overwrites = kwargs["overwrites"]
        assert overwrites[guild.default_role].view_channel is False
        assert overwrites[user].view_channel is True
        assert overwrites[guild.me.top_role].view_channel is True

        send_kwargs = created.send.await_args.kwargs
        assert send_kwargs["content"] == "<@1>"
        assert isinstance(send_kwargs["view"], TicketCloseView)
        assert send_kwargs["view"].children[0].custom_id == "TICKET_CLOSE"

        interaction.edit_original_response.assert_awaited_once()
        assert "<#777>" in interaction.edit_original_response.await_args.kwargs[
            "content"
        ]

    async def test_with_category_selection(self) -> None:
        guild = make_guild()
        staff_role = MagicMock(spec=discord.Role)
        guild.get_role = MagicMock(
            side_effect=lambda rid: staff_role if rid == 50 else None
        )
        created = _make_created_channel()
        guild.create_text_channel = AsyncMock(return_value=created)
        interaction = _make_interaction(guild=guild, user=make_user(user_id=1))
        config = TicketConfig(
            categories=[
                CategoryConfig(name="General"),
                CategoryConfig(name="VIP", staff_role_ids=[50, 51]),
            ]
        )

        mock_view = MagicMock()
        mock_view.wait = AsyncMock(return_value=False)
        mock_view.selected = "VIP"
        with (
            _patch_config(config),
            patch(
                "src.ui.ticket_view.TicketCategorySelectView",
                return_value=mock_view,
            ) as mock_view_class,
        ):
            await handle_ticket_open(interaction)

        assert mock_view_class.call_args.args[0] == config.categories
        assert mock_view_class.call_args.kwargs["timeout"] == 60.0
        assert interaction.followup.send.await_args.kwargs["view"] is mock_view
        kwargs = guild.create_text_channel.await_args.kwargs
        assert kwargs["topic"] == "ticket|1|VIP"
        assert staff_role in kwargs["overwrites"]
        assert len(kwargs["overwrites"]) == 4
        welcome = created.send.await_args.kwargs["embed"]
        assert "**Category:** VIP" in (welcome.description or "")

    async def test_category_selection_timeout(self) -> None:
        """タイムアウト時はチャンネルを作成せずメッセージを書き換える。"""
        guild = make_guild()
        guild.create_text_channel = AsyncMock()
        interaction = _make_interaction(guild=guild)

        mock_view = MagicMock()
        mock_view.wait = AsyncMock(return_value=True)
        mock_view.selected = None
        with (
            _patch_config(TicketConfig(categories=[CategoryConfig(name="VIP")])),
            patch(
                "src.ui.ticket_view.TicketCategorySelectView",
                return_value=mock_view,
            ),
        ):
            await handle_ticket_open(interaction)

        guild.create_text_channel.assert_not_awaited()
        kwargs = interaction.edit_original_response.await_args.kwargs
        assert "タイムアウト" in kwargs["content"]
        assert kwargs["view"] is None

    async def test_create_failure(self) -> None:
        """チャンネル作成に失敗した場合は汎用エラーを返す。"""
        guild = make_guild()
        guild.create_text_channel = AsyncMock(side_effect=RuntimeError("boom"))
        interaction = _make_interaction(guild=guild)

        with _patch_config(TicketConfig()):
            await handle_ticket_open(interaction)

        content = interaction.edit_original_response.await_args.kwargs["content"]
        assert "失敗" in content

    async def test_no_guild(self) -> None:
        interaction = _make_interaction()
        interaction.guild = None

        await handle_ticket_open(interaction)

        interaction.followup.send.assert_awaited_once()


# =============================================================================
# handle_ticket_close
# =============================================================================


class TestHandleTicketClose:
    """handle_ticket_close のテスト。"""

    @pytest.mark.parametrize(
        "status",
        [CloseStatus.SUCCESS, CloseStatus.MISSING_PERMISSIONS, CloseStatus.ERROR],
    )
    async def test_maps_status_to_message(self, status: CloseStatus) -> None:
        channel = make_text_channel()
        interaction = _make_interaction(channel=channel)

        with patch(
            "src.ui.ticket_view.close_ticket",
            new_callable=AsyncMock,
            return_value=CloseResult(status=status),
        ) as mock_close:
            await handle_ticket_close(interaction)

        mock_close.assert_awaited_once_with(
            interaction.client, channel, interaction.user
        )
        interaction.followup.send.assert_awaited_once_with(
            CLOSE_MESSAGES[status], ephemeral=True
        )

    async def test_reply_failure_after_delete_is_ignored(self) -> None:
        interaction = _make_interaction(channel=make_text_channel())
        response = MagicMock()
        response.status = 404
        response.reason = "Not Found"
        interaction.followup.send.side_effect = discord.NotFound(response, "gone")

        with patch(
            "src.ui.ticket_view.close_ticket",
            new_callable=AsyncMock,
            return_value=CloseResult(status=CloseStatus.SUCCESS),
        ):
            await handle_ticket_close(interaction)

    async def test_non_text_channel(self) -> None:
        interaction = _make_interaction()
        interaction.channel = MagicMock(spec=discord.Thread)

        with patch(
            "src.ui.ticket_view.close_ticket", new_callable=AsyncMock
        ) as mock_close:
            await handle_ticket_close(interaction)

        mock_close.assert_not_awaited()


# =============================================================================
# View / components
# =============================================================================


class TestViews:
    """View とコンポーネントのテスト。"""

    async def test_open_view_is_persistent(self) -> None:
        view = TicketOpenView()

        assert view.timeout is None
        assert view.is_persistent()
        assert view.children[0].custom_id == "TICKET_CREATE"

    async def test_close_view_is_persistent(self) -> None:
        view = TicketCloseView()

        assert view.timeout is None
        assert view.is_persistent()
        button = view.children[0]
        assert button.custom_id == "TICKET_CLOSE"
        assert button.label == "Close Ticket"

    async def test_open_button_delegates(self) -> None:
        button = TicketOpenButton()
        interaction = _make_interaction()

        with patch(
            "src.ui.ticket_view.handle_ticket_open", new_callable=AsyncMock
        ) as mock_handler:
            await button.callback(interaction)

        mock_handler.assert_awaited_once_with(interaction)

    async def test_close_button_delegates(self) -> None:
        button = TicketCloseButton()
        interaction = _make_interaction()

        with patch(
            "src.ui.ticket_view.handle_ticket_close", new_callable=AsyncMock
        ) as mock_handler:
            await button.callback(interaction)

        mock_handler.assert_awaited_once_with(interaction)

    async def test_category_select_options(self) -> None:
        view = TicketCategorySelectView(
            [CategoryConfig(name="General"), CategoryConfig(name="VIP")],
            user_id=1,
        )

        select = view.children[0]
        assert isinstance(select, TicketCategorySelect)
        assert select.custom_id == "ticket-menu"
        assert [o.value for o in select.options] == ["General", "VIP"]
        assert view.timeout == 60.0

    async def test_category_select_callback_stops_view(self) -> None:
        view = TicketCategorySelectView([CategoryConfig(name="VIP")], user_id=1)
        select = view.children[0]
        assert isinstance(select, TicketCategorySelect)
        select._values = ["VIP"]  # type: ignore[attr-defined]
        interaction = _make_interaction()

        await select.callback(interaction)

        assert view.selected == "VIP"
        assert view.is_finished()
        interaction.response.defer.assert_awaited_once()

    async def test_category_select_only_for_invoker(self) -> None:
        view = TicketCategorySelectView([CategoryConfig(name="VIP")], user_id=1)

        assert await view.interaction_check(
            _make_interaction(user=make_user(user_id=1))
        )
        assert not await view.interaction_check(
            _make_interaction(user=make_user(user_id=2))
        )
