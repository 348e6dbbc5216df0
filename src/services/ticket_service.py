"""Ticket channel lookup, close and bulk close.

チケットはチャンネルトピック ``ticket|<ownerUserId>|<categoryName>`` でのみ
識別される。ここではキャッシュ済みのギルド情報からチケットを探し、
クローズ (トランスクリプト保存 → チャンネル削除 → 通知) を行う。

クローズ処理の流れ:
  1. Bot の権限チェック (不足なら何もせず MISSING_PERMISSIONS)
  2. 設定とトピックの読み込み
  3. HTML トランスクリプトの生成 (失敗したらチャンネルを削除せず ERROR)
  4. ログチャンネルへのトランスクリプト送信 (添付 URL を取得)
  5. チャンネル削除
  6. サマリー Embed をログチャンネルと作成者の DM に送信

4 と 6 の送信失敗はクローズ結果に影響しない (ベストエフォート)。
"""

import contextlib
import io
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

import chat_exporter
import discord

from src.config import settings
from src.constants import CLOSE_ALL_REASON, TICKET_CHANNEL_PREFIX
from src.core.builders import build_transcript_filename
from src.core.permissions import has_close_permissions
from src.core.ticket_topic import TicketTopic, get_topic_owner_id, is_ticket_topic
from src.services.settings_service import get_ticket_config

logger = logging.getLogger(__name__)

# chat_exporter が生成失敗時に返す HTML
TRANSCRIPT_EXPORT_FAILED = "Whoops! Something went wrong..."


class CloseStatus(StrEnum):
    """チケットクローズの結果コード。"""

    SUCCESS = "SUCCESS"
    MISSING_PERMISSIONS = "MISSING_PERMISSIONS"
    ERROR = "ERROR"


class DeliveryOutcome(StrEnum):
    """ベストエフォート送信 (DM) の結果。"""

    SENT = "SENT"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class CloseResult:
    """close_ticket の戻り値。"""

    status: CloseStatus
    transcript_url: str | None = None
    dm: DeliveryOutcome = DeliveryOutcome.SKIPPED


@dataclass(frozen=True)
class TicketDetails:
    """トピックから復元したチケット情報。

    user はユーザー取得に失敗した場合 None。
    """

    user: discord.User | None
    category: str


@dataclass(frozen=True)
class Transcript:
    """生成済みの HTML トランスクリプト。

    discord.File は送信後に閉じられるため、送信ごとに to_file() で作り直す。
    """

    content: bytes
    filename: str

    def to_file(self) -> discord.File:
        return discord.File(io.BytesIO(self.content), filename=self.filename)


# =============================================================================
# 判定・検索
# =============================================================================


def is_ticket_channel(channel: object) -> bool:
    """チャンネルがチケットチャンネルかどうかを返す。

    テキストチャンネルで、名前が ``ticket-`` で始まり、
    トピックが ``ticket|`` で始まるものだけをチケットとみなす。
    """
    if getattr(channel, "type", None) != discord.ChannelType.text:
        return False
    name = getattr(channel, "name", None) or ""
    if not name.startswith(TICKET_CHANNEL_PREFIX):
        return False
    return is_ticket_topic(getattr(channel, "topic", None))


def get_ticket_channels(guild: discord.Guild) -> dict[int, discord.TextChannel]:
    """ギルドのキャッシュから全チケットチャンネルを取得する。

    Returns:
        チャンネル ID → チャンネルの辞書
    """
    return {
        channel.id: channel  # type: ignore[misc]
        for channel in guild.channels
        if is_ticket_channel(channel)
    }


def get_existing_ticket_channel(
    guild: discord.Guild, user_id: int | str
) -> discord.TextChannel | None:
    """ユーザーが所有するチケットチャンネルを返す。なければ None。"""
    owner_id = str(user_id)
    for channel in get_ticket_channels(guild).values():
        if get_topic_owner_id(channel.topic) == owner_id:
            return channel
    return None


async def parse_ticket_details(
    client: discord.Client, channel: discord.TextChannel
) -> TicketDetails | None:
    """チャンネルトピックからチケット情報を取得する。

    ユーザーはキャッシュを使わず API から取得する。
    取得に失敗した場合も category は返す。

    Args:
        client: Bot クライアント
        channel: チケットチャンネル

    Returns:
        チケット情報。トピックがない場合は None
    """
    topic = TicketTopic.parse(channel.topic)
    if topic is None:
        return None

    user: discord.User | None = None
    try:
        user = await client.fetch_user(int(topic.owner_id))
    except (ValueError, discord.HTTPException) as e:
        logger.warning(
            "Failed to fetch ticket owner %r for channel %s: %s",
            topic.owner_id,
            channel.id,
            e,
        )

    return TicketDetails(user=user, category=topic.category)


# =============================================================================
# トランスクリプト
# =============================================================================


class TranscriptExportError(Exception):
    """トランスクリプトを生成できなかった。"""


async def export_transcript(
    client: discord.Client, channel: discord.TextChannel
) -> Transcript:
    """チャンネルの全履歴から HTML トランスクリプトを生成する。

    Raises:
        TranscriptExportError: 生成に失敗した場合
    """
    html = await chat_exporter.export(
        channel,
        limit=None,
        tz_info="UTC",
        bot=client,
    )
    # chat_exporter は内部エラーを握りつぶして固定文字列を返す
    if not html or html == TRANSCRIPT_EXPORT_FAILED:
        raise TranscriptExportError(f"Transcript export failed for {channel.id}")
    return Transcript(
        content=html.encode("utf-8"),
        filename=build_transcript_filename(channel.name),
    )


# =============================================================================
# Embed
# =============================================================================


def create_close_summary_embed(
    channel_name: str,
    transcript_url: str | None,
    opened_by: discord.abc.User | None,
    closed_by: discord.abc.User | None,
    closed_at: datetime | None = None,
) -> discord.Embed:
    """クローズ時のサマリー Embed を作成する。

    Args:
        channel_name: チケットチャンネル名
        transcript_url: ログチャンネルに添付したトランスクリプトの URL
        opened_by: チケット作成者 (不明なら None)
        closed_by: クローズしたユーザー (不明なら None)
        closed_at: クローズ日時 (省略時は現在時刻)

    Returns:
        サマリー Embed
    """
    closed_at = closed_at or datetime.now(UTC)
    embed = discord.Embed(color=settings.close_embed_color)
    embed.set_author(name="Ticket Closed")
    embed.add_field(name="Ticket Name", value=channel_name, inline=False)
    embed.add_field(
        name="Transcript",
        value=f"[View Transcript]({transcript_url})"
        if transcript_url
        else "Not available",
        inline=False,
    )
    embed.add_field(
        name="Closed At", value=discord.utils.format_dt(closed_at, "R"), inline=False
    )
    embed.add_field(
        name="Opened By",
        value=opened_by.name if opened_by else "Unknown",
        inline=False,
    )
    embed.add_field(
        name="Closed By",
        value=closed_by.name if closed_by else "Unknown",
        inline=False,
    )
    return embed


def create_close_dm_embed(
    summary: discord.Embed, guild: discord.Guild, category: str
) -> discord.Embed:
    """作成者への DM 用にサマリー Embed を拡張したコピーを返す。"""
    embed = summary.copy()
    embed.description = f"**Server:** {guild.name}\n**Category:** {category}"
    embed.set_thumbnail(url=guild.icon.url if guild.icon else None)
    return embed


# =============================================================================
# クローズ
# =============================================================================


def _resolve_log_channel(
    guild: discord.Guild, log_channel_id: int | None
) -> discord.abc.Messageable | None:
    if log_channel_id is None:
        return None
    channel = guild.get_channel(log_channel_id)
    if channel is None:
        logger.warning(
            "Log channel %s not found in guild %s", log_channel_id, guild.id
        )
        return None
    return channel  # type: ignore[return-value]


async def _archive_transcript(
    log_channel: discord.abc.Messageable, transcript: Transcript
) -> str | None:
    """ログチャンネルにトランスクリプトを送り、添付ファイルの URL を返す。"""
    try:
        message = await log_channel.send(file=transcript.to_file())
    except discord.HTTPException as e:
        logger.warning("Failed to archive transcript %s: %s", transcript.filename, e)
        return None
    if message.attachments:
        return message.attachments[0].url
    return None


async def _notify_owner(
    user: discord.User,
    embed: discord.Embed,
    transcript: Transcript | None,
) -> DeliveryOutcome:
    """作成者に DM を送る。DM が閉じられていても失敗扱いで続行する。"""
    files = [transcript.to_file()] if transcript else []
    try:
        await user.send(embed=embed, files=files)
    except discord.HTTPException as e:
        logger.info("Could not DM ticket owner %s: %s", user.id, e)
        return DeliveryOutcome.FAILED
    return DeliveryOutcome.SENT


async def close_ticket(
    client: discord.Client,
    channel: discord.TextChannel,
    closed_by: discord.abc.User | None,
    reason: str | None = None,
) -> CloseResult:
    """チケットをクローズする。

    Args:
        client: Bot クライアント
        channel: チケットチャンネル
        closed_by: クローズしたユーザー
        reason: 監査ログに残す理由

    Returns:
        クローズ結果
    """
    guild = channel.guild
    if not has_close_permissions(channel.permissions_for(guild.me)):
        return CloseResult(status=CloseStatus.MISSING_PERMISSIONS)

    try:
        config = await get_ticket_config(guild.id)
        details = await parse_ticket_details(client, channel)
        transcript = await export_transcript(client, channel)

        log_channel = _resolve_log_channel(guild, config.log_channel_id)
        transcript_url: str | None = None
        if log_channel is not None:
            transcript_url = await _archive_transcript(log_channel, transcript)

        # 一括クローズと同時に押された場合などは既に削除済み
        with contextlib.suppress(discord.NotFound):
            await channel.delete(reason=reason)

        opened_by = details.user if details else None
        embed = create_close_summary_embed(
            channel.name, transcript_url, opened_by, closed_by
        )
        # URL を取得できた場合はリンクで足りるのでファイルを再添付しない
        attach_file = transcript if transcript_url is None else None

        if log_channel is not None:
            files = [attach_file.to_file()] if attach_file else []
            try:
                await log_channel.send(embed=embed, files=files)
            except discord.HTTPException as e:
                logger.warning("Failed to send close log for %s: %s", channel.id, e)

        dm = DeliveryOutcome.SKIPPED
        if details is not None and details.user is not None:
            dm_embed = create_close_dm_embed(embed, guild, details.category)
            dm = await _notify_owner(details.user, dm_embed, attach_file)

        logger.info(
            "Closed ticket %s (%s) in guild %s by %s",
            channel.name,
            channel.id,
            guild.id,
            closed_by.id if closed_by else None,
        )
        return CloseResult(
            status=CloseStatus.SUCCESS, transcript_url=transcript_url, dm=dm
        )
    except Exception:
        logger.exception("Failed to close ticket channel %s", channel.id)
        return CloseResult(status=CloseStatus.ERROR)


async def close_all_tickets(
    client: discord.Client,
    guild: discord.Guild,
    author: discord.abc.User | None,
) -> tuple[int, int]:
    """ギルドの全チケットを 1 件ずつ順番にクローズする。

    API のレート制限を避けるため並列化しない。
    途中で失敗しても残りのチケットは処理を続ける。

    Returns:
        (成功数, 失敗数)
    """
    success = 0
    failed = 0

    for channel in list(get_ticket_channels(guild).values()):
        try:
            result = await close_ticket(client, channel, author, CLOSE_ALL_REASON)
        except Exception:
            logger.exception("Unexpected error closing ticket %s", channel.id)
            failed += 1
            continue
        if result.status == CloseStatus.SUCCESS:
            success += 1
        else:
            failed += 1

    logger.info(
        "Closed all tickets in guild %s: %d succeeded, %d failed",
        guild.id,
        success,
        failed,
    )
    return success, failed
