"""Pure functions for building strings and objects."""

from src.constants import MAX_SELECT_OPTIONS, TICKET_CHANNEL_PREFIX
from src.core.validators import MAX_CHANNEL_NAME_LENGTH


def build_ticket_channel_name(username: str, ticket_number: int) -> str:
    """Build a ticket channel name from the owner's username.

    Args:
        username: The username of the ticket owner
        ticket_number: Sequential number (open ticket count + 1)

    Returns:
        The channel name, e.g. ``ticket-alice-3``
    """
    # ticket- を付けないと is_ticket_channel の名前判定を通らない
    suffix = f"-{ticket_number}"
    base = truncate_name(
        f"{TICKET_CHANNEL_PREFIX}{username}",
        MAX_CHANNEL_NAME_LENGTH - len(suffix),
    )
    return f"{base}{suffix}"


def build_transcript_filename(channel_name: str) -> str:
    """Build the HTML transcript filename for a ticket channel."""
    return f"ticket-{channel_name}.html"


def build_category_options(category_names: list[str]) -> list[tuple[str, str]]:
    """Build (label, value) pairs for the category select menu.

    Args:
        category_names: Names of the guild's ticket categories

    Returns:
        List of (label, value) tuples, at most 25 entries
    """
    return [(name, name) for name in category_names[:MAX_SELECT_OPTIONS]]


def build_role_id_string(role_ids: list[int]) -> str:
    """ロール ID のリストを DB 保存用のカンマ区切り文字列にする。"""
    return ",".join(str(role_id) for role_id in role_ids)


def parse_role_id_string(raw: str | None) -> list[int]:
    """カンマ区切りのロール ID 文字列をリストに戻す。不正な要素は捨てる。"""
    if not raw:
        return []
    role_ids: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit():
            role_ids.append(int(part))
    return role_ids


def truncate_name(name: str, max_length: int = MAX_CHANNEL_NAME_LENGTH) -> str:
    """Truncate a name to fit Discord's channel name limit.

    Args:
        name: The name to truncate
        max_length: Maximum allowed length

    Returns:
        The truncated name
    """
    if len(name) <= max_length:
        return name
    return name[:max_length]
