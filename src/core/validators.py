"""Pure validation functions."""

from src.constants import MAX_TICKET_LIMIT, MIN_TICKET_LIMIT

# Discord channel name limits
MIN_CHANNEL_NAME_LENGTH = 1
MAX_CHANNEL_NAME_LENGTH = 100

# セレクトメニューのラベル上限に合わせる
MAX_CATEGORY_NAME_LENGTH = 100


def validate_ticket_limit(limit: int) -> bool:
    """Validate the per-guild open ticket limit.

    Args:
        limit: The maximum number of open tickets

    Returns:
        True if valid, False otherwise
    """
    return MIN_TICKET_LIMIT <= limit <= MAX_TICKET_LIMIT


def validate_category_name(name: str) -> bool:
    """Validate a ticket category name.

    トピックの区切り文字 "|" を含む名前はデコード時に壊れるため拒否する。

    Args:
        name: The category name to validate

    Returns:
        True if valid, False otherwise
    """
    stripped = name.strip()
    if not 1 <= len(stripped) <= MAX_CATEGORY_NAME_LENGTH:
        return False
    return "|" not in stripped
