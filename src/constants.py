"""Shared constants.

チケットシステム全体で共有する定数。
custom_id やトピック書式は既存のチャンネル/ボタンとの互換性があるため変更しないこと。
"""

# =============================================================================
# データベース
# =============================================================================

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///data/tickets.db"
DEFAULT_TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# =============================================================================
# チケットチャンネル
# =============================================================================

# チャンネル名の接頭辞
TICKET_CHANNEL_PREFIX = "ticket-"

# トピック書式: ticket|<ownerUserId>|<categoryName>
TICKET_TOPIC_PREFIX = "ticket"
TICKET_TOPIC_SEPARATOR = "|"

# カテゴリ未選択時のカテゴリ名
DEFAULT_TICKET_CATEGORY = "Default"

# 一括クローズ時の監査ログ理由
CLOSE_ALL_REASON = "Force close all open tickets"

# =============================================================================
# custom_id
# =============================================================================

TICKET_CREATE_CUSTOM_ID = "TICKET_CREATE"
TICKET_CLOSE_CUSTOM_ID = "TICKET_CLOSE"
TICKET_MENU_CUSTOM_ID = "ticket-menu"

# =============================================================================
# デフォルト値
# =============================================================================

DEFAULT_TICKET_LIMIT = 10
MIN_TICKET_LIMIT = 1
MAX_TICKET_LIMIT = 100

DEFAULT_CATEGORY_SELECT_TIMEOUT = 60.0

DEFAULT_CLOSE_EMBED_COLOR = 0x068ADD
DEFAULT_EMBED_COLOR = 0x5865F2

# Discord のセレクトメニューの選択肢上限
MAX_SELECT_OPTIONS = 25
