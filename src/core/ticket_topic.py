"""Pure functions for the ticket channel topic encoding.

チケットの所有者とカテゴリはチャンネルトピックにのみ保存される。
書式は ``ticket|<ownerUserId>|<categoryName>`` で、既存チャンネルとの
互換性のためこの書式を変えてはいけない。
"""

from dataclasses import dataclass

from src.constants import (
    DEFAULT_TICKET_CATEGORY,
    TICKET_TOPIC_PREFIX,
    TICKET_TOPIC_SEPARATOR,
)


@dataclass(frozen=True)
class TicketTopic:
    """チャンネルトピックから復元したチケットのメタデータ。"""

    owner_id: str
    category: str = DEFAULT_TICKET_CATEGORY

    @classmethod
    def parse(cls, topic: str | None) -> "TicketTopic | None":
        """トピック文字列をデコードする。

        Args:
            topic: チャンネルトピック

        Returns:
            デコード結果。トピックが空の場合は None

        Note:
            カテゴリ部分が欠けている場合は "Default" を補う。
            接頭辞の検証は呼び出し側 (is_ticket_channel) の責務。
        """
        if not topic:
            return None
        parts = topic.split(TICKET_TOPIC_SEPARATOR)
        owner_id = parts[1] if len(parts) > 1 else ""
        category = parts[2] if len(parts) > 2 and parts[2] else DEFAULT_TICKET_CATEGORY
        return cls(owner_id=owner_id, category=category)

    def encode(self) -> str:
        """トピック文字列にエンコードする。"""
        return TICKET_TOPIC_SEPARATOR.join(
            [TICKET_TOPIC_PREFIX, self.owner_id, self.category]
        )


def is_ticket_topic(topic: str | None) -> bool:
    """トピックがチケット書式で始まるかを返す。"""
    return topic is not None and topic.startswith(
        TICKET_TOPIC_PREFIX + TICKET_TOPIC_SEPARATOR
    )


def get_topic_owner_id(topic: str | None) -> str | None:
    """トピックから所有者のユーザー ID 部分だけを取り出す。"""
    parsed = TicketTopic.parse(topic)
    return parsed.owner_id if parsed else None
