"""Pure functions for permission calculations."""

import discord

# チケットチャンネルへの参加者に与える権限
_PARTICIPANT_PERMISSIONS = {
    "view_channel": True,
    "send_messages": True,
    "read_message_history": True,
}


def participant_overwrite() -> discord.PermissionOverwrite:
    """チケット参加者用の PermissionOverwrite を返す。"""
    return discord.PermissionOverwrite(**_PARTICIPANT_PERMISSIONS)


def build_ticket_overwrites(
    guild: discord.Guild,
    user: discord.abc.Snowflake,
    staff_role_ids: list[int] | None = None,
) -> dict[discord.abc.Snowflake, discord.PermissionOverwrite]:
    """Build permission overwrites for a ticket channel.

    Args:
        guild: The Discord guild
        user: The member opening the ticket
        staff_role_ids: Role IDs of the chosen category's staff

    Returns:
        Dictionary of permission overwrites

    Note:
        ギルドに存在しないロール ID は無視する。
    """
    overwrites: dict[discord.abc.Snowflake, discord.PermissionOverwrite] = {
        guild.default_role: discord.PermissionOverwrite(view_channel=False),
        user: participant_overwrite(),
        guild.me.top_role: participant_overwrite(),
    }

    if staff_role_ids:
        for role_id in staff_role_ids:
            role = guild.get_role(role_id)
            if role:
                overwrites[role] = participant_overwrite()

    return overwrites


def has_open_permissions(permissions: discord.Permissions) -> bool:
    """チケットチャンネル作成に必要な権限があるかを返す。"""
    return permissions.manage_channels


def has_close_permissions(permissions: discord.Permissions) -> bool:
    """チケットクローズ (削除 + 履歴取得) に必要な権限があるかを返す。"""
    return permissions.manage_channels and permissions.read_message_history
