# ##############################################################################
# MODULE: HELPERS
# DESCRIPTION: Các hàm tiện ích dùng chung cho các cog.
# ##############################################################################

from __future__ import annotations

import discord


# ------------------------------------------------------------------------------
# Helper: as_member
# Purpose: Chuyển đổi an toàn từ discord.User/abc.User sang discord.Member.
#          Trả về None nếu không phải Member (ví dụ trong DM).
# ------------------------------------------------------------------------------
def as_member(user: discord.abc.User) -> discord.Member | None:
    return user if isinstance(user, discord.Member) else None


# ------------------------------------------------------------------------------
# Helper: is_admin
# Purpose: Kiểm tra user có quyền Administrator hoặc Manage Guild không.
# ------------------------------------------------------------------------------
def is_admin(interaction: discord.Interaction) -> bool:
    member = as_member(interaction.user)
    if not member:
        return False
    perms = member.guild_permissions
    return perms.administrator or perms.manage_guild


# ------------------------------------------------------------------------------
# Helper: send_response
# Purpose: Gửi tin nhắn phản hồi, xử lý cả trường hợp đã response rồi.
# ------------------------------------------------------------------------------
async def send_response(
    interaction: discord.Interaction,
    content: str | None = None,
    *,
    embed: discord.Embed | None = None,
    ephemeral: bool = False,
) -> None:
    kwargs: dict = {"ephemeral": ephemeral}
    if content:
        kwargs["content"] = content
    if embed:
        kwargs["embed"] = embed

    if interaction.response.is_done():
        await interaction.followup.send(**kwargs)
    else:
        await interaction.response.send_message(**kwargs)
