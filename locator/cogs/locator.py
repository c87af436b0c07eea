# ##############################################################################
# MODULE: LOCATOR COG
# DESCRIPTION: Slash commands cho locator bar:
#              - /locatorrange <blocks>: admin đổi range mặc định.
#              - /locatorbar <on|off|toggle|status>: user bật/tắt bar của mình.
#              - /locatorcolor <named|#RRGGBB|RRGGBB|reset>: đổi màu waypoint.
#              Kèm listener member join để áp range mặc định cho người mới.
# ##############################################################################

from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from locator.core.commands import CommandRouter
from locator.core.engine import PreferenceEngine, ToggleAction
from locator.core.query import QueryFacade
from locator.storage.sqlite_storage import SQLiteStorage
from locator.utils.errors import PersistenceError
from locator.utils.helpers import is_admin, send_response

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# Helper: _storage / _engine / _router / _query
# Purpose: Truy cập các thành phần bot đã khởi tạo trong setup_hook.
# ------------------------------------------------------------------------------
def _storage(bot: commands.Bot) -> SQLiteStorage:
    return getattr(bot, "storage")


def _engine(bot: commands.Bot) -> PreferenceEngine:
    return getattr(bot, "engine")


def _router(bot: commands.Bot) -> CommandRouter:
    return getattr(bot, "router")


def _query(bot: commands.Bot) -> QueryFacade:
    return getattr(bot, "query")


# ------------------------------------------------------------------------------
# Class: LocatorCog
# Purpose: Lớp mỏng: chuyển input cho CommandRouter và gửi phản hồi.
# ------------------------------------------------------------------------------
class LocatorCog(commands.Cog):
    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    async def _reply(self, interaction: discord.Interaction, message: str | None, *, colour: int | None = None) -> None:
        if message is None:
            # Template rỗng: vẫn phải ack interaction nhưng không gửi nội dung
            if not interaction.response.is_done():
                await interaction.response.defer(ephemeral=True)
            return

        if colour is not None:
            embed = discord.Embed(description=message, colour=discord.Colour(colour))
            await send_response(interaction, embed=embed, ephemeral=True)
            return

        await send_response(interaction, message, ephemeral=True)

    @app_commands.command(name="locatorrange", description="Đặt range locator mặc định (admin)")
    @app_commands.describe(blocks="Range mới (block, >= 0)")
    @app_commands.guild_only()
    async def locatorrange(self, interaction: discord.Interaction, blocks: str | None = None) -> None:
        message = await _router(self.bot).locator_range(
            blocks,
            is_admin=is_admin(interaction),
            label="locatorrange",
        )
        await self._reply(interaction, message)

    @app_commands.command(name="locatorbar", description="Bật/tắt locator bar của bạn")
    @app_commands.describe(action="on | off | toggle | status")
    async def locatorbar(self, interaction: discord.Interaction, action: str | None = None) -> None:
        user_id = interaction.user.id
        message = await _router(self.bot).locator_bar(user_id, action, label="locatorbar")

        colour = None
        if action and ToggleAction.parse(action) is ToggleAction.STATUS:
            colour = _query(self.bot).display_colour(user_id)

        await self._reply(interaction, message, colour=colour)

    @locatorbar.autocomplete("action")
    async def _locatorbar_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        lowered = current.lower()
        return [
            app_commands.Choice(name=a.value, value=a.value)
            for a in ToggleAction
            if a.value.startswith(lowered)
        ]

    @app_commands.command(name="locatorcolor", description="Đổi màu waypoint của bạn")
    @app_commands.describe(color="Tên màu, #RRGGBB, RRGGBB hoặc reset")
    async def locatorcolor(self, interaction: discord.Interaction, color: str | None = None) -> None:
        user_id = interaction.user.id
        message = await _router(self.bot).locator_color(user_id, color, label="locatorcolor")
        await self._reply(interaction, message, colour=_query(self.bot).display_colour(user_id) if color else None)

    # --------------------------------------------------------------------------
    # Listener: on_member_join
    # Purpose: Chỉ người chưa từng join mới được áp range mặc định.
    #          Người quay lại giữ nguyên preference.
    # --------------------------------------------------------------------------
    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        if member.bot:
            return

        storage = _storage(self.bot)
        try:
            if await storage.has_ever_joined(member.id):
                return
            await storage.mark_joined(member.id)
        except PersistenceError:
            logger.exception("Failed to check first join user=%s", member.id)
            return

        await _engine(self.bot).on_first_join(member.id)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(LocatorCog(bot))
