# ##############################################################################
# MODULE: BOT CORE
# DESCRIPTION: Định nghĩa class LocatorBot kế thừa từ commands.Bot.
#              Quản lý Lifecycle, Extensions, và Global Error Handling.
#              Là "host" của PreferenceEngine: cung cấp effect (kênh console)
#              và predicate first-join.
# ##############################################################################

from __future__ import annotations

import asyncio
import logging
import time

import discord
from discord import app_commands
from discord.ext import commands

from locator.config import Config
from locator.core.commands import CommandRouter
from locator.core.effects import ConsoleDispatchEffect, Effect, LoggingEffect
from locator.core.engine import PreferenceEngine
from locator.core.messages import Messages, load_messages
from locator.core.query import QueryFacade
from locator.storage.memory import PreferenceState
from locator.storage.sqlite_storage import SQLiteStorage
from locator.utils.errors import PersistenceError

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# Class: LocatorBot
# Purpose: Class bot chính.
# ------------------------------------------------------------------------------
class LocatorBot(commands.Bot):
    def __init__(self, config: Config, *, messages: Messages | None = None) -> None:
        intents = discord.Intents.default()
        # Cần members intent để nhận on_member_join
        intents.members = True
        super().__init__(command_prefix="!", intents=intents)

        self.config = config
        self.started_at = time.monotonic()

        # In-memory state: nguồn sự thật cho preference trong suốt process
        self.state = PreferenceState(default_range=config.default_range)

        # Persistent storage (SQLite)
        self.storage = SQLiteStorage(config.db_path)

        self.messages = messages if messages is not None else load_messages(config.messages_file)

        self.engine = PreferenceEngine(self.state, self.storage, self._build_effect())
        self.query = QueryFacade(self.engine)
        self.router = CommandRouter(self.engine, self.messages, self.query)

        # Giữ reference tới task gửi console để không bị GC giữa chừng
        self._console_tasks: set[asyncio.Task[None]] = set()

    def _build_effect(self) -> Effect:
        if self.config.console_channel_id is None:
            logger.warning("CONSOLE_CHANNEL_ID is not set; locator changes will only be logged")
            return LoggingEffect()

        return ConsoleDispatchEffect(
            resolve_name=self._resolve_user_name,
            dispatch=self._dispatch_console_line,
        )

    def _resolve_user_name(self, user_id: int) -> str | None:
        user = self.get_user(user_id)
        return user.name if user is not None else None

    # --------------------------------------------------------------------------
    # Method: _dispatch_console_line
    # Purpose: Fire-and-forget: lên lịch gửi một dòng lệnh vào kênh console.
    #          Lỗi gửi chỉ được log, không báo ngược về engine.
    # --------------------------------------------------------------------------
    def _dispatch_console_line(self, line: str) -> None:
        task = asyncio.create_task(self._send_console_line(line), name="locator-console-dispatch")
        self._console_tasks.add(task)
        task.add_done_callback(self._console_tasks.discard)

    async def _send_console_line(self, line: str) -> None:
        channel_id = self.config.console_channel_id
        if channel_id is None:
            return

        channel = self.get_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            logger.warning("Console channel %s not found or not messageable; dropped %r", channel_id, line)
            return

        try:
            await channel.send(line)
        except discord.HTTPException:
            logger.exception("Failed to send console line %r", line)

    # --------------------------------------------------------------------------
    # Method: setup_hook
    # Purpose: Khởi chạy khi bot bắt đầu. Kết nối DB, load preference, Load Cogs.
    # --------------------------------------------------------------------------
    async def setup_hook(self) -> None:
        # 1. Kết nối Database
        await self.storage.connect()

        # 2. Load preference từ DB vào Memory
        try:
            loaded, default_range = await self.storage.load(fallback_range=self.config.default_range)
            self.state.default_range = default_range
            for uid, pref in loaded.items():
                self.state.set(uid, pref)
            logger.info("Loaded %d locator preferences, default range=%d", len(loaded), default_range)
        except PersistenceError:
            logger.exception("Failed to load locator preferences from DB")

        try:
            stats = await self.storage.get_db_stats()
            logger.info(
                "DB stats: preferences=%d, config=%d, joined=%d",
                stats.get("user_preferences", 0),
                stats.get("global_config", 0),
                stats.get("joined_users", 0),
            )
        except Exception:
            logger.exception("Failed to read DB stats (non-critical)")

        # 3. Load Extensions (Cogs)
        await self.load_extension("locator.cogs.locator")

        # 4. Sync Slash Commands
        if self.config.dev_guild_id:
            guild = discord.Object(id=self.config.dev_guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
        else:
            await self.tree.sync()

        self.tree.on_error = self.on_app_command_error

    # --------------------------------------------------------------------------
    # Method: on_ready
    # Purpose: Event khi bot đã đăng nhập thành công vào Discord Gateway.
    # --------------------------------------------------------------------------
    async def on_ready(self) -> None:
        if not self.user:
            return
        logger.info("Logged in as %s (%s)", self.user, self.user.id)
        logger.info("Locator enabled. Global range=%d", self.state.default_range)

    # --------------------------------------------------------------------------
    # Method: on_app_command_error
    # Purpose: Xử lý lỗi toàn cục cho Slash Commands.
    # --------------------------------------------------------------------------
    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
        original = getattr(error, "original", error)

        if isinstance(error, app_commands.CheckFailure):
            message = str(error) or "Bạn không thể dùng lệnh này ở đây."
        else:
            logger.error("App command error: %r", original, exc_info=original)
            message = "Đã xảy ra lỗi khi xử lý lệnh. Vui lòng thử lại sau."

        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException:
            pass

    # --------------------------------------------------------------------------
    # Method: close
    # Purpose: Dọn dẹp tài nguyên khi tắt bot.
    #          - Flush preference xuống DB
    #          - Chờ các lệnh console còn dở
    #          - Đóng kết nối Database
    # --------------------------------------------------------------------------
    async def close(self) -> None:
        logger.info("Shutting down bot - cleaning up resources...")

        # 1. Flush snapshot cuối cùng
        try:
            await self.engine.flush()
        except Exception:
            logger.exception("Failed to flush locator preferences during shutdown")

        # 2. Chờ các lệnh console đang gửi (có giới hạn thời gian)
        pending = list(self._console_tasks)
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=5)
            for task in still_pending:
                task.cancel()
            if still_pending:
                logger.warning("Cancelled %d pending console dispatch task(s)", len(still_pending))

        # 3. Đóng kết nối Database
        try:
            await self.storage.close()
            logger.info("Database connection closed")
        except Exception:
            logger.exception("Failed to close DB")

        await super().close()
        logger.info("Bot shutdown complete")
