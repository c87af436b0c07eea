# ##############################################################################
# MODULE: SQLITE STORAGE
# DESCRIPTION: Lớp quản lý lưu trữ dữ liệu bền vững (Persistence) bằng SQLite.
#              Sử dụng thư viện aiosqlite cho các thao tác bất đồng bộ.
#              Chỉ load/save, không chứa logic nghiệp vụ.
# ##############################################################################

from __future__ import annotations

import logging
import os
import sqlite3
import time
from typing import Any, Mapping

import aiosqlite

from locator.core.colors import color_from_stored
from locator.storage.memory import UserPreference
from locator.utils import constants
from locator.utils.errors import MalformedEntryError, PersistenceError

logger = logging.getLogger(__name__)

_DEFAULT_RANGE_KEY = "default_range"


# ------------------------------------------------------------------------------
# Helper: _now_ts
# Purpose: Lấy timestamp hiện tại (int seconds).
# ------------------------------------------------------------------------------
def _now_ts() -> int:
    return int(time.time())


# ------------------------------------------------------------------------------
# Helper: _parse_user_id
# Purpose: Key lưu dạng TEXT; chỉ chấp nhận snowflake (số nguyên dương).
# ------------------------------------------------------------------------------
def _parse_user_id(raw: object) -> int:
    text = str(raw).strip() if raw is not None else ""
    if not text.isdigit():
        raise MalformedEntryError(f"invalid user id: {raw!r}")
    user_id = int(text)
    if user_id <= 0:
        raise MalformedEntryError(f"invalid user id: {raw!r}")
    return user_id


def _parse_range(raw: object) -> int:
    if raw is None or isinstance(raw, bool):
        raise MalformedEntryError(f"invalid range: {raw!r}")
    try:
        value = int(str(raw).strip())
    except ValueError as e:
        raise MalformedEntryError(f"invalid range: {raw!r}") from e
    # Kẹp phòng thủ: không âm, không vượt giới hạn int của server game
    return min(max(constants.MIN_RANGE, value), constants.MAX_RANGE)


def _parse_disabled(raw: object) -> bool:
    if raw is None:
        return False
    if isinstance(raw, (int, float)):
        return bool(raw)

    text = str(raw).strip().lower()
    if text in {"1", "true", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "no", "n", "off", ""}:
        return False

    raise MalformedEntryError(f"invalid disabled flag: {raw!r}")


# ------------------------------------------------------------------------------
# Helper: _row_to_preference
# Purpose: Chuyển một dòng DB thành (user_id, UserPreference).
#          Identity lỗi -> raise (bỏ cả dòng); field lỗi -> dùng mặc định.
# ------------------------------------------------------------------------------
def _row_to_preference(row: Mapping[str, Any], fallback_range: int) -> tuple[int, UserPreference]:
    user_id = _parse_user_id(row["user_id"])

    try:
        remembered = _parse_range(row["remembered_range"])
    except MalformedEntryError:
        logger.warning("Ignoring malformed remembered_range for user=%s: %r", user_id, row["remembered_range"])
        remembered = fallback_range

    try:
        disabled = _parse_disabled(row["receive_disabled"])
    except MalformedEntryError:
        logger.warning("Ignoring malformed receive_disabled for user=%s: %r", user_id, row["receive_disabled"])
        disabled = False

    raw_color = row["color"]
    color = color_from_stored(raw_color if isinstance(raw_color, str) else None)

    return user_id, UserPreference(
        remembered_range=remembered,
        receive_enabled=not disabled,
        color=color,
    )


# ------------------------------------------------------------------------------
# Class: SQLiteStorage
# Purpose: PreferenceStore - load toàn bộ khi startup, save snapshot mỗi lần đổi.
# ------------------------------------------------------------------------------
class SQLiteStorage:
    def __init__(self, path: str) -> None:
        self._path = path
        self._conn: aiosqlite.Connection | None = None

    @property
    def path(self) -> str:
        return self._path

    def _require_conn(self) -> aiosqlite.Connection:
        # Helper để đảm bảo đã kết nối DB trước khi thực hiện truy vấn.
        if self._conn is None:
            raise PersistenceError("SQLiteStorage is not connected")
        return self._conn

    # --------------------------------------------------------------------------
    # Method: connect
    # Purpose: Mở kết nối và tạo các bảng (Schema) nếu chưa tồn tại.
    #          File DB chưa có được xem như kho rỗng.
    # --------------------------------------------------------------------------
    async def connect(self) -> None:
        db_dir = os.path.dirname(self._path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._conn = await aiosqlite.connect(self._path)
        self._conn.row_factory = aiosqlite.Row

        await self._conn.execute("PRAGMA journal_mode=WAL")

        # Bảng preference của user. Key là TEXT để dòng hỏng vẫn đọc được
        # (và bị bỏ qua) thay vì làm hỏng cả bảng.
        await self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS user_preferences (
              user_id TEXT PRIMARY KEY,
              receive_disabled INTEGER NOT NULL DEFAULT 0,
              remembered_range INTEGER,
              color TEXT
            )
            """
        )

        # Cấu hình toàn server (range mặc định)
        await self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS global_config (
              key TEXT PRIMARY KEY,
              value TEXT NOT NULL
            )
            """
        )

        # Danh sách user đã từng join (phía host dùng để xác định first-join)
        await self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS joined_users (
              user_id INTEGER PRIMARY KEY,
              first_joined_at INTEGER NOT NULL
            )
            """
        )

        await self._conn.commit()

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None

    async def get_db_stats(self) -> dict[str, int]:
        # Lấy thống kê số lượng record trong các bảng chính.
        conn = self._require_conn()
        stats: dict[str, int] = {}

        for table in ["user_preferences", "global_config", "joined_users"]:
            cur = await conn.execute(f"SELECT COUNT(*) FROM {table}")
            row = await cur.fetchone()
            stats[table] = int(row[0]) if row else 0

        return stats

    # --------------------------------------------------------------------------
    # Group: Preferences
    # --------------------------------------------------------------------------
    async def load(self, *, fallback_range: int) -> tuple[dict[int, UserPreference], int]:
        # Trả về (preferences, default_range). Dòng hỏng bị bỏ qua, không raise.
        conn = self._require_conn()
        try:
            cur = await conn.execute("SELECT value FROM global_config WHERE key=?", (_DEFAULT_RANGE_KEY,))
            global_row = await cur.fetchone()

            cur = await conn.execute(
                "SELECT user_id, receive_disabled, remembered_range, color FROM user_preferences"
            )
            rows = await cur.fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read {self._path}: {e}") from e

        default_range = max(0, int(fallback_range))
        if global_row is not None:
            try:
                default_range = _parse_range(global_row["value"])
            except MalformedEntryError:
                logger.warning("Ignoring malformed stored default range: %r", global_row["value"])

        out: dict[int, UserPreference] = {}
        skipped = 0
        for r in rows:
            try:
                user_id, pref = _row_to_preference(r, default_range)
            except MalformedEntryError as e:
                skipped += 1
                logger.warning("Skipping malformed preference entry: %s", e)
                continue
            out[user_id] = pref

        if skipped:
            logger.warning("Skipped %d malformed preference entries", skipped)

        return out, default_range

    async def save(self, preferences: Mapping[int, UserPreference], default_range: int) -> None:
        # Ghi toàn bộ snapshot trong một lần commit (write-through).
        conn = self._require_conn()
        rows = [
            (
                str(user_id),
                0 if pref.receive_enabled else 1,
                max(0, int(pref.remembered_range)),
                pref.color.raw,
            )
            for user_id, pref in preferences.items()
        ]

        try:
            await conn.executemany(
                """
                INSERT INTO user_preferences (user_id, receive_disabled, remembered_range, color)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                  receive_disabled=excluded.receive_disabled,
                  remembered_range=excluded.remembered_range,
                  color=excluded.color
                """,
                rows,
            )
            await conn.execute(
                """
                INSERT INTO global_config (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                (_DEFAULT_RANGE_KEY, str(max(0, int(default_range)))),
            )
            await conn.commit()
        except (sqlite3.Error, OverflowError, ValueError) as e:
            try:
                await conn.rollback()
            except sqlite3.Error:
                logger.exception("Failed to rollback after save error")
            raise PersistenceError(f"Failed to write {self._path}: {e}") from e

    # --------------------------------------------------------------------------
    # Group: Joined Users (first-join predicate của host)
    # --------------------------------------------------------------------------
    async def has_ever_joined(self, user_id: int) -> bool:
        conn = self._require_conn()
        try:
            cur = await conn.execute("SELECT 1 FROM joined_users WHERE user_id=?", (user_id,))
            row = await cur.fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read joined_users: {e}") from e
        return row is not None

    async def mark_joined(self, user_id: int) -> bool:
        # Trả về True nếu đây là lần đầu (vừa được thêm).
        conn = self._require_conn()
        try:
            cur = await conn.execute(
                "INSERT OR IGNORE INTO joined_users (user_id, first_joined_at) VALUES (?, ?)",
                (user_id, _now_ts()),
            )
            await conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to write joined_users: {e}") from e
        return cur.rowcount > 0
