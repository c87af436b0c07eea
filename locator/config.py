# ##############################################################################
# MODULE: CONFIG
# DESCRIPTION: Quản lý cấu hình ứng dụng từ biến môi trường (Environment Variables).
#              Sử dụng python-dotenv để load file .env.
# ##############################################################################

from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv

from locator.utils import constants


# ------------------------------------------------------------------------------
# Helper: _get_int
# Purpose: Chuyển đổi giá trị string từ env thành int, có giá trị mặc định.
# ------------------------------------------------------------------------------
def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} phải là số nguyên: {raw!r}") from e


# ------------------------------------------------------------------------------
# Helper: _get_optional_int
# Purpose: Chuyển đổi thành int nhưng cho phép trả về None nếu không có giá trị.
# ------------------------------------------------------------------------------
def _get_optional_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} phải là số nguyên: {raw!r}") from e


def _get_optional_str(name: str) -> str | None:
    raw = os.getenv(name)
    return raw.strip() if raw and raw.strip() else None


# ------------------------------------------------------------------------------
# Class: Config
# Purpose: Dataclass chứa toàn bộ thông tin cấu hình (immutable).
# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class Config:
    discord_token: str

    # Cấu hình Bot
    dev_guild_id: int | None
    db_path: str

    # Cấu hình Locator
    # default_range: range mặc định cho người chơi lần đầu join.
    # Giá trị lưu trong DB (do admin đổi bằng /locatorrange) được ưu tiên hơn.
    default_range: int
    # Kênh console nơi bot gửi lệnh attribute/waypoint cho server game.
    console_channel_id: int | None
    messages_file: str | None

    # Cấu hình Logging
    log_level: str
    log_dir: str
    log_file: str
    log_max_bytes: int
    log_backup_count: int


# ------------------------------------------------------------------------------
# Function: load_config
# Purpose: Đọc file .env và validate các giá trị bắt buộc.
#          Trả về đối tượng Config hoàn chỉnh.
# ------------------------------------------------------------------------------
def load_config() -> Config:
    load_dotenv(override=False)

    # 1. Discord Token (Bắt buộc)
    discord_token = os.getenv("DISCORD_TOKEN", "").strip()
    if not discord_token:
        raise ValueError("Missing DISCORD_TOKEN in environment")

    # 2. Bot General Config
    dev_guild_id = _get_optional_int("DEV_GUILD_ID")
    db_path = os.getenv("DB_PATH", "locator.db").strip() or "locator.db"

    # 3. Locator Config
    default_range = _get_int("DEFAULT_RANGE", constants.DEFAULT_RANGE)
    if not constants.MIN_RANGE <= default_range <= constants.MAX_RANGE:
        raise ValueError(f"DEFAULT_RANGE must be between {constants.MIN_RANGE} and {constants.MAX_RANGE}")

    console_channel_id = _get_optional_int("CONSOLE_CHANNEL_ID")
    messages_file = _get_optional_str("MESSAGES_FILE")

    # 4. Logging Config
    log_level = os.getenv("LOG_LEVEL", "INFO").strip() or "INFO"
    log_dir = os.getenv("LOG_DIR", "logs").strip() or "logs"
    log_file = os.getenv("LOG_FILE", "locator.log").strip() or "locator.log"
    log_max_bytes = _get_int("LOG_MAX_BYTES", 5 * 1024 * 1024)
    log_backup_count = _get_int("LOG_BACKUP_COUNT", 5)

    return Config(
        discord_token=discord_token,
        dev_guild_id=dev_guild_id,
        db_path=db_path,
        default_range=default_range,
        console_channel_id=console_channel_id,
        messages_file=messages_file,
        log_level=log_level,
        log_dir=log_dir,
        log_file=log_file,
        log_max_bytes=log_max_bytes,
        log_backup_count=log_backup_count,
    )
