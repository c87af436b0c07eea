# ##############################################################################
# MODULE: LOGGING
# DESCRIPTION: Cấu hình logging cho toàn bộ bot: file xoay vòng + console.
#              Log của thư viện (discord, aiosqlite) bị giới hạn ở WARNING
#              để log của locator (engine, storage, console dispatch) dễ đọc.
# ##############################################################################

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import os

from locator.config import Config

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Thư viện log rất nhiều ở DEBUG (heartbeat, gateway payload, từng câu SQL)
NOISY_LOGGERS = ("discord", "aiosqlite")


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


# ------------------------------------------------------------------------------
# Function: setup_logging
# Purpose: Gắn handler file (RotatingFileHandler) và console vào root logger.
#          Gọi lại nhiều lần không nhân đôi handler. Trả về đường dẫn file log.
# ------------------------------------------------------------------------------
def setup_logging(config: Config) -> str:
    level = _resolve_level(config.log_level)
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    os.makedirs(config.log_dir, exist_ok=True)
    log_path = os.path.join(config.log_dir, config.log_file)

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=config.log_max_bytes,
        backupCount=config.log_backup_count,
        encoding="utf-8",
    )
    console_handler = logging.StreamHandler()

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.setLevel(level)
    for handler in (file_handler, console_handler):
        handler.setLevel(level)
        handler.setFormatter(fmt)
        root.addHandler(handler)

    lib_level = max(level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(lib_level)

    return log_path
