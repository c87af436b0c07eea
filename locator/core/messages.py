# ##############################################################################
# MODULE: MESSAGES
# DESCRIPTION: Template tin nhắn phản hồi. Tra cứu 2 tầng:
#              override (file JSON) -> DEFAULT_MESSAGES.
#              Template render ra rỗng thì không gửi gì (kể cả prefix).
# ##############################################################################

from __future__ import annotations

import json
import logging
from typing import Mapping

logger = logging.getLogger(__name__)


DEFAULT_MESSAGES: dict[str, str] = {
    "prefix": "**[Locator]** ",
    "no-permission": "Bạn không có quyền dùng lệnh này.",
    "invalid-number": "Không phải số hợp lệ: `{input}`",
    "range-usage": "Cách dùng: `/{label} <blocks>`",
    "range-set": "Đã đặt range Locator Bar thành **{range}** cho người chơi đang **BẬT** bar.",
    "bar-usage": "Cách dùng: `/{label} <on|off|toggle|status>`",
    "bar-status-on": "Locator bar của bạn đang **BẬT** với range **{range}**.",
    "bar-status-off": "Locator bar của bạn đang **TẮT** (người khác vẫn thấy bạn).",
    "bar-on": "Locator bar của bạn đã **BẬT**.",
    "bar-off": "Locator bar của bạn đã **TẮT** (người khác vẫn thấy bạn).",
    "color-usage": "Cách dùng: `/{label} <named|#RRGGBB|RRGGBB|reset>`",
    "color-updated": "Đã đổi màu locator thành **{input}**.",
}


def _replace_placeholders(raw: str, params: Mapping[str, object] | None) -> str:
    if params:
        for key, value in params.items():
            raw = raw.replace("{" + key + "}", str(value))
    return raw


# ------------------------------------------------------------------------------
# Class: Messages
# Purpose: Giữ override đã load và render message theo key.
# ------------------------------------------------------------------------------
class Messages:
    def __init__(self, overrides: Mapping[str, str] | None = None) -> None:
        self._overrides: dict[str, str] = dict(overrides or {})

    def raw(self, key: str) -> str:
        value = self._overrides.get(key)
        if value is not None:
            return value
        return DEFAULT_MESSAGES.get(key, "")

    def render(self, key: str, params: Mapping[str, object] | None = None) -> str:
        return _replace_placeholders(self.raw(key), params)

    # --------------------------------------------------------------------------
    # Method: format
    # Purpose: Message hoàn chỉnh (prefix + nội dung). None nếu nội dung rỗng.
    # --------------------------------------------------------------------------
    def format(self, key: str, params: Mapping[str, object] | None = None) -> str | None:
        core = self.render(key, params)
        if not core.strip():
            return None

        prefix = self.render("prefix", params)
        if not prefix.strip():
            return core
        return prefix + core


# ------------------------------------------------------------------------------
# Function: load_messages
# Purpose: Đọc file JSON override (object key -> string). Không có file -> default.
# ------------------------------------------------------------------------------
def load_messages(path: str | None) -> Messages:
    if not path:
        return Messages()

    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError as e:
        raise ValueError(f"MESSAGES_FILE không tồn tại: {path}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"MESSAGES_FILE không phải JSON hợp lệ: {path}") from e

    if not isinstance(data, dict):
        raise ValueError("MESSAGES_FILE phải là JSON object")

    overrides: dict[str, str] = {}
    for key, value in data.items():
        if key not in DEFAULT_MESSAGES:
            logger.warning("Unknown message key in %s: %r", path, key)
            continue
        if not isinstance(value, str):
            raise ValueError(f"Message {key!r} phải là string")
        overrides[key] = value

    return Messages(overrides)
