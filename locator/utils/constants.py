# ##############################################################################
# MODULE: CONSTANTS
# DESCRIPTION: Tập trung các hằng số và magic numbers dùng trong toàn bộ codebase.
#              Tránh hardcode giá trị, dễ maintain và điều chỉnh.
# ##############################################################################

from __future__ import annotations


# ==============================================================================
# RANGE CONSTANTS
# ==============================================================================

DEFAULT_RANGE = 250               # Range mặc định (block) khi chưa cấu hình
MIN_RANGE = 0                     # Range không bao giờ âm
MAX_RANGE = 2_147_483_647         # Giới hạn int 32-bit của server game


# ==============================================================================
# CONSOLE COMMAND TEMPLATES
# ==============================================================================

# Lệnh vanilla mà server game hiểu, gửi qua kênh console
RECEIVE_RANGE_ATTRIBUTE = "minecraft:waypoint_receive_range"
TRANSMIT_RANGE_ATTRIBUTE = "minecraft:waypoint_transmit_range"
ATTRIBUTE_SET_TEMPLATE = "attribute {name} {attribute} base set {value}"
WAYPOINT_COLOR_TEMPLATE = "waypoint modify {name} color {value}"


# ==============================================================================
# COLOR CONSTANTS
# ==============================================================================

COLOR_UNSET = "unset"
COLOR_RESET = "reset"
COLOR_DEFAULT_LABEL = "Default"

# 16 màu vanilla -> RGB (dùng cho embed Discord)
NAMED_COLORS: dict[str, int] = {
    "BLACK": 0x000000,
    "DARK_BLUE": 0x0000AA,
    "DARK_GREEN": 0x00AA00,
    "DARK_AQUA": 0x00AAAA,
    "DARK_RED": 0xAA0000,
    "DARK_PURPLE": 0xAA00AA,
    "GOLD": 0xFFAA00,
    "GRAY": 0xAAAAAA,
    "DARK_GRAY": 0x555555,
    "BLUE": 0x5555FF,
    "GREEN": 0x55FF55,
    "AQUA": 0x55FFFF,
    "RED": 0xFF5555,
    "LIGHT_PURPLE": 0xFF55FF,
    "YELLOW": 0xFFFF55,
    "WHITE": 0xFFFFFF,
}


# ==============================================================================
# PLACEHOLDER CONSTANTS
# ==============================================================================

PLACEHOLDER_PREFIX = "locator_"
STATUS_ON = "ON"
STATUS_OFF = "OFF"
SYMBOL_ON = "✔"
SYMBOL_OFF = "✖"
