# ##############################################################################
# MODULE: COLORS
# DESCRIPTION: Phân loại token màu người dùng nhập (named / hex / reset)
#              và format để hiển thị.
# ##############################################################################

from __future__ import annotations

from dataclasses import dataclass
import enum
import re

from locator.utils import constants

_HEX_RE = re.compile(r"^[0-9A-Fa-f]{6}$")


class ColorKind(enum.Enum):
    UNSET = "unset"
    RESET = "reset"
    NAMED = "named"
    HEX = "hex"


# ------------------------------------------------------------------------------
# Class: ColorSpec
# Purpose: Dạng đã phân loại của màu. `raw` là token gốc (được lưu vào DB),
#          `value` là giá trị đã chuẩn hoá để gửi lệnh.
# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class ColorSpec:
    kind: ColorKind
    value: str | None = None
    raw: str | None = None

    @classmethod
    def unset(cls) -> ColorSpec:
        return cls(ColorKind.UNSET)

    @property
    def stored_token(self) -> str:
        return self.raw if self.raw is not None else constants.COLOR_UNSET


UNSET = ColorSpec.unset()


# ------------------------------------------------------------------------------
# Function: classify_color
# Purpose: "#ff00aa"/"ff00aa" -> HEX("FF00AA"), "reset" -> RESET,
#          còn lại -> NAMED(token gốc, giữ nguyên hoa/thường).
#          Tên màu không được validate ở đây, server game mới là nơi quyết định.
# ------------------------------------------------------------------------------
def classify_color(token: str) -> ColorSpec:
    raw = token.strip()

    if raw.lower() == constants.COLOR_RESET:
        return ColorSpec(ColorKind.RESET, raw=raw)

    digits = raw[1:] if raw.startswith("#") else raw
    if _HEX_RE.match(digits):
        return ColorSpec(ColorKind.HEX, digits.upper(), raw=raw)

    return ColorSpec(ColorKind.NAMED, raw, raw=raw)


def color_from_stored(token: str | None) -> ColorSpec:
    # NULL trong DB nghĩa là chưa từng đặt màu
    if token is None or not token.strip():
        return UNSET
    return classify_color(token)


def _title_case(text: str) -> str:
    return " ".join(w[:1].upper() + w[1:] for w in text.split())


def format_color_display(spec: ColorSpec) -> str:
    if spec.kind in (ColorKind.UNSET, ColorKind.RESET):
        return constants.COLOR_DEFAULT_LABEL
    if spec.kind is ColorKind.HEX:
        return f"#{spec.value}"

    name = (spec.value or "").strip().lower().replace("_", " ")
    return _title_case(name)


def color_rgb(spec: ColorSpec) -> int | None:
    if spec.kind is ColorKind.HEX and spec.value:
        return int(spec.value, 16)
    if spec.kind is ColorKind.NAMED and spec.value:
        enum_name = spec.value.strip().upper().replace(" ", "_")
        return constants.NAMED_COLORS.get(enum_name)
    return None
