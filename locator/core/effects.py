# ##############################################################################
# MODULE: EFFECTS
# DESCRIPTION: Giao diện "apply" mà engine gọi để thay đổi trạng thái thật
#              trên server game. Engine không biết effect được thực hiện thế nào.
# ##############################################################################

from __future__ import annotations

import logging
from typing import Callable, Protocol

from locator.core.colors import ColorKind, ColorSpec
from locator.utils import constants

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# Class: Effect
# Purpose: Fire-and-forget. Lỗi không được trả ngược về engine.
# ------------------------------------------------------------------------------
class Effect(Protocol):
    def apply_receive_range(self, user_id: int, value: int) -> None: ...

    def apply_transmit_range(self, user_id: int, value: int) -> None: ...

    def apply_color(self, user_id: int, color: ColorSpec) -> None: ...


# ------------------------------------------------------------------------------
# Group: Render lệnh console vanilla
# ------------------------------------------------------------------------------
def render_receive_range(name: str, value: int) -> str:
    return constants.ATTRIBUTE_SET_TEMPLATE.format(
        name=name, attribute=constants.RECEIVE_RANGE_ATTRIBUTE, value=int(value)
    )


def render_transmit_range(name: str, value: int) -> str:
    return constants.ATTRIBUTE_SET_TEMPLATE.format(
        name=name, attribute=constants.TRANSMIT_RANGE_ATTRIBUTE, value=int(value)
    )


def render_color(name: str, color: ColorSpec) -> str | None:
    if color.kind is ColorKind.RESET:
        value = constants.COLOR_RESET
    elif color.kind is ColorKind.HEX:
        value = f"hex {color.value}"
    elif color.kind is ColorKind.NAMED and color.value:
        value = color.value.strip().lower()
    else:
        # UNSET: không có gì để gửi
        return None
    return constants.WAYPOINT_COLOR_TEMPLATE.format(name=name, value=value)


class LoggingEffect:
    """Effect chỉ ghi log; dùng khi chưa cấu hình kênh console."""

    def apply_receive_range(self, user_id: int, value: int) -> None:
        logger.info("apply receive_range user=%s value=%d", user_id, value)

    def apply_transmit_range(self, user_id: int, value: int) -> None:
        logger.info("apply transmit_range user=%s value=%d", user_id, value)

    def apply_color(self, user_id: int, color: ColorSpec) -> None:
        logger.info("apply color user=%s kind=%s value=%s", user_id, color.kind.value, color.value)


# ------------------------------------------------------------------------------
# Class: ConsoleDispatchEffect
# Purpose: Render lệnh vanilla và đẩy từng dòng cho `dispatch` (do host cung cấp).
#          User không resolve được tên thì bỏ qua.
# ------------------------------------------------------------------------------
class ConsoleDispatchEffect:
    def __init__(
        self,
        *,
        resolve_name: Callable[[int], str | None],
        dispatch: Callable[[str], None],
    ) -> None:
        self._resolve_name = resolve_name
        self._dispatch = dispatch

    def _send(self, user_id: int, render: Callable[[str], str | None]) -> None:
        name = self._resolve_name(user_id)
        if not name:
            logger.debug("Skip console dispatch: cannot resolve name for user=%s", user_id)
            return

        line = render(name)
        if line is None:
            return

        try:
            self._dispatch(line)
        except Exception:
            logger.exception("Console dispatch failed user=%s line=%r", user_id, line)

    def apply_receive_range(self, user_id: int, value: int) -> None:
        self._send(user_id, lambda name: render_receive_range(name, value))

    def apply_transmit_range(self, user_id: int, value: int) -> None:
        self._send(user_id, lambda name: render_transmit_range(name, value))

    def apply_color(self, user_id: int, color: ColorSpec) -> None:
        self._send(user_id, lambda name: render_color(name, color))
