# ##############################################################################
# MODULE: QUERY FACADE
# DESCRIPTION: Truy xuất chỉ-đọc cho hệ thống template bên ngoài
#              (placeholder trong message, embed trạng thái...).
# ##############################################################################

from __future__ import annotations

from locator.core.colors import color_rgb, format_color_display
from locator.core.engine import PreferenceEngine, QueryField
from locator.utils import constants

PLACEHOLDER_KEYS: tuple[str, ...] = (
    "status",
    "status_symbol",
    "status_bool",
    "range",
    "color",
    "color_raw",
    "global_range",
)


class QueryFacade:
    def __init__(self, engine: PreferenceEngine) -> None:
        self._engine = engine

    # --------------------------------------------------------------------------
    # Method: resolve
    # Purpose: key -> string. Key lạ trả về None để resolver khác xử lý.
    # --------------------------------------------------------------------------
    def resolve(self, user_id: int, key: str) -> str | None:
        engine = self._engine
        key = key.strip().lower()

        if key in ("status", "status_symbol", "status_bool"):
            enabled = bool(engine.query(user_id, QueryField.ENABLED))
            if key == "status":
                return constants.STATUS_ON if enabled else constants.STATUS_OFF
            if key == "status_symbol":
                return constants.SYMBOL_ON if enabled else constants.SYMBOL_OFF
            return "true" if enabled else "false"

        if key == "range":
            return str(engine.query(user_id, QueryField.EFFECTIVE_RANGE))

        if key == "color":
            return format_color_display(engine.query(user_id, QueryField.COLOR))  # type: ignore[arg-type]

        if key == "color_raw":
            return engine.query(user_id, QueryField.COLOR).stored_token  # type: ignore[union-attr]

        if key == "global_range":
            return str(engine.query(user_id, QueryField.GLOBAL_RANGE))

        return None

    def placeholders(self, user_id: int) -> dict[str, str]:
        out: dict[str, str] = {}
        for key in PLACEHOLDER_KEYS:
            value = self.resolve(user_id, key)
            if value is not None:
                out[f"{constants.PLACEHOLDER_PREFIX}{key}"] = value
        return out

    def display_colour(self, user_id: int) -> int | None:
        return color_rgb(self._engine.query(user_id, QueryField.COLOR))  # type: ignore[arg-type]
