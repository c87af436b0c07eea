# ##############################################################################
# MODULE: COMMAND ROUTER
# DESCRIPTION: Parse tham số lệnh và map sang thao tác của PreferenceEngine.
#              Không phụ thuộc discord; cog chỉ chuyển input vào đây và gửi
#              message trả về (None = không gửi gì).
# ##############################################################################

from __future__ import annotations

from locator.core.engine import PreferenceEngine, ToggleAction
from locator.core.messages import Messages
from locator.core.query import QueryFacade
from locator.utils import constants
from locator.utils.errors import InvalidArgumentError


# ------------------------------------------------------------------------------
# Helper: parse_range
# Purpose: "300" -> 300. Không phải số, số âm hoặc vượt MAX_RANGE
#          -> InvalidArgumentError.
# ------------------------------------------------------------------------------
def parse_range(raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError as e:
        raise InvalidArgumentError(f"not a number: {raw!r}") from e
    if value < 0:
        raise InvalidArgumentError(f"negative range: {value}")
    if value > constants.MAX_RANGE:
        raise InvalidArgumentError(f"range too large: {value}")
    return value


class CommandRouter:
    def __init__(self, engine: PreferenceEngine, messages: Messages, query: QueryFacade) -> None:
        self._engine = engine
        self._messages = messages
        self._query = query

    def _reply(self, key: str, user_id: int | None = None, **params: object) -> str | None:
        merged: dict[str, object] = {}
        if user_id is not None:
            merged.update(self._query.placeholders(user_id))
        merged.update(params)
        return self._messages.format(key, merged)

    # --------------------------------------------------------------------------
    # Command: /locatorrange <blocks> (admin)
    # --------------------------------------------------------------------------
    async def locator_range(self, raw: str | None, *, is_admin: bool, label: str = "locatorrange") -> str | None:
        if not is_admin:
            return self._reply("no-permission")

        if raw is None or not raw.strip():
            return self._reply("range-usage", label=label)

        try:
            new_range = parse_range(raw)
        except InvalidArgumentError:
            return self._reply("invalid-number", input=raw.strip())

        await self._engine.set_global_range(new_range)
        return self._reply("range-set", range=new_range)

    # --------------------------------------------------------------------------
    # Command: /locatorbar <on|off|toggle|status>
    # --------------------------------------------------------------------------
    async def locator_bar(self, user_id: int, raw: str | None, *, label: str = "locatorbar") -> str | None:
        action = ToggleAction.parse(raw) if raw else None
        if action is None:
            return self._reply("bar-usage", user_id, label=label)

        result = await self._engine.toggle(user_id, action)

        if action is ToggleAction.STATUS:
            if result.enabled:
                return self._reply("bar-status-on", user_id, range=result.effective_range)
            return self._reply("bar-status-off", user_id)

        return self._reply("bar-on" if result.enabled else "bar-off", user_id)

    # --------------------------------------------------------------------------
    # Command: /locatorcolor <named|#RRGGBB|RRGGBB|reset>
    # --------------------------------------------------------------------------
    async def locator_color(self, user_id: int, raw: str | None, *, label: str = "locatorcolor") -> str | None:
        if raw is None or not raw.strip() or len(raw.split()) != 1:
            return self._reply("color-usage", user_id, label=label)

        token = raw.strip()
        await self._engine.set_color(user_id, token)
        return self._reply("color-updated", user_id, input=token)
