# ##############################################################################
# MODULE: PREFERENCE ENGINE
# DESCRIPTION: State machine cho preference của locator bar.
#              - First join: áp range mặc định (chỉ người chơi lần đầu).
#              - Toggle on/off: nhớ range cũ để bật lại đúng giá trị.
#              - Global range: chỉ cập nhật user đang BẬT bar.
#              - Color: phân loại token và gửi cho effect.
#              Mọi mutation đều save snapshot ngay (write-through, không rollback).
# ##############################################################################

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import enum
import logging
from typing import Mapping, Protocol

from locator.core.colors import ColorSpec, classify_color
from locator.core.effects import Effect
from locator.storage.memory import PreferenceState, UserPreference
from locator.utils import constants
from locator.utils.errors import InvalidArgumentError, PersistenceError

logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    async def save(self, preferences: Mapping[int, UserPreference], default_range: int) -> None: ...


class ToggleAction(enum.Enum):
    ON = "on"
    OFF = "off"
    TOGGLE = "toggle"
    STATUS = "status"

    @classmethod
    def parse(cls, raw: str) -> ToggleAction | None:
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


class QueryField(enum.Enum):
    EFFECTIVE_RANGE = "effective_range"
    ENABLED = "enabled"
    COLOR = "color"
    GLOBAL_RANGE = "global_range"


@dataclass(frozen=True)
class ToggleResult:
    enabled: bool
    effective_range: int
    changed: bool = False


# ------------------------------------------------------------------------------
# Class: PreferenceEngine
# Purpose: Điểm duy nhất được phép thay đổi PreferenceState.
#          Các thao tác mutation được tuần tự hoá bằng một asyncio.Lock vì
#          save() có await; global sweep cần thấy snapshot nhất quán.
# ------------------------------------------------------------------------------
class PreferenceEngine:
    def __init__(self, state: PreferenceState, store: PreferenceStore, effect: Effect) -> None:
        self._state = state
        self._store = store
        self._effect = effect
        self._lock = asyncio.Lock()

    @property
    def state(self) -> PreferenceState:
        return self._state

    @property
    def default_range(self) -> int:
        return self._state.default_range

    # --------------------------------------------------------------------------
    # Method: _persist
    # Purpose: Save snapshot. Lỗi chỉ log; state trong RAM vẫn là nguồn sự thật.
    # --------------------------------------------------------------------------
    async def _persist(self) -> bool:
        preferences, default_range = self._state.snapshot()
        try:
            await self._store.save(preferences, default_range)
        except PersistenceError:
            logger.exception("Failed to persist locator preferences (%d users)", len(preferences))
            return False
        return True

    async def flush(self) -> bool:
        async with self._lock:
            return await self._persist()

    # --------------------------------------------------------------------------
    # Method: on_first_join
    # Purpose: Host đã xác định đây là lần đầu user join. Không kiểm tra lại.
    # --------------------------------------------------------------------------
    async def on_first_join(self, user_id: int) -> None:
        async with self._lock:
            default = self._state.default_range
            existing = self._state.get(user_id)
            pref = UserPreference(remembered_range=default, receive_enabled=True)
            if existing is not None:
                # Màu độc lập với range, không reset
                pref.color = existing.color
            self._state.set(user_id, pref)

            self._effect.apply_receive_range(user_id, default)
            self._effect.apply_transmit_range(user_id, default)
            logger.info("First join user=%s: applied default range %d", user_id, default)

            await self._persist()

    # --------------------------------------------------------------------------
    # Method: set_global_range
    # Purpose: Đổi range mặc định. Chỉ user đang BẬT bar được cập nhật;
    #          user đã tắt giữ nguyên (effective 0, remembered không đổi).
    # --------------------------------------------------------------------------
    async def set_global_range(self, new_range: int) -> int:
        if isinstance(new_range, bool) or not isinstance(new_range, int):
            raise InvalidArgumentError(f"range must be an integer: {new_range!r}")
        if new_range < 0:
            raise InvalidArgumentError(f"range must be >= 0: {new_range}")
        if new_range > constants.MAX_RANGE:
            raise InvalidArgumentError(f"range must be <= {constants.MAX_RANGE}: {new_range}")

        async with self._lock:
            self._state.default_range = new_range

            updated = 0
            for user_id, pref in self._state.all().items():
                if not pref.receive_enabled:
                    continue
                pref.remembered_range = new_range
                self._effect.apply_receive_range(user_id, new_range)
                self._effect.apply_transmit_range(user_id, new_range)
                updated += 1

            logger.info("Global locator range set to %d (%d enabled users updated)", new_range, updated)
            await self._persist()
            return updated

    # --------------------------------------------------------------------------
    # Method: status
    # Purpose: Đọc thuần: (enabled, effective_range). Không save, không apply.
    # --------------------------------------------------------------------------
    def status(self, user_id: int) -> ToggleResult:
        pref = self._state.resolve(user_id)
        return ToggleResult(enabled=pref.receive_enabled, effective_range=pref.effective_range)

    async def toggle(self, user_id: int, action: ToggleAction) -> ToggleResult:
        if action is ToggleAction.STATUS:
            return self.status(user_id)

        async with self._lock:
            current = self._state.resolve(user_id)
            if action is ToggleAction.TOGGLE:
                action = ToggleAction.OFF if current.receive_enabled else ToggleAction.ON

            if action is ToggleAction.OFF:
                return await self._turn_off(user_id)
            return await self._turn_on(user_id)

    async def _turn_off(self, user_id: int) -> ToggleResult:
        existing = self._state.get(user_id)
        if existing is not None and not existing.receive_enabled:
            # Đã tắt rồi: không ghi đè remembered range
            return ToggleResult(enabled=False, effective_range=0)

        pref = existing if existing is not None else self._state.resolve(user_id)
        # remembered_range đã là range đang dùng khi bar bật
        pref.remembered_range = pref.effective_range
        pref.receive_enabled = False
        self._state.set(user_id, pref)

        # Chỉ tắt receive; transmit giữ nguyên để người khác vẫn thấy user
        self._effect.apply_receive_range(user_id, 0)
        await self._persist()
        return ToggleResult(enabled=False, effective_range=0, changed=True)

    async def _turn_on(self, user_id: int) -> ToggleResult:
        existing = self._state.get(user_id)
        if existing is None or existing.receive_enabled:
            # Đã bật: apply lại remembered range (xử lý trường hợp bị đổi từ bên ngoài)
            pref = self._state.resolve(user_id)
            self._effect.apply_receive_range(user_id, pref.remembered_range)
            return ToggleResult(enabled=True, effective_range=pref.remembered_range)

        existing.receive_enabled = True
        self._state.set(user_id, existing)
        self._effect.apply_receive_range(user_id, existing.remembered_range)
        await self._persist()
        return ToggleResult(enabled=True, effective_range=existing.remembered_range, changed=True)

    # --------------------------------------------------------------------------
    # Method: set_color
    # Purpose: Lưu màu đã phân loại rồi apply. Tên màu lạ vẫn được chấp nhận.
    # --------------------------------------------------------------------------
    async def set_color(self, user_id: int, token: str) -> ColorSpec:
        if not token or not token.strip():
            raise InvalidArgumentError("color token must not be empty")

        spec = classify_color(token)
        async with self._lock:
            existing = self._state.get(user_id)
            pref = existing if existing is not None else self._state.resolve(user_id)
            pref.color = spec
            self._state.set(user_id, pref)

            await self._persist()
            self._effect.apply_color(user_id, spec)
        return spec

    def query(self, user_id: int, field: QueryField) -> int | bool | ColorSpec:
        pref = self._state.resolve(user_id)
        if field is QueryField.EFFECTIVE_RANGE:
            return pref.effective_range
        if field is QueryField.ENABLED:
            return pref.receive_enabled
        if field is QueryField.COLOR:
            return pref.color
        if field is QueryField.GLOBAL_RANGE:
            return self._state.default_range
        raise InvalidArgumentError(f"unknown query field: {field!r}")
