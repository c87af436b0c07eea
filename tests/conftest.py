from __future__ import annotations

from typing import Mapping

import pytest

from locator.core.colors import ColorSpec
from locator.core.engine import PreferenceEngine
from locator.storage.memory import PreferenceState, UserPreference
from locator.utils.errors import PersistenceError


class RecordingEffect:
    def __init__(self) -> None:
        self.calls: list[tuple[str, int, object]] = []

    def apply_receive_range(self, user_id: int, value: int) -> None:
        self.calls.append(("receive", user_id, value))

    def apply_transmit_range(self, user_id: int, value: int) -> None:
        self.calls.append(("transmit", user_id, value))

    def apply_color(self, user_id: int, color: ColorSpec) -> None:
        self.calls.append(("color", user_id, color))

    def for_user(self, user_id: int) -> list[tuple[str, object]]:
        return [(kind, value) for kind, uid, value in self.calls if uid == user_id]


class MemoryStore:
    def __init__(self) -> None:
        self.saves: list[tuple[dict[int, UserPreference], int]] = []
        self.fail = False

    async def save(self, preferences: Mapping[int, UserPreference], default_range: int) -> None:
        if self.fail:
            raise PersistenceError("disk full")
        self.saves.append((dict(preferences), default_range))

    @property
    def last(self) -> tuple[dict[int, UserPreference], int]:
        return self.saves[-1]


@pytest.fixture
def effect() -> RecordingEffect:
    return RecordingEffect()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def state() -> PreferenceState:
    return PreferenceState(default_range=250)


@pytest.fixture
def engine(state: PreferenceState, store: MemoryStore, effect: RecordingEffect) -> PreferenceEngine:
    return PreferenceEngine(state, store, effect)
