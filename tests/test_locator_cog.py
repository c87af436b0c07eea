from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from locator.cogs.locator import LocatorCog
from locator.core.engine import PreferenceEngine, ToggleAction
from locator.storage.memory import PreferenceState
from locator.storage.sqlite_storage import SQLiteStorage


@pytest.mark.asyncio
async def test_member_join_applies_defaults_only_once(tmp_path: Path, effect) -> None:
    storage = SQLiteStorage(str(tmp_path / "locator.db"))
    await storage.connect()
    try:
        state = PreferenceState(default_range=250)
        engine = PreferenceEngine(state, storage, effect)
        cog = LocatorCog(SimpleNamespace(storage=storage, engine=engine))  # type: ignore[arg-type]
        member = SimpleNamespace(id=9001, bot=False)

        await cog.on_member_join(member)  # type: ignore[arg-type]
        assert effect.for_user(9001) == [("receive", 250), ("transmit", 250)]

        # Người chơi quay lại: không áp lại mặc định
        await engine.toggle(9001, ToggleAction.OFF)
        effect.calls.clear()
        await cog.on_member_join(member)  # type: ignore[arg-type]

        assert effect.calls == []
        assert state.get(9001).receive_enabled is False

        prefs, _ = await storage.load(fallback_range=250)
        assert prefs[9001].receive_enabled is False
    finally:
        await storage.close()


@pytest.mark.asyncio
async def test_member_join_ignores_bots(tmp_path: Path, effect) -> None:
    storage = SQLiteStorage(str(tmp_path / "locator.db"))
    await storage.connect()
    try:
        engine = PreferenceEngine(PreferenceState(default_range=250), storage, effect)
        cog = LocatorCog(SimpleNamespace(storage=storage, engine=engine))  # type: ignore[arg-type]

        await cog.on_member_join(SimpleNamespace(id=1, bot=True))  # type: ignore[arg-type]

        assert effect.calls == []
        assert await storage.has_ever_joined(1) is False
    finally:
        await storage.close()
