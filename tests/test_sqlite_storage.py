from __future__ import annotations

from pathlib import Path

import aiosqlite
import pytest

from locator.core.colors import ColorKind, classify_color
from locator.core.engine import PreferenceEngine, ToggleAction
from locator.storage.memory import PreferenceState, UserPreference
from locator.storage.sqlite_storage import SQLiteStorage
from locator.utils import constants
from locator.utils.errors import PersistenceError


async def _open(tmp_path: Path) -> SQLiteStorage:
    storage = SQLiteStorage(str(tmp_path / "data" / "locator.db"))
    await storage.connect()
    return storage


async def _insert_raw(storage: SQLiteStorage, *rows: tuple[object, object, object, object]) -> None:
    async with aiosqlite.connect(storage.path) as conn:
        await conn.executemany(
            "INSERT INTO user_preferences (user_id, receive_disabled, remembered_range, color) VALUES (?, ?, ?, ?)",
            rows,
        )
        await conn.commit()


@pytest.mark.asyncio
async def test_missing_store_loads_empty(tmp_path: Path) -> None:
    storage = await _open(tmp_path)
    try:
        prefs, default_range = await storage.load(fallback_range=250)
    finally:
        await storage.close()

    assert prefs == {}
    assert default_range == 250


@pytest.mark.asyncio
async def test_save_then_load(tmp_path: Path) -> None:
    storage = await _open(tmp_path)
    try:
        await storage.save(
            {
                1: UserPreference(remembered_range=100),
                2: UserPreference(remembered_range=75, receive_enabled=False, color=classify_color("#00ff00")),
            },
            300,
        )
        prefs, default_range = await storage.load(fallback_range=250)
    finally:
        await storage.close()

    assert default_range == 300
    assert prefs[1] == UserPreference(remembered_range=100)
    assert prefs[2].receive_enabled is False
    assert prefs[2].remembered_range == 75
    assert prefs[2].color.kind is ColorKind.HEX
    assert prefs[2].color.raw == "#00ff00"


@pytest.mark.asyncio
async def test_save_overwrites_previous_rows(tmp_path: Path) -> None:
    storage = await _open(tmp_path)
    try:
        await storage.save({1: UserPreference(remembered_range=100)}, 250)
        await storage.save({1: UserPreference(remembered_range=100, receive_enabled=False)}, 250)
        prefs, _ = await storage.load(fallback_range=250)
    finally:
        await storage.close()

    assert prefs[1].receive_enabled is False


@pytest.mark.asyncio
async def test_malformed_identity_is_skipped(tmp_path: Path) -> None:
    storage = await _open(tmp_path)
    try:
        await _insert_raw(
            storage,
            ("not-a-snowflake", 0, 100, None),
            ("42", 1, 80, "red"),
        )
        prefs, _ = await storage.load(fallback_range=250)
    finally:
        await storage.close()

    assert list(prefs) == [42]
    assert prefs[42].receive_enabled is False
    assert prefs[42].remembered_range == 80
    assert prefs[42].color.value == "red"


@pytest.mark.asyncio
async def test_malformed_fields_fall_back(tmp_path: Path) -> None:
    storage = await _open(tmp_path)
    try:
        await storage.save({}, 400)
        await _insert_raw(
            storage,
            ("7", "maybe", "far", None),
            ("8", 0, -30, None),
        )
        prefs, default_range = await storage.load(fallback_range=250)
    finally:
        await storage.close()

    assert default_range == 400
    assert prefs[7].receive_enabled is True
    assert prefs[7].remembered_range == 400
    # Range âm bị kẹp về 0
    assert prefs[8].remembered_range == 0


@pytest.mark.asyncio
async def test_malformed_default_range_uses_fallback(tmp_path: Path) -> None:
    storage = await _open(tmp_path)
    try:
        async with aiosqlite.connect(storage.path) as conn:
            await conn.execute("INSERT INTO global_config (key, value) VALUES ('default_range', 'lots')")
            await conn.commit()
        _, default_range = await storage.load(fallback_range=250)
    finally:
        await storage.close()

    assert default_range == 250


@pytest.mark.asyncio
async def test_joined_users(tmp_path: Path) -> None:
    storage = await _open(tmp_path)
    try:
        assert await storage.has_ever_joined(5) is False
        assert await storage.mark_joined(5) is True
        assert await storage.mark_joined(5) is False
        assert await storage.has_ever_joined(5) is True
        stats = await storage.get_db_stats()
    finally:
        await storage.close()

    assert stats["joined_users"] == 1


@pytest.mark.asyncio
async def test_save_without_connection_raises_persistence_error(tmp_path: Path) -> None:
    storage = SQLiteStorage(str(tmp_path / "locator.db"))

    with pytest.raises(PersistenceError):
        await storage.save({}, 250)


@pytest.mark.asyncio
async def test_save_out_of_range_value_raises_persistence_error(tmp_path: Path) -> None:
    storage = await _open(tmp_path)
    try:
        # Số quá lớn với INTEGER của SQLite -> OverflowError từ driver
        with pytest.raises(PersistenceError):
            await storage.save({1: UserPreference(remembered_range=10**20)}, 250)

        # Kết nối vẫn dùng được sau khi rollback
        await storage.save({1: UserPreference(remembered_range=100)}, 300)
        prefs, default_range = await storage.load(fallback_range=250)
    finally:
        await storage.close()

    assert prefs[1].remembered_range == 100
    assert default_range == 300


@pytest.mark.asyncio
async def test_engine_survives_unsavable_range(tmp_path: Path, effect) -> None:
    storage = await _open(tmp_path)
    try:
        state = PreferenceState(default_range=250)
        engine = PreferenceEngine(state, storage, effect)
        await engine.on_first_join(1)
        state.get(1).remembered_range = 10**20

        # Lỗi save chỉ được log; state trong RAM giữ nguyên
        result = await engine.toggle(1, ToggleAction.OFF)
        assert result.changed is True
        assert await engine.flush() is False
        assert state.get(1).receive_enabled is False

        # Sửa lại giá trị thì save chạy bình thường
        state.get(1).remembered_range = 400
        assert await engine.flush() is True
        prefs, _ = await storage.load(fallback_range=250)
    finally:
        await storage.close()

    assert prefs[1].remembered_range == 400
    assert prefs[1].receive_enabled is False


@pytest.mark.asyncio
async def test_oversized_stored_range_is_clamped(tmp_path: Path) -> None:
    storage = await _open(tmp_path)
    try:
        await _insert_raw(storage, ("9", 0, 3_000_000_000, None))
        async with aiosqlite.connect(storage.path) as conn:
            await conn.execute("INSERT INTO global_config (key, value) VALUES ('default_range', '99999999999999999999')")
            await conn.commit()
        prefs, default_range = await storage.load(fallback_range=250)
    finally:
        await storage.close()

    assert prefs[9].remembered_range == constants.MAX_RANGE
    assert default_range == constants.MAX_RANGE
