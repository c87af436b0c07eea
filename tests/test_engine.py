from __future__ import annotations

import pytest

from locator.core.colors import ColorKind
from locator.core.engine import PreferenceEngine, QueryField, ToggleAction
from locator.storage.memory import PreferenceState, UserPreference
from locator.utils import constants
from locator.utils.errors import InvalidArgumentError

ALICE = 1001
BOB = 1002


@pytest.mark.asyncio
async def test_first_join_applies_default_range(engine: PreferenceEngine, state: PreferenceState, store, effect) -> None:
    await engine.on_first_join(ALICE)

    pref = state.get(ALICE)
    assert pref is not None
    assert pref.receive_enabled is True
    assert pref.remembered_range == 250
    assert effect.for_user(ALICE) == [("receive", 250), ("transmit", 250)]
    assert ALICE in store.last[0]


@pytest.mark.asyncio
async def test_toggle_after_first_join_does_not_reapply_defaults(engine: PreferenceEngine, effect) -> None:
    await engine.on_first_join(ALICE)
    await engine.set_global_range(400)
    effect.calls.clear()

    await engine.toggle(ALICE, ToggleAction.OFF)
    await engine.toggle(ALICE, ToggleAction.ON)

    # Không có transmit: toggle không chạy lại logic first-join
    assert effect.for_user(ALICE) == [("receive", 0), ("receive", 400)]


@pytest.mark.asyncio
async def test_first_join_keeps_existing_color(engine: PreferenceEngine, state: PreferenceState) -> None:
    await engine.set_color(ALICE, "red")
    await engine.on_first_join(ALICE)

    pref = state.get(ALICE)
    assert pref is not None
    assert pref.color.kind is ColorKind.NAMED
    assert pref.color.value == "red"


@pytest.mark.asyncio
async def test_global_range_only_updates_enabled_users(engine: PreferenceEngine, state: PreferenceState, store, effect) -> None:
    state.set(ALICE, UserPreference(remembered_range=100, receive_enabled=True))
    state.set(BOB, UserPreference(remembered_range=100, receive_enabled=False))

    updated = await engine.set_global_range(300)

    assert updated == 1
    assert engine.query(ALICE, QueryField.EFFECTIVE_RANGE) == 300
    assert engine.query(BOB, QueryField.EFFECTIVE_RANGE) == 0
    assert state.get(BOB).remembered_range == 100
    assert effect.for_user(BOB) == []
    assert effect.for_user(ALICE) == [("receive", 300), ("transmit", 300)]
    # Save đúng một lần sau khi sweep
    assert len(store.saves) == 1
    assert store.last[1] == 300


@pytest.mark.asyncio
async def test_global_range_rejects_negative(engine: PreferenceEngine, state: PreferenceState, store, effect) -> None:
    state.set(ALICE, UserPreference(remembered_range=100))

    with pytest.raises(InvalidArgumentError):
        await engine.set_global_range(-5)

    assert state.default_range == 250
    assert state.get(ALICE).remembered_range == 100
    assert store.saves == []
    assert effect.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("remembered", [0, 1, 250, 10_000])
async def test_toggle_round_trip_restores_range(engine: PreferenceEngine, state: PreferenceState, remembered: int) -> None:
    state.set(ALICE, UserPreference(remembered_range=remembered))

    off = await engine.toggle(ALICE, ToggleAction.OFF)
    assert off.enabled is False
    assert off.effective_range == 0

    on = await engine.toggle(ALICE, ToggleAction.ON)
    assert on.enabled is True
    assert on.effective_range == remembered
    assert engine.query(ALICE, QueryField.EFFECTIVE_RANGE) == remembered


@pytest.mark.asyncio
async def test_toggle_off_twice_is_idempotent(engine: PreferenceEngine, state: PreferenceState, store, effect) -> None:
    state.set(ALICE, UserPreference(remembered_range=120))

    first = await engine.toggle(ALICE, ToggleAction.OFF)
    snapshot = state.get(ALICE).copy()
    saves_after_first = len(store.saves)

    second = await engine.toggle(ALICE, ToggleAction.OFF)

    assert first.changed is True
    assert second.changed is False
    assert state.get(ALICE) == snapshot
    assert state.get(ALICE).remembered_range == 120
    assert len(store.saves) == saves_after_first
    assert effect.for_user(ALICE) == [("receive", 0)]


@pytest.mark.asyncio
async def test_toggle_off_never_touches_transmit(engine: PreferenceEngine, effect) -> None:
    await engine.toggle(ALICE, ToggleAction.OFF)

    assert all(kind != "transmit" for kind, _ in effect.for_user(ALICE))


@pytest.mark.asyncio
async def test_toggle_on_when_enabled_refreshes_without_saving(engine: PreferenceEngine, state: PreferenceState, store, effect) -> None:
    state.set(ALICE, UserPreference(remembered_range=80))

    result = await engine.toggle(ALICE, ToggleAction.ON)

    assert result.enabled is True
    assert result.changed is False
    assert effect.for_user(ALICE) == [("receive", 80)]
    assert store.saves == []


@pytest.mark.asyncio
async def test_toggle_inverts(engine: PreferenceEngine, state: PreferenceState) -> None:
    state.set(ALICE, UserPreference(remembered_range=60))

    assert (await engine.toggle(ALICE, ToggleAction.TOGGLE)).enabled is False
    assert (await engine.toggle(ALICE, ToggleAction.TOGGLE)).enabled is True
    assert state.get(ALICE).remembered_range == 60


@pytest.mark.asyncio
async def test_toggle_off_unknown_user_materializes_entry(engine: PreferenceEngine, state: PreferenceState, store) -> None:
    await engine.toggle(BOB, ToggleAction.OFF)

    pref = state.get(BOB)
    assert pref is not None
    assert pref.receive_enabled is False
    assert pref.remembered_range == 250
    assert BOB in store.last[0]


@pytest.mark.asyncio
async def test_status_is_pure_read(engine: PreferenceEngine, state: PreferenceState, store, effect) -> None:
    result = await engine.toggle(ALICE, ToggleAction.STATUS)

    assert result.enabled is True
    assert result.effective_range == 250
    assert ALICE not in state
    assert store.saves == []
    assert effect.calls == []


def test_query_unknown_user_returns_defaults(engine: PreferenceEngine, state: PreferenceState, store) -> None:
    assert engine.query(BOB, QueryField.EFFECTIVE_RANGE) == 250
    assert engine.query(BOB, QueryField.ENABLED) is True
    assert engine.query(BOB, QueryField.COLOR).kind is ColorKind.UNSET
    assert engine.query(BOB, QueryField.GLOBAL_RANGE) == 250
    assert BOB not in state
    assert store.saves == []


@pytest.mark.asyncio
async def test_set_color_keeps_range_fields(engine: PreferenceEngine, state: PreferenceState, effect) -> None:
    state.set(ALICE, UserPreference(remembered_range=90, receive_enabled=False))

    spec = await engine.set_color(ALICE, "#ff00aa")

    pref = state.get(ALICE)
    assert spec.kind is ColorKind.HEX
    assert pref.color == spec
    assert pref.receive_enabled is False
    assert pref.remembered_range == 90
    assert effect.for_user(ALICE) == [("color", spec)]


@pytest.mark.asyncio
async def test_set_color_with_stored_token_is_idempotent(engine: PreferenceEngine, state: PreferenceState) -> None:
    first = await engine.set_color(ALICE, "#ff00aa")
    second = await engine.set_color(ALICE, state.get(ALICE).color.stored_token)

    assert first == second


@pytest.mark.asyncio
async def test_set_color_rejects_blank(engine: PreferenceEngine) -> None:
    with pytest.raises(InvalidArgumentError):
        await engine.set_color(ALICE, "   ")


@pytest.mark.asyncio
async def test_persistence_failure_keeps_memory_state(engine: PreferenceEngine, state: PreferenceState, store) -> None:
    store.fail = True

    await engine.set_global_range(500)
    await engine.toggle(ALICE, ToggleAction.OFF)

    assert state.default_range == 500
    assert state.get(ALICE).receive_enabled is False
    assert await engine.flush() is False


@pytest.mark.asyncio
async def test_global_range_rejects_above_max(engine: PreferenceEngine, state: PreferenceState, store, effect) -> None:
    state.set(ALICE, UserPreference(remembered_range=100))

    with pytest.raises(InvalidArgumentError):
        await engine.set_global_range(constants.MAX_RANGE + 1)

    assert state.default_range == 250
    assert state.get(ALICE).remembered_range == 100
    assert store.saves == []
    assert effect.calls == []


@pytest.mark.asyncio
async def test_global_range_accepts_max(engine: PreferenceEngine, state: PreferenceState, store) -> None:
    await engine.set_global_range(constants.MAX_RANGE)

    assert state.default_range == constants.MAX_RANGE
    assert store.last[1] == constants.MAX_RANGE
