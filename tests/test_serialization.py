"""Snapshots JSON de GameState et payloads d'actions."""

from __future__ import annotations

import json

import pytest

from settlers.engine.actions import (
    BankTrade,
    BuildRoad,
    EndTurn,
    MoveRobber,
    PlaceSetupSettlement,
    PlayYearOfPlenty,
    RollDice,
)
from settlers.engine.rules import Settings
from settlers.engine.serialize import (
    SCHEMA_VERSION,
    action_from_payload,
    action_to_payload,
    snapshot_to_state,
    state_to_snapshot,
)
from settlers.engine.turn import TurnPhaseStateMachine, get_valid_actions, initialize_game

from .helpers import PLAYER_IDS, ed, hx, vx


def _played_state(steps=12):
    machine = TurnPhaseStateMachine(clock=lambda: 0.0)
    state = initialize_game(PLAYER_IDS, Settings(seed=5))
    for _ in range(steps):
        player_id = state.current_player_id
        state = machine.process_action(state, get_valid_actions(state, player_id)[0], player_id).new_state
    return state


class TestSnapshot:
    """Aller-retour complet via JSON."""

    def test_json_round_trip(self):
        state = _played_state()
        snapshot = state_to_snapshot(state)
        assert snapshot["schema_version"] == SCHEMA_VERSION

        restored = snapshot_to_state(json.loads(json.dumps(snapshot)))

        assert json.loads(json.dumps(state_to_snapshot(restored))) == json.loads(json.dumps(snapshot))
        assert restored.board.robber_hex == state.board.robber_hex
        assert restored.roads == state.roads
        assert restored.buildings == state.buildings
        assert restored.phase is state.phase

    def test_restored_generator_continues_identically(self):
        state = _played_state()
        restored = snapshot_to_state(json.loads(json.dumps(state_to_snapshot(state))))

        assert state.rng().integers(1_000_000) == restored.rng().integers(1_000_000)

    def test_unknown_schema_version(self):
        snapshot = state_to_snapshot(_played_state(steps=0))
        snapshot["schema_version"] = "0.1"

        with pytest.raises(ValueError, match="Unsupported schema_version"):
            snapshot_to_state(snapshot)


@pytest.mark.parametrize(
    "action, payload",
    [
        (EndTurn(), {"type": "END_TURN"}),
        (RollDice(), {"type": "ROLL_DICE"}),
        (MoveRobber(hex=hx(1, -1)), {"type": "MOVE_ROBBER", "hex": "1,-1"}),
        (BuildRoad(edge=ed(0, 0, "NE")), {"type": "BUILD_ROAD", "edge": "0,0:NE"}),
        (
            PlaceSetupSettlement(vertex=vx(-1, 2, "S")),
            {"type": "PLACE_SETUP_SETTLEMENT", "vertex": "-1,2:S"},
        ),
        (
            BankTrade(give={"ORE": 4}, receive={"WOOL": 1}),
            {"type": "BANK_TRADE", "give": {"ORE": 4}, "receive": {"WOOL": 1}},
        ),
        (
            PlayYearOfPlenty(resources=("ORE", "ORE")),
            {"type": "PLAY_YEAR_OF_PLENTY", "resources": ["ORE", "ORE"]},
        ),
    ],
)
def test_action_payloads(action, payload):
    assert action_to_payload(action) == payload
    assert action_from_payload(payload) == action


def test_forced_dice_never_cross_the_wire():
    assert action_to_payload(RollDice(forced_value=(3, 4))) == {"type": "ROLL_DICE"}
    assert action_from_payload({"type": "ROLL_DICE", "forced_value": [4, 4]}) == RollDice()


def test_payload_defaults_for_missing_fields():
    assert action_from_payload({"type": "PLAY_MONOPOLY"}).resource is None


def test_unknown_action_type():
    with pytest.raises(ValueError, match="Unknown action type"):
        action_from_payload({"type": "FLY_AWAY"})
