"""Tests de la machine à états du tour (`process_action`)."""

from __future__ import annotations

import pytest

from settlers.engine.actions import (
    BuildRoad,
    CompleteRoadBuilding,
    DiscardResources,
    EndTurn,
    MoveRobber,
    PlayKnight,
    PlayRoadBuilding,
    PlayYearOfPlenty,
    RollDice,
    SelectYearOfPlenty,
    SkipSteal,
    StealResource,
)
from settlers.engine.errors import InvariantViolation, fail_invariant
from settlers.engine.ledger import ResourceLedger
from settlers.engine.state import Phase
from settlers.engine.turn import TurnPhaseStateMachine, get_valid_actions

from .helpers import (
    ROAD_CHAIN,
    add_building,
    add_card,
    add_roads,
    assert_resources_conserved,
    ed,
    give,
    hx,
    make_state,
    vx,
)


def _machine(clock_value=0.0, ledger=None):
    return TurnPhaseStateMachine(ledger=ledger, clock=lambda: clock_value)


def _apply(machine, state, action, player_id):
    result = machine.process_action(state, action, player_id)
    assert result.success, result.error
    return result.new_state


class TestGuards:
    """Contrôles communs avant le handler."""

    def test_game_over_rejects_everything(self):
        state = make_state()
        state.phase = Phase.ENDED
        result = _machine().process_action(state, EndTurn(), "alice")

        assert not result.success
        assert result.error == "Game is over"
        assert result.new_state is state

    def test_unknown_player(self):
        result = _machine().process_action(make_state(), EndTurn(), "mallory")
        assert result.error == "Unknown player"

    def test_phase_gate(self):
        state = make_state(phase=Phase.ROLL)
        result = _machine().process_action(state, BuildRoad(edge=ed(0, 0, "NE")), "alice")

        assert not result.success
        assert result.error == "Action BUILD_ROAD is not valid in the current phase (roll)"

    def test_only_current_player_may_end_turn(self):
        result = _machine().process_action(make_state(), EndTurn(), "bob")
        assert result.error == "Action END_TURN is not valid in the current phase (main)"

    def test_rejected_action_returns_the_input_state(self):
        state = make_state()
        result = _machine().process_action(state, BuildRoad(edge=ed(0, 0, "NE")), "alice")

        assert not result.success
        assert result.error == "Road must connect to your network"
        assert result.new_state is state


class TestStamping:
    """Version, horodatage et journal."""

    def test_success_bumps_version_and_logs(self):
        state = make_state()
        new_state = _apply(_machine(clock_value=42.0), state, EndTurn(), "alice")

        assert new_state.version == state.version + 1
        assert new_state.last_updated == 42.0
        entry = new_state.log[-1]
        assert entry.action == "END_TURN"
        assert entry.player_id == "alice"
        assert entry.version == new_state.version
        assert state.log == []

    def test_log_details_use_canonical_keys(self):
        state = make_state(phase=Phase.ROBBER_MOVE)
        new_state = _apply(_machine(), state, MoveRobber(hex=hx(1, 0)), "alice")

        assert new_state.log[-1].details == {"hex": "1,0"}

    def test_input_state_is_never_mutated(self):
        state = make_state()
        add_building(state, "alice", vx(0, 0, "N"))
        give(state, "alice", BRICK=1, LUMBER=1)

        new_state = _apply(_machine(), state, BuildRoad(edge=ed(0, 0, "NE")), "alice")

        assert state.roads == []
        assert state.player("alice").resources["BRICK"] == 1
        assert new_state.player("alice").resources["BRICK"] == 0
        assert_resources_conserved(new_state)


class TestDiceAndRobber:
    """Lancer de dés, défausse et voleur."""

    def test_invalid_forced_roll(self):
        state = make_state(phase=Phase.ROLL)
        result = _machine().process_action(state, RollDice(forced_value=(0, 7)), "alice")
        assert result.error == "Dice values must be between 1 and 6"

    def test_regular_roll_goes_to_main(self):
        state = make_state(phase=Phase.ROLL)
        new_state = _apply(_machine(), state, RollDice(forced_value=(2, 3)), "alice")

        assert new_state.phase is Phase.MAIN
        assert new_state.last_roll == (2, 3)
        assert new_state.dice_rolled_this_turn

    def test_random_roll_advances_the_generator(self):
        state = make_state(phase=Phase.ROLL)
        new_state = _apply(_machine(), state, RollDice(), "alice")

        low, high = new_state.last_roll
        assert 1 <= low <= 6 and 1 <= high <= 6
        assert new_state.rng_state != state.rng_state

    def test_rolls_are_recorded_in_history(self):
        machine = _machine()
        state = make_state(phase=Phase.ROLL)
        state = _apply(machine, state, RollDice(forced_value=(2, 3)), "alice")
        state = _apply(machine, state, EndTurn(), "alice")
        state = _apply(machine, state, RollDice(forced_value=(1, 4)), "bob")

        assert state.dice_history == [5, 5]
        distribution = state.dice_distribution()
        assert distribution[5] == 2
        assert sum(distribution.values()) == 2
        assert sorted(distribution) == list(range(2, 13))

    def test_seven_without_large_hands_goes_to_robber(self):
        state = make_state(phase=Phase.ROLL)
        new_state = _apply(_machine(), state, RollDice(forced_value=(3, 4)), "alice")

        assert new_state.phase is Phase.ROBBER_MOVE
        assert new_state.pending_discards == {}

    def test_seven_discard_robber_steal_sequence(self):
        machine = _machine()
        state = make_state(phase=Phase.ROLL)
        add_building(state, "bob", vx(1, 0, "N"))
        give(state, "bob", ORE=6, WOOL=2)

        state = _apply(machine, state, RollDice(forced_value=(3, 4)), "alice")
        assert state.phase is Phase.DISCARD
        assert state.pending_discards == {"bob": 4}
        assert get_valid_actions(state, "alice") == []
        blocked = machine.process_action(state, MoveRobber(hex=hx(1, 0)), "alice")
        assert not blocked.success

        wrong = machine.process_action(state, DiscardResources(resources={"ORE": 3}), "bob")
        assert wrong.error == "Must discard exactly 4 cards"

        state = _apply(machine, state, DiscardResources(resources={"ORE": 4}), "bob")
        assert state.phase is Phase.ROBBER_MOVE
        assert state.player("bob").resource_count == 4

        state = _apply(machine, state, MoveRobber(hex=hx(1, 0)), "alice")
        assert state.phase is Phase.ROBBER_STEAL
        assert StealResource(victim_id="bob") in get_valid_actions(state, "alice")

        state = _apply(machine, state, StealResource(victim_id="bob"), "alice")
        assert state.phase is Phase.MAIN
        assert state.player("alice").resource_count == 1
        assert state.player("bob").resource_count == 3
        assert_resources_conserved(state)

    def test_random_discard_when_no_choice_is_given(self):
        machine = _machine()
        state = make_state(phase=Phase.ROLL)
        give(state, "bob", ORE=5, GRAIN=5)

        state = _apply(machine, state, RollDice(forced_value=(6, 1)), "alice")
        state = _apply(machine, state, DiscardResources(), "bob")

        assert state.player("bob").resource_count == 5
        assert state.phase is Phase.ROBBER_MOVE
        assert_resources_conserved(state)

    def test_skip_steal(self):
        machine = _machine()
        state = make_state(phase=Phase.ROBBER_MOVE)
        state.dice_rolled_this_turn = True
        add_building(state, "bob", vx(1, 0, "N"))
        give(state, "bob", ORE=1)

        state = _apply(machine, state, MoveRobber(hex=hx(1, 0)), "alice")
        state = _apply(machine, state, SkipSteal(), "alice")
        assert state.phase is Phase.MAIN
        assert state.player("bob").resource_count == 1

    def test_knight_before_roll_returns_to_roll(self):
        machine = _machine()
        state = make_state(phase=Phase.ROLL)
        add_card(state, "alice", "KNIGHT")

        state = _apply(machine, state, PlayKnight(), "alice")
        assert state.phase is Phase.ROBBER_MOVE
        state = _apply(machine, state, MoveRobber(hex=hx(2, -2)), "alice")

        assert state.phase is Phase.ROLL
        assert state.player("alice").army_size == 1
        assert get_valid_actions(state, "alice") == [RollDice()]


class TestDevelopmentFlow:
    """Cartes jouées via la machine à états."""

    def test_road_building_flow(self):
        machine = _machine()
        state = make_state()
        add_building(state, "alice", vx(0, 0, "N"))
        add_card(state, "alice", "ROAD_BUILDING")

        state = _apply(machine, state, PlayRoadBuilding(), "alice")
        assert state.phase is Phase.ROAD_BUILDING
        early = machine.process_action(state, CompleteRoadBuilding(), "alice")
        assert early.error == "Free roads can still be placed"

        state = _apply(machine, state, BuildRoad(edge=ed(0, 0, "NE")), "alice")
        state = _apply(machine, state, BuildRoad(edge=ed(0, 0, "E")), "alice")
        assert state.phase is Phase.MAIN
        assert state.player("alice").resource_count == 0
        assert len(state.roads_of("alice")) == 2

    def test_year_of_plenty_follow_up_selection(self):
        machine = _machine()
        state = make_state()
        add_card(state, "alice", "YEAR_OF_PLENTY")

        state = _apply(machine, state, PlayYearOfPlenty(), "alice")
        assert state.phase is Phase.YEAR_OF_PLENTY
        assert len(get_valid_actions(state, "alice")) == 15

        state = _apply(machine, state, SelectYearOfPlenty(resources=("ORE", "WOOL")), "alice")
        assert state.phase is Phase.MAIN
        assert state.player("alice").resources == {"BRICK": 0, "LUMBER": 0, "WOOL": 1, "GRAIN": 0, "ORE": 1}


class TestTurnFlow:
    """Fin de tour et titres recalculés."""

    def test_end_turn_rotates_and_resets(self):
        state = make_state()
        state.player("alice").has_played_dev_card = True
        new_state = _apply(_machine(), state, EndTurn(), "alice")

        assert new_state.current_player_id == "bob"
        assert new_state.turn == 2
        assert new_state.phase is Phase.ROLL
        assert not new_state.dice_rolled_this_turn
        assert new_state.last_roll is None
        assert not new_state.player("alice").has_played_dev_card

    def test_building_a_road_updates_longest_road(self):
        state = make_state()
        add_building(state, "alice", vx(0, 0, "N"))
        add_roads(state, "alice", ROAD_CHAIN[:4])
        give(state, "alice", BRICK=1, LUMBER=1)

        new_state = _apply(_machine(), state, BuildRoad(edge=ROAD_CHAIN[4]), "alice")

        assert new_state.longest_road_holder == "alice"
        assert new_state.player("alice").longest_road_length == 5


class _BrokenLedger(ResourceLedger):
    def debit(self, state, player_id, cost):
        fail_invariant("Ledger corrupted", player_id=player_id)


class _RefusingLedger(ResourceLedger):
    def debit(self, state, player_id, cost):
        raise ValueError("Ledger offline")


def _road_ready_state():
    state = make_state()
    add_building(state, "alice", vx(0, 0, "N"))
    give(state, "alice", BRICK=1, LUMBER=1)
    return state


def test_invariant_violation_is_fatal():
    machine = _machine(ledger=_BrokenLedger())
    with pytest.raises(InvariantViolation, match="Ledger corrupted"):
        machine.process_action(_road_ready_state(), BuildRoad(edge=ed(0, 0, "NE")), "alice")


def test_value_error_becomes_failed_result():
    state = _road_ready_state()
    result = _machine(ledger=_RefusingLedger()).process_action(state, BuildRoad(edge=ed(0, 0, "NE")), "alice")

    assert not result.success
    assert result.error == "Ledger offline"
    assert result.new_state is state


def test_failure_after_the_handler_becomes_failed_result():
    def stopped_clock():
        raise RuntimeError("Clock unavailable")

    state = make_state()
    result = TurnPhaseStateMachine(clock=stopped_clock).process_action(state, EndTurn(), "alice")

    assert not result.success
    assert result.error == "Clock unavailable"
    assert result.new_state is state
