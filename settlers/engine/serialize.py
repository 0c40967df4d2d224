"""Outils de sérialisation pour GameState et les actions.

- Snapshot JSON-friendly (listes/dicts primitifs, coordonnées en clés texte)
- Restauration complète de GameState, y compris plateau et générateur numpy
- Actions <-> payload `{"type": ..., ...}` pour la couche réseau
"""

from __future__ import annotations

import copy
from dataclasses import fields
from typing import Any, Dict, Mapping

from settlers.engine.actions import ACTION_TYPES, Action
from settlers.engine.board import Board, Port, Terrain, Tile
from settlers.engine.coords import (
    EdgeCoord,
    HexCoord,
    VertexCoord,
    edge_key,
    hex_key,
    parse_edge_key,
    parse_hex_key,
    parse_vertex_key,
    vertex_key,
)
from settlers.engine.rules import Settings
from settlers.engine.state import (
    Building,
    DevelopmentCard,
    GameState,
    LogEntry,
    Phase,
    Player,
    Road,
    SetupProgress,
    TradeOffer,
)

SCHEMA_VERSION = "1.0.0"


def state_to_snapshot(state: GameState) -> Dict[str, Any]:
    """Convertit un GameState en snapshot JSON-friendly."""

    settings = state.settings
    return {
        "schema_version": SCHEMA_VERSION,
        "settings": {
            "victory_points": settings.victory_points,
            "turn_timer": settings.turn_timer,
            "discard_limit": settings.discard_limit,
            "friendly_robber": settings.friendly_robber,
            "player_count": settings.player_count,
            "ring_count": settings.ring_count,
            "seed": settings.seed,
        },
        "board": _serialize_board(state.board),
        "players": [_serialize_player(player) for player in state.players],
        "turn_order": list(state.turn_order),
        "phase": state.phase.value,
        "current_player_id": state.current_player_id,
        "turn": state.turn,
        "version": state.version,
        "last_updated": state.last_updated,
        "buildings": [
            {
                "building_id": b.building_id,
                "building_type": b.building_type,
                "owner_id": b.owner_id,
                "vertex": vertex_key(b.vertex),
                "has_wall": b.has_wall,
            }
            for b in state.buildings
        ],
        "roads": [
            {"road_id": r.road_id, "owner_id": r.owner_id, "edge": edge_key(r.edge)}
            for r in state.roads
        ],
        "robber_hex": hex_key(state.robber_hex) if state.robber_hex is not None else None,
        "bank": dict(state.bank),
        "development_deck": [_serialize_card(card) for card in state.development_deck],
        "longest_road_holder": state.longest_road_holder,
        "largest_army_holder": state.largest_army_holder,
        "trade_offers": [_serialize_offer(offer) for offer in state.trade_offers],
        "next_offer_seq": state.next_offer_seq,
        "setup": _serialize_setup(state.setup),
        "last_roll": list(state.last_roll) if state.last_roll is not None else None,
        "dice_history": list(state.dice_history),
        "dice_rolled_this_turn": state.dice_rolled_this_turn,
        "pending_discards": dict(state.pending_discards),
        "road_building_remaining": state.road_building_remaining,
        "winner_id": state.winner_id,
        "log": [
            {
                "version": entry.version,
                "turn": entry.turn,
                "player_id": entry.player_id,
                "action": entry.action,
                "details": copy.deepcopy(entry.details),
            }
            for entry in state.log
        ],
        "rng_state": copy.deepcopy(state.rng_state),
    }


def snapshot_to_state(snapshot: Mapping[str, Any]) -> GameState:
    """Reconstruit un GameState à partir d'un snapshot."""

    version = snapshot.get("schema_version")
    if version != SCHEMA_VERSION:
        raise ValueError(f"Unsupported schema_version: {version!r}")

    robber = snapshot.get("robber_hex")
    last_roll = snapshot.get("last_roll")
    return GameState(
        board=_deserialize_board(snapshot["board"]),
        settings=Settings(**snapshot["settings"]),
        players=[_deserialize_player(data) for data in snapshot["players"]],
        turn_order=list(snapshot["turn_order"]),
        phase=Phase(snapshot["phase"]),
        current_player_id=str(snapshot["current_player_id"]),
        turn=int(snapshot.get("turn", 0)),
        version=int(snapshot.get("version", 1)),
        last_updated=float(snapshot.get("last_updated", 0.0)),
        buildings=[
            Building(
                building_id=data["building_id"],
                building_type=data["building_type"],
                owner_id=data["owner_id"],
                vertex=parse_vertex_key(data["vertex"]),
                has_wall=bool(data.get("has_wall", False)),
            )
            for data in snapshot.get("buildings", [])
        ],
        roads=[
            Road(road_id=data["road_id"], owner_id=data["owner_id"], edge=parse_edge_key(data["edge"]))
            for data in snapshot.get("roads", [])
        ],
        robber_hex=parse_hex_key(robber) if robber is not None else None,
        bank=dict(snapshot["bank"]),
        development_deck=[_deserialize_card(data) for data in snapshot.get("development_deck", [])],
        longest_road_holder=snapshot.get("longest_road_holder"),
        largest_army_holder=snapshot.get("largest_army_holder"),
        trade_offers=[_deserialize_offer(data) for data in snapshot.get("trade_offers", [])],
        next_offer_seq=int(snapshot.get("next_offer_seq", 1)),
        setup=_deserialize_setup(snapshot.get("setup")),
        last_roll=(int(last_roll[0]), int(last_roll[1])) if last_roll else None,
        dice_history=[int(total) for total in snapshot.get("dice_history", [])],
        dice_rolled_this_turn=bool(snapshot.get("dice_rolled_this_turn", False)),
        pending_discards={
            str(pid): int(amount) for pid, amount in snapshot.get("pending_discards", {}).items()
        },
        road_building_remaining=int(snapshot.get("road_building_remaining", 0)),
        winner_id=snapshot.get("winner_id"),
        log=[
            LogEntry(
                version=int(entry["version"]),
                turn=int(entry["turn"]),
                player_id=entry["player_id"],
                action=entry["action"],
                details=dict(entry.get("details", {})),
            )
            for entry in snapshot.get("log", [])
        ],
        rng_state=copy.deepcopy(snapshot.get("rng_state")),
    )


# -- Actions --

def _plain(value: Any) -> Any:
    if isinstance(value, HexCoord):
        return hex_key(value)
    if isinstance(value, VertexCoord):
        return vertex_key(value)
    if isinstance(value, EdgeCoord):
        return edge_key(value)
    if isinstance(value, tuple):
        return [_plain(item) for item in value]
    if isinstance(value, Mapping):
        return {key: int(amount) for key, amount in value.items()}
    return value


_FIELD_PARSERS = {
    "hex": parse_hex_key,
    "vertex": parse_vertex_key,
    "edge": parse_edge_key,
}


def action_to_payload(action: Action) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"type": action.type}
    for f in fields(action):
        if f.metadata.get("local_only"):
            continue
        payload[f.name] = _plain(getattr(action, f.name))
    return payload


def action_from_payload(payload: Mapping[str, Any]) -> Action:
    """Reconstruit une action; lève ValueError si le type est inconnu.

    Les champs réservés aux tests (`local_only`) sont ignorés.
    """

    action_type = payload.get("type")
    cls = ACTION_TYPES.get(action_type)  # type: ignore[arg-type]
    if cls is None:
        raise ValueError(f"Unknown action type: {action_type!r}")

    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        if f.metadata.get("local_only") or f.name not in payload:
            continue
        value = payload[f.name]
        parser = _FIELD_PARSERS.get(f.name)
        if parser is not None and value is not None:
            value = parser(value)
        elif isinstance(value, list):
            value = tuple(value)
        elif isinstance(value, Mapping):
            value = dict(value)
        kwargs[f.name] = value
    return cls(**kwargs)


# -- Helpers --

def _serialize_board(board: Board) -> Dict[str, Any]:
    return {
        "tiles": [
            {
                "coord": hex_key(tile.coord),
                "terrain": tile.terrain.value,
                "number": tile.number,
                "has_robber": tile.has_robber,
            }
            for tile in board.tiles
        ],
        "ports": [
            {"port_type": port.port_type, "vertices": [vertex_key(v) for v in port.vertices]}
            for port in board.ports
        ],
    }


def _deserialize_board(payload: Mapping[str, Any]) -> Board:
    tiles = tuple(
        Tile(
            coord=parse_hex_key(data["coord"]),
            terrain=Terrain(data["terrain"]),
            number=data.get("number"),
            has_robber=bool(data.get("has_robber", False)),
        )
        for data in payload["tiles"]
    )
    ports = tuple(
        Port(
            port_type=data["port_type"],
            vertices=tuple(parse_vertex_key(key) for key in data["vertices"]),  # type: ignore[arg-type]
        )
        for data in payload.get("ports", [])
    )
    return Board(tiles=tiles, ports=ports)


def _serialize_card(card: DevelopmentCard) -> Dict[str, Any]:
    return {
        "card_id": card.card_id,
        "card_type": card.card_type,
        "turn_bought": card.turn_bought,
        "is_played": card.is_played,
    }


def _deserialize_card(data: Mapping[str, Any]) -> DevelopmentCard:
    return DevelopmentCard(
        card_id=data["card_id"],
        card_type=data["card_type"],
        turn_bought=data.get("turn_bought"),
        is_played=bool(data.get("is_played", False)),
    )


def _serialize_player(player: Player) -> Dict[str, Any]:
    return {
        "player_id": player.player_id,
        "color": player.color,
        "resources": dict(player.resources),
        "development_cards": [_serialize_card(card) for card in player.development_cards],
        "roads_remaining": player.roads_remaining,
        "settlements_remaining": player.settlements_remaining,
        "cities_remaining": player.cities_remaining,
        "army_size": player.army_size,
        "longest_road_length": player.longest_road_length,
        "has_played_dev_card": player.has_played_dev_card,
        "total_resources_collected": player.total_resources_collected,
        "total_trades_made": player.total_trades_made,
        "times_robbed": player.times_robbed,
        "times_was_robbed": player.times_was_robbed,
    }


def _deserialize_player(data: Mapping[str, Any]) -> Player:
    return Player(
        player_id=str(data["player_id"]),
        color=str(data["color"]),
        resources=dict(data["resources"]),
        development_cards=[_deserialize_card(card) for card in data.get("development_cards", [])],
        roads_remaining=int(data["roads_remaining"]),
        settlements_remaining=int(data["settlements_remaining"]),
        cities_remaining=int(data["cities_remaining"]),
        army_size=int(data.get("army_size", 0)),
        longest_road_length=int(data.get("longest_road_length", 0)),
        has_played_dev_card=bool(data.get("has_played_dev_card", False)),
        total_resources_collected=int(data.get("total_resources_collected", 0)),
        total_trades_made=int(data.get("total_trades_made", 0)),
        times_robbed=int(data.get("times_robbed", 0)),
        times_was_robbed=int(data.get("times_was_robbed", 0)),
    )


def _serialize_offer(offer: TradeOffer) -> Dict[str, Any]:
    return {
        "offer_id": offer.offer_id,
        "from_player_id": offer.from_player_id,
        "to_player_id": offer.to_player_id,
        "offering": dict(offer.offering),
        "requesting": dict(offer.requesting),
        "declined_by": list(offer.declined_by),
        "is_active": offer.is_active,
        "counter_to": offer.counter_to,
    }


def _deserialize_offer(data: Mapping[str, Any]) -> TradeOffer:
    return TradeOffer(
        offer_id=data["offer_id"],
        from_player_id=data["from_player_id"],
        to_player_id=data.get("to_player_id"),
        offering=dict(data["offering"]),
        requesting=dict(data["requesting"]),
        declined_by=list(data.get("declined_by", [])),
        is_active=bool(data.get("is_active", True)),
        counter_to=data.get("counter_to"),
    )


def _serialize_setup(setup: SetupProgress | None) -> Dict[str, Any] | None:
    if setup is None:
        return None
    return {
        "order": list(setup.order),
        "placement_index": setup.placement_index,
        "last_settlement": (
            vertex_key(setup.last_settlement) if setup.last_settlement is not None else None
        ),
    }


def _deserialize_setup(payload: Mapping[str, Any] | None) -> SetupProgress | None:
    if not payload:
        return None
    last = payload.get("last_settlement")
    return SetupProgress(
        order=list(payload["order"]),
        placement_index=int(payload.get("placement_index", 0)),
        last_settlement=parse_vertex_key(last) if isinstance(last, str) else None,
    )


__all__ = [
    "SCHEMA_VERSION",
    "action_from_payload",
    "action_to_payload",
    "snapshot_to_state",
    "state_to_snapshot",
]
