# setback/relay.py
"""
Room broker for networked tables.

Clients exchange JSON messages with a `type` field over a Socket.IO
connection (event name "message"). The relay only groups connections into
rooms of at most four and forwards game state blobs between them. It never
looks inside a game state.
"""
from __future__ import annotations

import json
import logging
import random
import string
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, request
from flask_socketio import SocketIO, emit, join_room

logger = logging.getLogger(__name__)

MAX_OCCUPANTS = 4
GAME_ID_LENGTH = 6
_GAME_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class Room:
    game_id: str
    members: List[str] = field(default_factory=list)
    game_state: Optional[Any] = None


class RoomRegistry:
    """Bookkeeping of rooms and their connections, independent of the transport."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rooms: Dict[str, Room] = {}
        self._rng = rng if rng is not None else random.SystemRandom()

    def _new_game_id(self) -> str:
        while True:
            game_id = "".join(self._rng.choice(_GAME_ID_ALPHABET) for _ in range(GAME_ID_LENGTH))
            if game_id not in self.rooms:
                return game_id

    def create(self, sid: str) -> str:
        game_id = self._new_game_id()
        self.rooms[game_id] = Room(game_id=game_id, members=[sid])
        return game_id

    def join(self, game_id: str, sid: str) -> Optional[str]:
        """Add `sid` to a room. Returns an error message, or None on success."""
        room = self.rooms.get(game_id)
        if room is None:
            return "Game not found"
        if sid in room.members:
            return None
        if len(room.members) >= MAX_OCCUPANTS:
            return "Game is full"
        room.members.append(sid)
        return None

    def update(self, game_id: str, game_state: Any) -> bool:
        room = self.rooms.get(game_id)
        if room is None:
            return False
        room.game_state = game_state
        return True

    def leave(self, sid: str) -> List[Tuple[str, int]]:
        """Remove `sid` everywhere; returns (game_id, remaining) for rooms that still exist."""
        left: List[Tuple[str, int]] = []
        for game_id, room in list(self.rooms.items()):
            if sid not in room.members:
                continue
            room.members.remove(sid)
            if room.members:
                left.append((game_id, len(room.members)))
            else:
                del self.rooms[game_id]
                logger.info("Closed empty game %s", game_id)
        return left


def _error(message: str) -> None:
    emit("message", {"type": "error", "message": message})


def create_app(registry: Optional[RoomRegistry] = None) -> Tuple[Flask, SocketIO]:
    app = Flask(__name__)
    socketio = SocketIO(app, async_mode="threading", cors_allowed_origins="*")
    rooms = registry if registry is not None else RoomRegistry()
    app.extensions["setback_rooms"] = rooms

    @socketio.on("connect")
    def handle_connect():
        logger.info("Client connected: %s", request.sid)

    @socketio.on("message")
    def handle_message(data):
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                data = None
        if not isinstance(data, dict) or not isinstance(data.get("type"), str):
            _error("Invalid message format")
            return

        kind = data["type"]
        sid = request.sid
        logger.debug("Received %s from %s", kind, sid)

        if kind == "createGame":
            game_id = rooms.create(sid)
            join_room(game_id)
            logger.info("Created game %s", game_id)
            emit("message", {"type": "gameCreated", "gameId": game_id})

        elif kind == "joinGame":
            game_id = data.get("gameId")
            if not game_id:
                _error("Game ID is required")
                return
            if not isinstance(game_id, str):
                _error("Invalid message format")
                return
            problem = rooms.join(game_id, sid)
            if problem:
                _error(problem)
                return
            join_room(game_id)
            count = len(rooms.rooms[game_id].members)
            logger.info("Client %s joined game %s (%d players)", sid, game_id, count)
            emit("message", {"type": "gameJoined", "gameId": game_id})
            emit("message", {"type": "playerJoined", "playerCount": count}, to=game_id)

        elif kind == "updateGameState":
            game_id = data.get("gameId")
            game_state = data.get("gameState")
            if not game_id or game_state is None:
                _error("Game ID and state are required")
                return
            if not isinstance(game_id, str):
                _error("Invalid message format")
                return
            if rooms.update(game_id, game_state):
                emit(
                    "message",
                    {"type": "gameStateUpdated", "gameState": game_state},
                    to=game_id,
                    include_self=False,
                )

        else:
            logger.debug("Ignoring unknown message type %r", kind)

    @socketio.on("disconnect")
    def handle_disconnect(reason=None):
        logger.info("Client disconnected: %s", request.sid)
        for game_id, remaining in rooms.leave(request.sid):
            emit(
                "message",
                {"type": "playerLeft", "playerCount": remaining},
                to=game_id,
                include_self=False,
            )

    return app, socketio


def run_relay(host: str = "0.0.0.0", port: int = 3001) -> None:
    app, socketio = create_app()
    logger.info("Relay server running on %s:%d", host, port)
    socketio.run(app, host=host, port=port, allow_unsafe_werkzeug=True)
