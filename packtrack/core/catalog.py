"""Static scratch-off game catalog keyed by the first five gamepack digits."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping

logger = logging.getLogger(__name__)

GAME_PREFIX_LENGTH = 5


@dataclass(frozen=True)
class GameInfo:
    name: str
    price: str
    type: str


UNKNOWN_GAME = GameInfo(name="Unknown Game", price="N/A", type="Scratch-off")

DEFAULT_GAMES: Dict[str, GameInfo] = {
    "12345": GameInfo(name="Lucky 7s", price="$5", type="Scratch-off"),
    "23456": GameInfo(name="Gold Rush", price="$10", type="Scratch-off"),
    "34567": GameInfo(name="Mega Millions", price="$20", type="Scratch-off"),
    "45678": GameInfo(name="Cash Explosion", price="$30", type="Scratch-off"),
    "56789": GameInfo(name="Diamond Dazzler", price="$2", type="Scratch-off"),
}


class GameCatalog:
    """Read-only lookup from game prefix to display information."""

    def __init__(self, games: Mapping[str, GameInfo] | None = None, *, fallback: GameInfo = UNKNOWN_GAME) -> None:
        self._games: Dict[str, GameInfo] = dict(DEFAULT_GAMES if games is None else games)
        self._fallback = fallback

    def __len__(self) -> int:
        return len(self._games)

    def lookup(self, prefix: str) -> GameInfo:
        return self._games.get(prefix[:GAME_PREFIX_LENGTH], self._fallback)

    def for_gamepack(self, gamepack_number: str) -> GameInfo:
        """Resolve the game for a full gamepack number."""

        return self.lookup(gamepack_number[:GAME_PREFIX_LENGTH])

    @classmethod
    def from_json(cls, path: Path) -> "GameCatalog":
        """Load ``{"12345": {"name": ..., "price": ..., "type": ...}}`` from disk.

        Entries missing a field inherit it from the unknown-game fallback so a
        partially filled catalog still renders something sensible.
        """

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Game catalog {path} must be a JSON object")

        games: Dict[str, GameInfo] = {}
        for prefix, item in data.items():
            if not isinstance(item, dict):
                logger.warning("catalog.entry_skipped", extra={"extra_data": {"prefix": prefix}})
                continue
            games[str(prefix)[:GAME_PREFIX_LENGTH]] = GameInfo(
                name=str(item.get("name") or UNKNOWN_GAME.name),
                price=str(item.get("price") or UNKNOWN_GAME.price),
                type=str(item.get("type") or UNKNOWN_GAME.type),
            )
        logger.info("catalog.loaded", extra={"extra_data": {"path": str(path), "games": len(games)}})
        return cls(games)


__all__ = ["DEFAULT_GAMES", "GAME_PREFIX_LENGTH", "GameCatalog", "GameInfo", "UNKNOWN_GAME"]
