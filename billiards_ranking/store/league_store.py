#!/usr/bin/env python3
"""
League Store - JSON-backed players and tournaments.

Holds the league document ``{"players": [...], "championships": [...]}`` and
provides the operations the rating engine expects its callers to perform:
player de-duplication by normalized name, tournament payload validation, and
create/update/delete of tournaments. The engine itself never touches this
store; it receives read-only snapshots from ``load()``.
"""

import json
import logging
import math
import random
import string
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from billiards_ranking.io.safe_write import safe_write_json
from billiards_ranking.normalizers.text_normalizer import clean_display_name, normalize_name

ResultRow = Tuple[Any, Any, Any]


def _empty_store() -> Dict[str, List[Dict[str, Any]]]:
    return {"players": [], "championships": []}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_id(prefix: str) -> str:
    """Generate an id like ``p_1718000000000_k3x9qz``."""
    rand = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{prefix}_{int(time.time() * 1000)}_{rand}"


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a user-entered number.

    Returns None for blank, non-numeric or non-finite input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class LeagueStore:
    """
    JSON file store for a single league.

    Every mutating operation persists immediately with an atomic write.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the store.

        Args:
            path: Location of the league JSON document
        """
        self.path = Path(path)
        self.logger = logging.getLogger(__name__)
        self.data = _empty_store()

    # ============================================================================
    # PERSISTENCE
    # ============================================================================

    def load(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Load the league document.

        A missing, unreadable or structurally invalid file yields an empty
        league rather than an error.

        Returns:
            The loaded document (also kept on ``self.data``)
        """
        if not self.path.exists():
            self.logger.info(f"No league store at {self.path}, starting empty")
            self.data = _empty_store()
            return self.data

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                parsed = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning(f"Could not read league store {self.path}: {e}")
            self.data = _empty_store()
            return self.data

        if (not isinstance(parsed, dict)
                or not isinstance(parsed.get("players"), list)
                or not isinstance(parsed.get("championships"), list)):
            self.logger.warning(f"League store {self.path} has an invalid layout, starting empty")
            self.data = _empty_store()
            return self.data

        self.data = parsed
        return self.data

    def save(self) -> None:
        """Persist the league document atomically."""
        safe_write_json(self.data, self.path, logger=self.logger)

    # ============================================================================
    # PLAYERS
    # ============================================================================

    def get_player(self, player_id: str) -> Optional[Dict[str, Any]]:
        return next((p for p in self.data["players"] if p.get("id") == player_id), None)

    def get_or_create_player(self, name: str) -> Dict[str, Any]:
        """
        Find a player by normalized name, creating one if none matches.

        New players are appended to the in-memory document; the caller's
        next tournament write persists them.
        """
        normalized = normalize_name(name)
        for player in self.data["players"]:
            if normalize_name(player.get("name")) == normalized:
                return player

        player = {
            "id": create_id("p"),
            "name": clean_display_name(name),
            "createdAt": _now_iso(),
        }
        self.data["players"].append(player)
        self.logger.info(f"Created player {player['id']} ({player['name']})")
        return player

    def player_names(self) -> List[str]:
        return [p.get("name", "") for p in self.data["players"]]

    # ============================================================================
    # TOURNAMENTS
    # ============================================================================

    def build_results(self, rows: Sequence[ResultRow]) -> List[Dict[str, Any]]:
        """
        Turn ``(player_name, points, saldo)`` rows into tournament results.

        Args:
            rows: Entered rows, in display order

        Returns:
            List of ``{playerId, points, saldo}`` results

        Raises:
            ValueError: On an empty row set, a blank name, non-numeric points
                or saldo, or a player repeated within the tournament
        """
        if not rows:
            raise ValueError("A tournament needs at least one player.")

        seen = set()
        results = []
        for row_num, (player_name, points_raw, saldo_raw) in enumerate(rows, start=1):
            display_name = clean_display_name(player_name)
            points = parse_number(points_raw)
            saldo = parse_number(saldo_raw)

            if not display_name:
                raise ValueError(f"Row {row_num}: player name is required.")
            if points is None:
                raise ValueError(f"Row {row_num}: points must be numeric.")
            if saldo is None:
                raise ValueError(f"Row {row_num}: saldo must be numeric (positive or negative).")

            normalized = normalize_name(display_name)
            if normalized in seen:
                raise ValueError(f'Player repeated in tournament: "{display_name}".')
            seen.add(normalized)

            player = self.get_or_create_player(display_name)
            results.append({"playerId": player["id"], "points": points, "saldo": saldo})

        return results

    def _validated_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        name = str(payload.get("name") or "").strip()
        date = str(payload.get("date") or "").strip()
        if not name:
            raise ValueError("Tournament name is required.")
        if not date:
            raise ValueError("Tournament date is required.")
        if "results" not in payload:
            raise ValueError("Tournament results are required.")
        return {"name": name, "date": date, "results": list(payload["results"])}

    def create_tournament(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Add a tournament and persist the store.

        Args:
            payload: ``{name, date, results}``

        Returns:
            The stored tournament record
        """
        clean = self._validated_payload(payload)
        now = _now_iso()
        tournament = {
            "id": create_id("c"),
            **clean,
            "createdAt": now,
            "updatedAt": now,
        }
        self.data["championships"].append(tournament)
        self.save()
        self.logger.info(f"Created tournament {tournament['id']} ({tournament['name']})")
        return tournament

    def update_tournament(self, tournament_id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Replace a tournament's name, date and results. Returns None if not found."""
        item = self.get_tournament(tournament_id)
        if item is None:
            return None

        item.update(self._validated_payload(payload))
        item["updatedAt"] = _now_iso()
        self.save()
        return item

    def delete_tournament(self, tournament_id: str) -> bool:
        """Remove a tournament. Returns False if not found."""
        for idx, tournament in enumerate(self.data["championships"]):
            if tournament.get("id") == tournament_id:
                del self.data["championships"][idx]
                self.save()
                return True
        return False

    def get_tournament(self, tournament_id: str) -> Optional[Dict[str, Any]]:
        return next((t for t in self.data["championships"] if t.get("id") == tournament_id), None)

    def tournaments_for_view(self) -> List[Dict[str, Any]]:
        """Tournaments newest first: date descending, then creation descending."""
        return sort_tournaments_for_view(self.data["championships"])


def sort_tournaments_for_view(tournaments: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(
        tournaments,
        key=lambda t: (str(t.get("date", "")), str(t.get("createdAt", ""))),
        reverse=True,
    )
