#!/usr/bin/env python3
"""
Input normalization for the league rating engine.

Flattens tournament snapshots (the JSON store records) into a single results
DataFrame with one row per participation and a consistent schema, and builds
the player directory used to resolve names.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Union

import pandas as pd

from billiards_ranking.analytics.utils_stats import coerce_numeric

logger = logging.getLogger(__name__)


RESULT_COLUMNS = [
    'tournament_id', 'tournament_name', 'date', 'created_at', 'tournament_order',
    'player_id', 'points', 'saldo'
]


def _field(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in ``record`` (camelCase or snake_case)."""
    for key in keys:
        if key in record:
            return record[key]
    return default


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def flatten_tournaments(tournaments: Iterable[Mapping[str, Any]], coerce: bool = True) -> pd.DataFrame:
    """
    Flatten tournament records into a results DataFrame.

    Args:
        tournaments: Tournament records with ``id``, ``name``, ``date``,
            ``createdAt`` and a ``results`` list of ``{playerId, points, saldo}``
        coerce: Coerce points and saldo to floats (0.0 for junk). Pass False
            to keep the raw values for boundary validation

    Returns:
        DataFrame with RESULT_COLUMNS, one row per result, in input order

    Raises:
        ValueError: If a tournament record has no ``results`` field
    """
    rows: List[Dict[str, Any]] = []

    for order, tournament in enumerate(tournaments):
        results = _field(tournament, 'results')
        if results is None:
            raise ValueError(
                f"Tournament {_field(tournament, 'id')!r} is missing required field: results"
            )

        tournament_id = _as_text(_field(tournament, 'id'))
        for result in results:
            rows.append({
                'tournament_id': tournament_id,
                'tournament_name': _as_text(_field(tournament, 'name')),
                'date': _as_text(_field(tournament, 'date')),
                'created_at': _as_text(_field(tournament, 'createdAt', 'created_at')),
                'tournament_order': order,
                'player_id': _as_text(_field(result, 'playerId', 'player_id')),
                'points': _field(result, 'points'),
                'saldo': _field(result, 'saldo'),
            })

    df = pd.DataFrame(rows, columns=RESULT_COLUMNS)
    if coerce:
        df['points'] = coerce_numeric(df['points'])
        df['saldo'] = coerce_numeric(df['saldo'])
    df['tournament_order'] = df['tournament_order'].astype(int)

    logger.debug(f"Flattened {len(df)} results from {df['tournament_id'].nunique()} tournaments")
    return df


def tournament_frame(tournaments: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """
    One row per tournament, including tournaments without participants.

    Returns:
        DataFrame with tournament_id, tournament_name, date, created_at,
        tournament_order
    """
    rows = [
        {
            'tournament_id': _as_text(_field(t, 'id')),
            'tournament_name': _as_text(_field(t, 'name')),
            'date': _as_text(_field(t, 'date')),
            'created_at': _as_text(_field(t, 'createdAt', 'created_at')),
            'tournament_order': order,
        }
        for order, t in enumerate(tournaments)
    ]
    return pd.DataFrame(
        rows, columns=['tournament_id', 'tournament_name', 'date', 'created_at', 'tournament_order']
    )


def build_player_directory(players: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]]) -> Dict[str, str]:
    """
    Build an ``id -> name`` lookup from the caller's player snapshot.

    Accepts either a mapping of id to ``{name}`` (or to a plain name string)
    or a list of ``{id, name}`` records.
    """
    directory: Dict[str, str] = {}

    if isinstance(players, Mapping):
        for player_id, info in players.items():
            name = info.get('name') if isinstance(info, Mapping) else info
            directory[_as_text(player_id)] = _as_text(name)
        return directory

    for player in players:
        player_id = _field(player, 'id', 'player_id')
        if player_id is None:
            continue
        directory[_as_text(player_id)] = _as_text(_field(player, 'name'))
    return directory
