#!/usr/bin/env python3
"""
League Data Schema Definition

Defines the boundary schemas for flattened tournament results and the player
directory using Pandera. Malformed snapshots are rejected here, before they
reach the rating engine.
"""

import logging
from typing import Any, Iterable, Mapping, Union

import pandas as pd
import pandera as pa
from pandera.typing import Series

logger = logging.getLogger(__name__)


def shorten_error_message(error_msg: str, max_length: int = 500) -> str:
    """
    Truncate long validation messages for logs and re-raised errors.

    Args:
        error_msg: Original error message
        max_length: Maximum length for the returned message

    Returns:
        Message of at most ``max_length`` characters
    """
    if len(error_msg) > max_length:
        return error_msg[:max_length - 50] + "... and more failures"
    return error_msg


class TournamentResultSchema(pa.DataFrameModel):
    """
    Pandera schema for flattened tournament results.

    One row per participation, as produced by ``flatten_tournaments`` with
    ``coerce=False``: non-numeric points or saldo fail float coercion here.
    """

    tournament_id: Series[str] = pa.Field(
        description="Tournament identifier"
    )

    player_id: Series[str] = pa.Field(
        description="Player identifier referenced by the result",
        str_length={"min_value": 1}
    )

    date: Series[str] = pa.Field(
        description="Tournament date in YYYY-MM-DD format",
        str_matches=r"^\d{4}-\d{2}-\d{2}$"
    )

    points: Series[float] = pa.Field(
        description="Points scored in the tournament (missing counts as 0)",
        nullable=True
    )

    saldo: Series[float] = pa.Field(
        description="Signed balance for the tournament, may be negative (missing counts as 0)",
        nullable=True
    )

    class Config:
        """Pandera configuration."""
        coerce = True
        strict = False


class PlayerDirectorySchema(pa.DataFrameModel):
    """Pandera schema for the player directory."""

    player_id: Series[str] = pa.Field(
        description="Player identifier",
        str_length={"min_value": 1},
        unique=True
    )

    name: Series[str] = pa.Field(
        description="Display name"
    )

    class Config:
        """Pandera configuration."""
        coerce = True
        strict = False


def players_to_dataframe(players: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]]) -> pd.DataFrame:
    """Tabulate a player snapshot (mapping or record list) for validation."""
    def _text(value: Any) -> str:
        return "" if value is None else str(value)

    if isinstance(players, Mapping):
        rows = [
            {'player_id': _text(pid), 'name': _text(info.get('name') if isinstance(info, Mapping) else info)}
            for pid, info in players.items()
        ]
    else:
        rows = [{'player_id': _text(p.get('id')), 'name': _text(p.get('name'))} for p in players]
    return pd.DataFrame(rows, columns=['player_id', 'name'])


def _validate(df: pd.DataFrame, schema, label: str) -> pd.DataFrame:
    try:
        return schema.validate(df)
    except (pa.errors.SchemaError, pa.errors.SchemaErrors) as e:
        logger.error(f"{label} schema validation failed: {shorten_error_message(str(e))}")
        logger.debug(f"DataFrame shape: {df.shape}")
        logger.debug(f"DataFrame columns: {list(df.columns)}")
        raise


def validate_results_dataframe(df: pd.DataFrame,
                               schema: type = TournamentResultSchema) -> pd.DataFrame:
    """
    Validate a flattened results DataFrame.

    Args:
        df: Output of ``flatten_tournaments``
        schema: Pandera schema class (default: TournamentResultSchema)

    Returns:
        Validated DataFrame

    Raises:
        pa.errors.SchemaError: If validation fails
    """
    return _validate(df, schema, "Tournament results")


def validate_players_dataframe(df: pd.DataFrame,
                               schema: type = PlayerDirectorySchema) -> pd.DataFrame:
    """
    Validate a player directory DataFrame.

    Raises:
        pa.errors.SchemaError: If validation fails (e.g. duplicate ids)
    """
    return _validate(df, schema, "Player directory")
