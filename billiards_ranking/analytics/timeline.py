#!/usr/bin/env python3
"""
Player timeline and trend.

Replays a single player's tournaments in chronological order, recomputing the
cumulative rating after each one, and trims the series into a trend view with
a trailing moving average.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

import pandas as pd

from billiards_ranking.analytics.normalizer import flatten_tournaments, tournament_frame
from billiards_ranking.analytics.tournament_context import (
    attach_relative_contributions, build_tournament_contexts, compute_baseline, score_results
)
from billiards_ranking.analytics.utils_stats import (
    compute_moving_average, compute_player_rating, resolve_config
)

logger = logging.getLogger(__name__)


TIMELINE_COLUMNS = [
    'tournament_id', 'tournament_name', 'date', 'points', 'saldo', 'tournament_score', 'rating'
]


def get_player_timeline(player_id: str, tournaments: Iterable[Mapping[str, Any]],
                        config: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
    """
    Rebuild a player's rating history, one point per tournament played.

    Contexts and the baseline are computed over the full tournament list; the
    player's totals are accumulated in (date, creation, input) order and the
    rating formula is applied to the running totals after every tournament.

    Args:
        player_id: Player to replay
        tournaments: Tournament snapshot (same records as ``compute_ranking``)
        config: Optional engine configuration

    Returns:
        DataFrame with TIMELINE_COLUMNS in chronological order
    """
    cfg = resolve_config(config)
    tournaments = list(tournaments)

    results_df = flatten_tournaments(tournaments)
    if results_df.empty:
        return pd.DataFrame(columns=TIMELINE_COLUMNS)

    scored = score_results(results_df, cfg)
    contexts = build_tournament_contexts(scored, tournament_frame(tournaments), cfg)
    baseline = compute_baseline(scored)
    contributions = attach_relative_contributions(scored, contexts, cfg)

    history = contributions[contributions['player_id'] == str(player_id)]
    if history.empty:
        logger.debug(f"No participations found for player {player_id}")
        return pd.DataFrame(columns=TIMELINE_COLUMNS)

    history = history.sort_values(['date', 'created_at', 'tournament_order']).reset_index(drop=True)

    participations = pd.Series(range(1, len(history) + 1), index=history.index)
    history['rating'] = compute_player_rating(
        participations,
        history['points'].cumsum(),
        history['saldo_capped'].cumsum(),
        history['relative'].cumsum(),
        baseline,
        cfg,
    )

    logger.debug(f"Timeline for {player_id}: {len(history)} points, baseline={baseline:.3f}")
    return history[TIMELINE_COLUMNS]


def build_trend(timeline: pd.DataFrame, trend_limit: Optional[int] = None,
                window: Optional[int] = None, config: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
    """
    Trim a timeline to its most recent points and add a moving average.

    Args:
        timeline: Output of ``get_player_timeline``
        trend_limit: Number of trailing points to keep (default TREND_LIMIT),
            clamped to [1, len(timeline)]
        window: Moving-average window (default MOVING_AVG_WINDOW), clamped to
            [1, trend_limit]
        config: Optional engine configuration

    Returns:
        Trailing slice of the timeline with an extra ``moving_avg`` column
    """
    cfg = resolve_config(config)

    if timeline.empty:
        return timeline.assign(moving_avg=pd.Series(dtype=float))

    limit = cfg['TREND_LIMIT'] if trend_limit is None else trend_limit
    limit = max(1, min(int(limit), len(timeline)))

    size = cfg['MOVING_AVG_WINDOW'] if window is None else window
    size = max(1, min(int(size), limit))

    trend = timeline.tail(limit).reset_index(drop=True)
    trend['moving_avg'] = compute_moving_average(trend['rating'], size)
    return trend
