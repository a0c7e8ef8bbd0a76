#!/usr/bin/env python3
"""
Per-tournament context and league baseline.

Computes, for every tournament, the mean and population standard deviation of
its participants' tournament scores together with a size-based confidence
weight, and the global baseline score used as the shrinkage target.
"""

import logging
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from billiards_ranking.analytics.utils_stats import (
    relative_contribution, resolve_config, size_weight, tournament_score
)

logger = logging.getLogger(__name__)


CONTEXT_COLUMNS = ['tournament_id', 'participants', 'mean', 'std', 'size_weight']


def score_results(results_df: pd.DataFrame, config: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
    """
    Add capped saldo and tournament score columns to a results frame.

    Returns a copy; the input frame is left untouched.
    """
    cfg = resolve_config(config)
    scored = results_df.copy()
    scored['saldo_capped'] = scored['saldo'].clip(lower=-cfg['SALDO_CAP'], upper=cfg['SALDO_CAP'])
    scored['tournament_score'] = tournament_score(scored['points'], scored['saldo'], cfg)
    return scored


def build_tournament_contexts(scored_df: pd.DataFrame, tournaments_df: Optional[pd.DataFrame] = None,
                              config: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
    """
    Compute mean, std and size weight per tournament.

    Args:
        scored_df: Results frame with a ``tournament_score`` column
        tournaments_df: Optional frame of every tournament id, so that
            tournaments without participants get an all-zero context
        config: Optional engine configuration

    Returns:
        DataFrame with CONTEXT_COLUMNS, one row per tournament
    """
    cfg = resolve_config(config)

    if scored_df.empty:
        contexts = pd.DataFrame(columns=CONTEXT_COLUMNS)
    else:
        grouped = scored_df.groupby('tournament_id', sort=False)['tournament_score']
        contexts = pd.DataFrame({
            'participants': grouped.size(),
            'mean': grouped.mean(),
            # Population std: divide by the field size, not size - 1
            'std': grouped.std(ddof=0),
        }).reset_index()

    if tournaments_df is not None and not tournaments_df.empty:
        all_ids = tournaments_df[['tournament_id']].drop_duplicates()
        contexts = all_ids.merge(contexts, on='tournament_id', how='left')

    contexts['participants'] = contexts['participants'].fillna(0).astype(int)
    contexts['mean'] = contexts['mean'].astype(float).fillna(0.0)
    contexts['std'] = contexts['std'].astype(float).fillna(0.0)
    # Rounding noise on identical scores must still read as zero dispersion
    contexts.loc[np.isclose(contexts['std'], 0.0, atol=1e-12), 'std'] = 0.0
    contexts['size_weight'] = size_weight(contexts['participants'], cfg['REFERENCE_FIELD_SIZE'])

    logger.debug(f"Built contexts for {len(contexts)} tournaments")
    return contexts[CONTEXT_COLUMNS]


def compute_baseline(scored_df: pd.DataFrame) -> float:
    """
    League-wide average tournament score over every participation.

    Returns:
        Mean tournament score, or 0.0 when there are no participations
    """
    if scored_df.empty:
        return 0.0
    return float(scored_df['tournament_score'].sum() / len(scored_df))


def attach_relative_contributions(scored_df: pd.DataFrame, contexts: pd.DataFrame,
                                  config: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
    """
    Join each result with its tournament context and compute its contribution.

    Returns:
        Copy of ``scored_df`` with mean, std, size_weight and relative columns
    """
    merged = scored_df.merge(
        contexts[['tournament_id', 'mean', 'std', 'size_weight']],
        on='tournament_id', how='left', sort=False
    )
    merged.index = scored_df.index
    merged[['mean', 'std', 'size_weight']] = merged[['mean', 'std', 'size_weight']].fillna(0.0)

    merged['relative'] = relative_contribution(
        merged['tournament_score'], merged['mean'], merged['std'], merged['size_weight'], config
    )
    return merged
