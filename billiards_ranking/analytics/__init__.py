"""
Analytics module for the billiards league rating engine.

This module provides the rating methodology: score normalization, tournament
contexts, baseline shrinkage, ranking assembly and player timelines.
"""

from .ranking_engine import compute_ranking, aggregate_player_stats, load_config
from .timeline import get_player_timeline, build_trend
from .tournament_context import build_tournament_contexts, compute_baseline
from .utils_stats import (
    capped_saldo, tournament_score, relative_contribution, experience_factor,
    compute_player_rating, compute_moving_average
)

__all__ = [
    'compute_ranking',
    'aggregate_player_stats',
    'load_config',
    'get_player_timeline',
    'build_trend',
    'build_tournament_contexts',
    'compute_baseline',
    'capped_saldo',
    'tournament_score',
    'relative_contribution',
    'experience_factor',
    'compute_player_rating',
    'compute_moving_average'
]
