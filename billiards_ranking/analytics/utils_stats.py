#!/usr/bin/env python3
"""
Statistical utilities for the league rating engine.

Provides the scalar and vectorized building blocks used throughout the
ranking pipeline: numeric coercion, saldo capping, tournament scores,
relative contributions, the experience bonus and baseline shrinkage.
"""

import math
import logging
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

Number = Union[int, float]
NumericLike = Union[Number, pd.Series, np.ndarray]


DEFAULT_CONFIG: Dict[str, Any] = {
    'SALDO_CAP': 25.0,
    'SALDO_WEIGHT': 0.1,
    'REFERENCE_FIELD_SIZE': 16,
    'Z_CAP': 2.5,
    'RELATIVE_SCALE': 2.5,
    'EXPERIENCE_RATE': 0.05,
    'EXPERIENCE_CAP': 0.15,
    'SHRINK_K': 2,
    'TREND_LIMIT': 5,
    'MOVING_AVG_WINDOW': 3,
    'COLLATION_LOCALE': 'es',
}


def resolve_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge a partial configuration over the built-in defaults.

    Args:
        config: Optional configuration dictionary (may be partial)

    Returns:
        New dictionary containing every engine key
    """
    merged = DEFAULT_CONFIG.copy()
    if config:
        merged.update(config)
    return merged


def coerce_numeric(value: Any) -> Any:
    """
    Coerce a value (or a Series of values) to float, defaulting to 0.

    Missing, non-numeric and non-finite inputs all become 0.0 so that no
    NaN or infinity can reach the rating arithmetic.

    Args:
        value: Scalar, list or Series

    Returns:
        Float for scalar input, float Series for Series/list input
    """
    if isinstance(value, (pd.Series, list, tuple, np.ndarray)):
        return pd.Series(value, dtype=object).map(_coerce_scalar).astype(float)
    return _coerce_scalar(value)


def _coerce_scalar(value: Any) -> float:
    if value is None or isinstance(value, (bool, np.bool_)):
        return 0.0
    # float() accepts digit separators; user-entered numbers do not use them
    if isinstance(value, str) and '_' in value:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def capped_saldo(saldo: NumericLike, cap: float = DEFAULT_CONFIG['SALDO_CAP']) -> NumericLike:
    """
    Clamp a saldo (or a Series of saldos) to [-cap, cap].

    Args:
        saldo: Raw saldo value or Series
        cap: Maximum absolute saldo

    Returns:
        Capped saldo of the same shape
    """
    if isinstance(saldo, pd.Series):
        return saldo.clip(lower=-cap, upper=cap)
    return float(min(cap, max(-cap, coerce_numeric(saldo))))


def tournament_score(points: NumericLike, saldo: NumericLike,
                     config: Optional[Dict[str, Any]] = None) -> NumericLike:
    """
    Compute the capped tournament score used for all comparisons.

    score = points + capped_saldo(saldo) * SALDO_WEIGHT

    Args:
        points: Points scored (scalar or Series)
        saldo: Saldo for the same result (scalar or Series)
        config: Optional engine configuration

    Returns:
        Tournament score of the same shape
    """
    cfg = resolve_config(config)
    points = coerce_numeric(points)
    saldo = coerce_numeric(saldo)
    return points + capped_saldo(saldo, cfg['SALDO_CAP']) * cfg['SALDO_WEIGHT']


def size_weight(participants: NumericLike, reference_size: float = DEFAULT_CONFIG['REFERENCE_FIELD_SIZE']) -> NumericLike:
    """
    Confidence weight of a tournament from its field size.

    Full weight at ``reference_size`` participants or more, discounted by the
    square root of the relative size below that.
    """
    if isinstance(participants, pd.Series):
        return np.sqrt(participants.astype(float) / reference_size).clip(upper=1.0)
    return float(min(1.0, math.sqrt(max(0.0, float(participants)) / reference_size)))


def relative_contribution(score: NumericLike, mean: NumericLike, std: NumericLike,
                          weight: NumericLike, config: Optional[Dict[str, Any]] = None) -> NumericLike:
    """
    Convert a tournament score into a bounded relative contribution.

    A field without dispersion (std <= 0) yields 0. Otherwise the z-score is
    clipped to [-Z_CAP, Z_CAP] and scaled by RELATIVE_SCALE and the
    tournament's size weight.

    Args:
        score: Tournament score(s)
        mean: Tournament mean score(s)
        std: Tournament population std(s)
        weight: Tournament size weight(s)
        config: Optional engine configuration

    Returns:
        Contribution of the same shape as ``score``
    """
    cfg = resolve_config(config)
    z_cap = cfg['Z_CAP']
    scale = cfg['RELATIVE_SCALE']

    if isinstance(score, pd.Series):
        std = pd.Series(std, index=score.index, dtype=float)
        safe_std = std.where(std > 0, 1.0)
        z = ((score - mean) / safe_std).clip(lower=-z_cap, upper=z_cap)
        contribution = z * scale * weight
        return contribution.where(std > 0, 0.0)

    if std <= 0:
        return 0.0
    z = (score - mean) / std
    z = min(z_cap, max(-z_cap, z))
    return z * scale * weight


def experience_factor(participations: NumericLike, config: Optional[Dict[str, Any]] = None) -> NumericLike:
    """
    Bounded bonus for sustained participation: 1 + min(cap, ln(1 + n) * rate).
    """
    cfg = resolve_config(config)
    if isinstance(participations, pd.Series):
        bonus = np.log1p(participations.astype(float)) * cfg['EXPERIENCE_RATE']
        return 1.0 + bonus.clip(upper=cfg['EXPERIENCE_CAP'])
    return 1.0 + min(cfg['EXPERIENCE_CAP'], math.log(1 + participations) * cfg['EXPERIENCE_RATE'])


def compute_bayesian_shrinkage(value: float, sample_size: int, prior_mean: float,
                               tau: float) -> float:
    """
    Apply Bayesian shrinkage toward prior mean.

    Args:
        value: Observed value
        sample_size: Number of observations
        prior_mean: Prior mean to shrink toward
        tau: Shrinkage parameter

    Returns:
        Shrunk value
    """
    if sample_size == 0:
        return prior_mean

    # (n*value + tau*prior) / (n + tau), i.e. value*w + prior*(1-w) with w = n/(n+tau)
    shrunk = (sample_size * value + tau * prior_mean) / (sample_size + tau)

    return shrunk


def compute_player_rating(participations: NumericLike, points_total: NumericLike,
                          saldo_total_for_rating: NumericLike, relative_total: NumericLike,
                          baseline: float, config: Optional[Dict[str, Any]] = None) -> NumericLike:
    """
    Derive a player's rating from accumulated totals.

    Works on scalars or on aligned Series (one element per player, or one per
    cumulative timeline step). Only a single participation is shrunk toward
    the baseline; every other sample size keeps the adjusted rating as is.

    Args:
        participations: Number of tournaments played (must be >= 1)
        points_total: Sum of points
        saldo_total_for_rating: Sum of capped saldos
        relative_total: Sum of relative contributions
        baseline: League-wide average tournament score
        config: Optional engine configuration

    Returns:
        Rating of the same shape as ``participations``
    """
    cfg = resolve_config(config)

    average = points_total / participations
    adjusted_saldo_term = saldo_total_for_rating * cfg['SALDO_WEIGHT']
    raw_rating = (average + adjusted_saldo_term) * experience_factor(participations, cfg)
    adjusted_rating = raw_rating + relative_total / participations

    if isinstance(participations, pd.Series):
        shrunk = compute_bayesian_shrinkage(adjusted_rating, 1, baseline, cfg['SHRINK_K'])
        return adjusted_rating.where(participations != 1, shrunk)

    if participations == 1:
        return compute_bayesian_shrinkage(adjusted_rating, participations, baseline, cfg['SHRINK_K'])
    return adjusted_rating


def compute_moving_average(series: Union[pd.Series, Sequence[float]], window_size: int) -> pd.Series:
    """
    Trailing moving average with partial leading windows.

    Element ``i`` is the mean of ``series[max(0, i - w + 1) .. i]``.

    Args:
        series: Values in chronological order
        window_size: Window length, clamped to at least 1

    Returns:
        Float Series with the same length and index as the input
    """
    values = series if isinstance(series, pd.Series) else pd.Series(list(series), dtype=float)
    window = max(1, int(window_size))
    if window == 1:
        return values.astype(float).copy()
    return values.astype(float).rolling(window=window, min_periods=1).mean()
