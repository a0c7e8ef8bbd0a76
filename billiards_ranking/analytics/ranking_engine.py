#!/usr/bin/env python3
"""
League Ranking Engine Implementation

Turns a history of tournament results into one comparable rating per player
and a deterministic total ordering of players.

Pipeline layers:
    1. Normalize input snapshots into a results frame
    2. Score results and build per-tournament contexts
    3. Estimate the league baseline
    4. Compute relative contributions
    5. Aggregate per-player totals and derive ratings
    6. Resolve player names and sort with the tie-break chain
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

import pandas as pd
import yaml

from billiards_ranking.analytics.normalizer import (
    build_player_directory, flatten_tournaments, tournament_frame
)
from billiards_ranking.analytics.tournament_context import (
    attach_relative_contributions, build_tournament_contexts, compute_baseline, score_results
)
from billiards_ranking.analytics.timeline import build_trend, get_player_timeline
from billiards_ranking.analytics.utils_stats import (
    DEFAULT_CONFIG, compute_player_rating, resolve_config
)
from billiards_ranking.io.safe_write import safe_write_csv, safe_write_json
from billiards_ranking.normalizers.text_normalizer import collation_key
from billiards_ranking.schema.league_schema import (
    players_to_dataframe, validate_players_dataframe, validate_results_dataframe
)
from billiards_ranking.store.league_store import LeagueStore
from billiards_ranking.utils.logger import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("ranking_config.yaml")

RANKING_COLUMNS = [
    'rank', 'player_id', 'name', 'participations', 'average', 'saldo_total_raw', 'rating'
]

AGGREGATE_COLUMNS = [
    'player_id', 'participations', 'points_total', 'saldo_total_raw',
    'saldo_total_for_rating', 'relative_total'
]


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load YAML configuration and merge it over the built-in defaults.

    Args:
        path: Path to YAML file (defaults to the bundled ranking_config.yaml)

    Returns:
        Configuration dictionary with every engine key present
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    with open(config_path, 'r', encoding='utf-8') as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    unknown = sorted(set(loaded) - set(DEFAULT_CONFIG))
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {unknown}")
        loaded = {k: v for k, v in loaded.items() if k in DEFAULT_CONFIG}

    return resolve_config(loaded)


def aggregate_player_stats(contributions: pd.DataFrame) -> pd.DataFrame:
    """
    Accumulate per-player totals from scored results.

    Players keep the order of their first appearance in the results frame.

    Args:
        contributions: Results with points, saldo, saldo_capped and relative

    Returns:
        DataFrame with AGGREGATE_COLUMNS, one row per player
    """
    if contributions.empty:
        return pd.DataFrame(columns=AGGREGATE_COLUMNS)

    grouped = contributions.groupby('player_id', sort=False)
    stats = pd.DataFrame({
        'participations': grouped.size(),
        'points_total': grouped['points'].sum(),
        'saldo_total_raw': grouped['saldo'].sum(),
        'saldo_total_for_rating': grouped['saldo_capped'].sum(),
        'relative_total': grouped['relative'].sum(),
    }).reset_index()

    return stats[AGGREGATE_COLUMNS]


def sort_ranking(entries: pd.DataFrame, locale: str = DEFAULT_CONFIG['COLLATION_LOCALE']) -> pd.DataFrame:
    """
    Order ranking entries with the tie-break chain.

    rating desc -> saldo_total_raw desc -> participations desc -> name asc
    (locale collation). Entries equal on every key keep their input order.
    """
    keyed = entries.assign(_name_key=entries['name'].map(lambda n: collation_key(n, locale)))
    # Multi-column sort_values is a lexsort, which is stable
    keyed = keyed.sort_values(
        ['rating', 'saldo_total_raw', 'participations', '_name_key'],
        ascending=[False, False, False, True],
    )
    return keyed.drop(columns='_name_key').reset_index(drop=True)


def compute_ranking(tournaments: Iterable[Mapping[str, Any]],
                    players: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]],
                    config: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
    """
    Run the complete ranking pipeline.

    This is a pure function of its inputs: nothing is cached and neither
    argument is modified.

    Args:
        tournaments: Tournament records ({id, name, date, createdAt, results})
        players: Player directory (mapping id -> {name}, or list of {id, name})
        config: Optional engine configuration

    Returns:
        DataFrame with RANKING_COLUMNS, best player first
    """
    cfg = resolve_config(config)
    tournaments = list(tournaments)

    # Layer 1: Normalize input
    logger.info("Layer 1: Normalizing tournament snapshot")
    results_df = flatten_tournaments(tournaments)
    directory = build_player_directory(players)

    if results_df.empty:
        logger.warning("No results found - ranking is empty")
        return pd.DataFrame(columns=RANKING_COLUMNS)

    # Layer 2: Tournament scores and contexts
    logger.info("Layer 2: Scoring results and building tournament contexts")
    scored = score_results(results_df, cfg)
    contexts = build_tournament_contexts(scored, tournament_frame(tournaments), cfg)

    # Layer 3: League baseline
    logger.info("Layer 3: Estimating league baseline")
    baseline = compute_baseline(scored)
    logger.debug(f"Baseline={baseline:.3f} over {len(scored)} participations")

    # Layer 4: Relative contributions
    logger.info("Layer 4: Computing relative contributions")
    contributions = attach_relative_contributions(scored, contexts, cfg)

    # Layer 5: Player aggregates and ratings
    logger.info("Layer 5: Aggregating player totals and ratings")
    stats = aggregate_player_stats(contributions)
    stats = stats[stats['participations'] >= 1].copy()

    stats['average'] = stats['points_total'] / stats['participations']
    stats['rating'] = compute_player_rating(
        stats['participations'], stats['points_total'], stats['saldo_total_for_rating'],
        stats['relative_total'], baseline, cfg
    )

    # Layer 6: Resolve identities and sort
    logger.info("Layer 6: Resolving players and sorting")
    resolved = stats['player_id'].isin(list(directory))
    dropped = int((~resolved).sum())
    if dropped:
        logger.warning(f"Skipped {dropped} unknown player ids")
    stats = stats[resolved].copy()
    stats['name'] = stats['player_id'].map(directory)

    ranking = sort_ranking(stats, cfg['COLLATION_LOCALE'])
    ranking['rank'] = range(1, len(ranking) + 1)

    logger.info(f"Ranking complete: {len(ranking)} players ranked")
    return ranking[RANKING_COLUMNS]


def main():
    """CLI entry point for the ranking engine."""
    parser = argparse.ArgumentParser(description="Billiards League Ranking Engine")
    parser.add_argument("--store", type=str, required=True,
                        help="Path to the league JSON store")
    parser.add_argument("--config", type=str, default=str(DEFAULT_CONFIG_PATH),
                        help="Configuration file path")
    parser.add_argument("--output-root", type=str, default="data/rankings",
                        help="Output directory")
    parser.add_argument("--player", type=str, default=None,
                        help="Export this player's timeline instead of the ranking")
    parser.add_argument("--trend-limit", type=int, default=None,
                        help="Number of most recent timeline points in the trend")
    parser.add_argument("--window", type=int, default=None,
                        help="Moving-average window for the trend")
    parser.add_argument("--log-file", type=str, default=None,
                        help="Append log output to this file")

    args = parser.parse_args()

    setup_logging(args.log_file)

    try:
        config = load_config(args.config)

        store = LeagueStore(args.store)
        data = store.load()
        tournaments = data['championships']
        players = data['players']
        logger.info(f"Loaded {len(tournaments)} tournaments and {len(players)} players from {args.store}")

        validate_results_dataframe(flatten_tournaments(tournaments, coerce=False))
        validate_players_dataframe(players_to_dataframe(players))

        timestamp = datetime.now().strftime("%Y%m%d_%H%M")
        output_dir = Path(args.output_root)
        output_dir.mkdir(parents=True, exist_ok=True)

        if args.player:
            timeline = get_player_timeline(args.player, tournaments, config)
            trend = build_trend(timeline, args.trend_limit, args.window, config)
            output_file = output_dir / f"timeline_{args.player}_{timestamp}.csv"
            written = safe_write_csv(trend, output_file)
            rows = len(trend)
        else:
            ranking = compute_ranking(tournaments, players, config)
            output_file = output_dir / f"ranking_{timestamp}.csv"
            written = safe_write_csv(ranking, output_file)
            rows = len(ranking)

        summary = {
            'timestamp': timestamp,
            'store': args.store,
            'player': args.player,
            'tournaments': len(tournaments),
            'players': len(players),
            'rows': rows,
            'output': written['path'],
            'checksum': written['checksum'],
            'config': config
        }
        safe_write_json(summary, output_dir / f"summary_{timestamp}.json")
        logger.info(f"Done: {rows} rows written to {output_file}")

    except Exception as e:
        logger.error(f"Ranking failed: {e}")
        raise


if __name__ == "__main__":
    main()
