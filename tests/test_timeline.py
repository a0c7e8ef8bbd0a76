#!/usr/bin/env python3
"""
Test suite for player timelines and trends
"""

import sys
from pathlib import Path

import pandas as pd
import pytest

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from billiards_ranking.analytics.normalizer import flatten_tournaments
from billiards_ranking.analytics.ranking_engine import compute_ranking
from billiards_ranking.analytics.timeline import TIMELINE_COLUMNS, build_trend, get_player_timeline
from billiards_ranking.analytics.tournament_context import (
    attach_relative_contributions, build_tournament_contexts, compute_baseline, score_results
)
from billiards_ranking.analytics.utils_stats import compute_player_rating, experience_factor


class TestPlayerTimeline:
    """Test cases for get_player_timeline"""

    def test_chronological_order(self, league_tournaments):
        """Date first, then creation time for tournaments on the same day"""
        timeline = get_player_timeline('p_ana', league_tournaments)

        assert list(timeline.columns) == TIMELINE_COLUMNS
        assert timeline['tournament_id'].tolist() == ['c1', 'c2a', 'c2b', 'c3']
        assert timeline['points'].tolist() == [88.0, 97.0, 104.0, 120.0]

    def test_first_point_is_shrunk(self, league_tournaments):
        timeline = get_player_timeline('p_ana', league_tournaments)

        scored = score_results(flatten_tournaments(league_tournaments))
        baseline = compute_baseline(scored)
        contexts = build_tournament_contexts(scored)
        contributions = attach_relative_contributions(scored, contexts)
        c1 = contributions[(contributions['tournament_id'] == 'c1') & (contributions['player_id'] == 'p_ana')]
        relative = float(c1['relative'].iloc[0])

        adjusted = (88.0 + 6.0 * 0.1) * experience_factor(1) + relative

        assert timeline.loc[0, 'tournament_score'] == pytest.approx(88.6)
        assert timeline.loc[0, 'rating'] == pytest.approx(adjusted / 3 + baseline * 2 / 3)
        assert timeline.loc[0, 'rating'] == pytest.approx(
            compute_player_rating(1, 88.0, 6.0, relative, baseline)
        )

    def test_last_point_matches_ranking(self, league_tournaments, league_players):
        ranking = compute_ranking(league_tournaments, league_players).set_index('player_id')

        for player_id in league_players:
            timeline = get_player_timeline(player_id, league_tournaments)
            assert timeline['rating'].iloc[-1] == pytest.approx(ranking.loc[player_id, 'rating'])

    def test_same_day_without_creation_time_keeps_input_order(self):
        """Input position settles ties on date and createdAt"""
        tournaments = [
            {'id': tid, 'name': tid, 'date': '2024-04-06',
             'results': [{'playerId': 'p1', 'points': points, 'saldo': 0}]}
            for tid, points in [('t10', 50), ('t2', 60), ('t1', 70)]
        ]
        timeline = get_player_timeline('p1', tournaments)

        assert timeline['tournament_id'].tolist() == ['t10', 't2', 't1']
        assert timeline['points'].tolist() == [50.0, 60.0, 70.0]

    def test_saldo_is_raw_in_timeline(self, league_tournaments):
        """The timeline reports the raw saldo; only the score uses the capped one"""
        timeline = get_player_timeline('p_carla', league_tournaments)
        first = timeline.iloc[0]

        assert first['tournament_id'] == 'c1'
        assert first['saldo'] == -40.0
        assert first['tournament_score'] == pytest.approx(70 - 2.5)

    def test_unknown_player_is_empty(self, league_tournaments):
        timeline = get_player_timeline('nobody', league_tournaments)

        assert timeline.empty
        assert list(timeline.columns) == TIMELINE_COLUMNS

    def test_no_tournaments(self):
        assert get_player_timeline('p_ana', []).empty

    def test_input_order_does_not_matter(self, league_tournaments):
        forward = get_player_timeline('p_bruno', league_tournaments)
        backward = get_player_timeline('p_bruno', list(reversed(league_tournaments)))

        assert forward['tournament_id'].tolist() == backward['tournament_id'].tolist()
        assert forward['rating'].tolist() == pytest.approx(backward['rating'].tolist())


class TestTrend:
    """Test cases for build_trend"""

    def test_default_limit_and_window(self, league_tournaments):
        timeline = get_player_timeline('p_ana', league_tournaments)
        trend = build_trend(timeline)

        # Only four points exist, fewer than the default limit of five
        assert len(trend) == 4
        ratings = trend['rating'].tolist()
        assert trend['moving_avg'].tolist() == pytest.approx([
            ratings[0],
            (ratings[0] + ratings[1]) / 2,
            sum(ratings[0:3]) / 3,
            sum(ratings[1:4]) / 3,
        ])

    def test_limit_keeps_most_recent_points(self, league_tournaments):
        timeline = get_player_timeline('p_ana', league_tournaments)
        trend = build_trend(timeline, trend_limit=2)

        assert trend['tournament_id'].tolist() == ['c2b', 'c3']
        assert list(trend.index) == [0, 1]
        # Window 3 is clamped to the two available points
        ratings = trend['rating'].tolist()
        assert trend['moving_avg'].tolist() == pytest.approx([ratings[0], sum(ratings) / 2])

    def test_window_one_reproduces_ratings(self, league_tournaments):
        timeline = get_player_timeline('p_ana', league_tournaments)
        trend = build_trend(timeline, trend_limit=10, window=1)

        assert trend['moving_avg'].tolist() == trend['rating'].tolist()

    def test_non_positive_values_are_clamped(self, league_tournaments):
        timeline = get_player_timeline('p_ana', league_tournaments)
        trend = build_trend(timeline, trend_limit=0, window=-3)

        assert len(trend) == 1
        assert trend.loc[0, 'moving_avg'] == trend.loc[0, 'rating']

    def test_config_defaults(self, league_tournaments):
        timeline = get_player_timeline('p_ana', league_tournaments)
        trend = build_trend(timeline, config={'TREND_LIMIT': 3, 'MOVING_AVG_WINDOW': 2})

        assert trend['tournament_id'].tolist() == ['c2a', 'c2b', 'c3']
        ratings = trend['rating'].tolist()
        assert trend['moving_avg'].iloc[2] == pytest.approx((ratings[1] + ratings[2]) / 2)

    def test_empty_timeline(self):
        empty = pd.DataFrame(columns=TIMELINE_COLUMNS)
        trend = build_trend(empty)

        assert trend.empty
        assert 'moving_avg' in trend.columns
