#!/usr/bin/env python3
"""
Test suite for tournament contexts, baseline and input normalization
"""

import math
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from billiards_ranking.analytics.normalizer import (
    build_player_directory, flatten_tournaments, tournament_frame
)
from billiards_ranking.analytics.tournament_context import (
    attach_relative_contributions, build_tournament_contexts, compute_baseline, score_results
)


def _contexts(tournaments):
    scored = score_results(flatten_tournaments(tournaments))
    return scored, build_tournament_contexts(scored, tournament_frame(tournaments)).set_index('tournament_id')


class TestTournamentContext:
    """Test cases for per-tournament context"""

    def test_two_player_context(self, two_player_tournaments):
        """Mean, population std and size weight of the reference scenario"""
        _, contexts = _contexts(two_player_tournaments)
        ctx = contexts.loc['c1']

        assert ctx['participants'] == 2
        assert ctx['mean'] == pytest.approx(90.25)
        assert ctx['std'] == pytest.approx(10.75)
        assert ctx['size_weight'] == pytest.approx(math.sqrt(2 / 16))

    def test_identical_scores_have_zero_std(self):
        """All participants scoring the same gives no dispersion and no contribution"""
        tournaments = [{
            'id': 'flat', 'name': 'Flat', 'date': '2024-05-01', 'createdAt': '',
            'results': [
                {'playerId': 'a', 'points': 60, 'saldo': 3},
                {'playerId': 'b', 'points': 60, 'saldo': 3},
                {'playerId': 'c', 'points': 60, 'saldo': 3},
            ],
        }]
        scored, contexts = _contexts(tournaments)

        assert contexts.loc['flat', 'std'] == 0.0

        contributions = attach_relative_contributions(scored, contexts.reset_index())
        assert contributions['relative'].tolist() == [0.0, 0.0, 0.0]

    def test_single_participant_has_zero_std(self):
        tournaments = [{
            'id': 'solo', 'name': 'Solo', 'date': '2024-05-01',
            'results': [{'playerId': 'a', 'points': 75, 'saldo': -2}],
        }]
        _, contexts = _contexts(tournaments)

        assert contexts.loc['solo', 'std'] == 0.0
        assert contexts.loc['solo', 'mean'] == pytest.approx(74.8)
        assert contexts.loc['solo', 'size_weight'] == pytest.approx(0.25)

    def test_empty_tournament_gets_zero_context(self, two_player_tournaments):
        """A tournament without participants gets mean 0, std 0, size weight 0"""
        tournaments = two_player_tournaments + [{
            'id': 'empty', 'name': 'Cancelled', 'date': '2024-11-01', 'results': [],
        }]
        _, contexts = _contexts(tournaments)

        empty = contexts.loc['empty']
        assert empty['participants'] == 0
        assert empty['mean'] == 0.0
        assert empty['std'] == 0.0
        assert empty['size_weight'] == 0.0

    def test_large_field_has_full_weight(self):
        results = [{'playerId': f'p{i}', 'points': i, 'saldo': 0} for i in range(20)]
        tournaments = [{'id': 'big', 'name': 'Open', 'date': '2024-06-01', 'results': results}]
        _, contexts = _contexts(tournaments)

        assert contexts.loc['big', 'size_weight'] == 1.0


class TestBaseline:
    """Test cases for the league baseline"""

    def test_baseline_is_mean_over_participations(self, league_tournaments):
        scored = score_results(flatten_tournaments(league_tournaments))
        expected = scored['tournament_score'].sum() / len(scored)

        assert compute_baseline(scored) == pytest.approx(expected)
        assert len(scored) == 11

    def test_baseline_two_player(self, two_player_tournaments):
        scored = score_results(flatten_tournaments(two_player_tournaments))
        assert compute_baseline(scored) == pytest.approx(90.25)

    def test_baseline_without_participations_is_zero(self):
        scored = score_results(flatten_tournaments([]))
        assert compute_baseline(scored) == 0.0


class TestInputNormalizer:
    """Test cases for flattening tournament snapshots"""

    def test_flatten_keeps_input_order(self, league_tournaments):
        df = flatten_tournaments(league_tournaments)

        assert df['tournament_id'].tolist()[:3] == ['c3', 'c3', 'c3']
        assert df['tournament_order'].tolist()[3] == 1
        assert df['player_id'].tolist()[-1] == 'p_ana'

    def test_flatten_coerces_numbers(self):
        tournaments = [{
            'id': 't', 'name': 'T', 'date': '2024-01-01',
            'results': [
                {'playerId': 'a', 'points': '15', 'saldo': None},
                {'playerId': 'b', 'points': 'abc'},
            ],
        }]
        df = flatten_tournaments(tournaments)

        assert df['points'].tolist() == [15.0, 0.0]
        assert df['saldo'].tolist() == [0.0, 0.0]

    def test_flatten_accepts_snake_case(self):
        tournaments = [{
            'id': 't', 'name': 'T', 'date': '2024-01-01', 'created_at': '2024-01-01T10:00:00Z',
            'results': [{'player_id': 'a', 'points': 10, 'saldo': 1}],
        }]
        df = flatten_tournaments(tournaments)

        assert df.loc[0, 'player_id'] == 'a'
        assert df.loc[0, 'created_at'] == '2024-01-01T10:00:00Z'

    def test_missing_results_field_is_rejected(self):
        """Malformed boundary input raises instead of reaching the engine"""
        with pytest.raises(ValueError, match="results"):
            flatten_tournaments([{'id': 'broken', 'name': 'Broken', 'date': '2024-01-01'}])

    def test_player_directory_from_mapping_and_list(self, league_players):
        from_mapping = build_player_directory(league_players)
        from_list = build_player_directory([{'id': 'p_ana', 'name': 'Ana'}, {'name': 'No id'}])

        assert from_mapping['p_bruno'] == 'Bruno'
        assert from_list == {'p_ana': 'Ana'}
