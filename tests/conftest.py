#!/usr/bin/env python3
"""
Pytest configuration and fixtures
"""

import pytest
import tempfile
import shutil
from pathlib import Path
import sys

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))


@pytest.fixture
def two_player_players():
    """Player directory for the two-player scenario"""
    return [
        {'id': 'px', 'name': 'Xavier'},
        {'id': 'py', 'name': 'Yolanda'},
    ]


@pytest.fixture
def two_player_tournaments():
    """One tournament: X 100 points +10 saldo, Y 80 points -5 saldo"""
    return [
        {
            'id': 'c1',
            'name': 'Copa Otoño',
            'date': '2024-10-05',
            'createdAt': '2024-10-05T20:00:00Z',
            'results': [
                {'playerId': 'px', 'points': 100, 'saldo': 10},
                {'playerId': 'py', 'points': 80, 'saldo': -5},
            ],
        }
    ]


@pytest.fixture
def league_players():
    """Player directory mapping id -> {name}"""
    return {
        'p_ana': {'name': 'Ana'},
        'p_bruno': {'name': 'Bruno'},
        'p_carla': {'name': 'Carla'},
        'p_diego': {'name': 'Diego'},
    }


@pytest.fixture
def league_tournaments():
    """Four tournaments, deliberately out of chronological order"""
    return [
        {
            'id': 'c3',
            'name': 'Torneo Primavera',
            'date': '2024-03-15',
            'createdAt': '2024-03-15T21:00:00Z',
            'results': [
                {'playerId': 'p_ana', 'points': 120, 'saldo': 30},
                {'playerId': 'p_bruno', 'points': 95, 'saldo': -12},
                {'playerId': 'p_carla', 'points': 101, 'saldo': 4},
            ],
        },
        {
            'id': 'c1',
            'name': 'Apertura',
            'date': '2024-01-20',
            'createdAt': '2024-01-20T19:30:00Z',
            'results': [
                {'playerId': 'p_ana', 'points': 88, 'saldo': 6},
                {'playerId': 'p_bruno', 'points': 110, 'saldo': 18},
                {'playerId': 'p_carla', 'points': 70, 'saldo': -40},
                {'playerId': 'p_diego', 'points': 92, 'saldo': 0},
            ],
        },
        {
            'id': 'c2b',
            'name': 'Nocturno (segunda)',
            'date': '2024-02-10',
            'createdAt': '2024-02-10T23:00:00Z',
            'results': [
                {'playerId': 'p_ana', 'points': 104, 'saldo': 2},
                {'playerId': 'p_carla', 'points': 99, 'saldo': -1},
            ],
        },
        {
            'id': 'c2a',
            'name': 'Nocturno (primera)',
            'date': '2024-02-10',
            'createdAt': '2024-02-10T20:00:00Z',
            'results': [
                {'playerId': 'p_bruno', 'points': 100, 'saldo': 5},
                {'playerId': 'p_ana', 'points': 97, 'saldo': -3},
            ],
        },
    ]


@pytest.fixture
def temp_data_dir():
    """Temporary directory for test data"""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)
