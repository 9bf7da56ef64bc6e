import pytest

from matchplay.services.games.metrics import MetricsAggregator


def test_running_average_matches_arithmetic_mean():
    metrics = MetricsAggregator()
    durations = [3.5, 12.0, 7.25, 0.5, 41.0]
    for _ in durations:
        metrics.record_game_started()
    for d in durations:
        metrics.record_game_completed(d)
    assert metrics.completed_games == len(durations)
    assert metrics.average_game_duration == pytest.approx(sum(durations) / len(durations))
    assert metrics.active_games == 0


def test_abandoned_games_do_not_move_the_average():
    metrics = MetricsAggregator()
    metrics.record_game_started()
    metrics.record_game_started()
    metrics.record_game_completed(10.0)
    metrics.record_game_abandoned()
    data = metrics.to_dict()
    assert data['total_games'] == 2
    assert data['active_games'] == 0
    assert data['completed_games'] == 1
    assert data['average_game_duration'] == pytest.approx(10.0)


def test_peak_connections():
    metrics = MetricsAggregator()
    metrics.record_connect(1)
    metrics.record_connect(2)
    metrics.record_connect(1)
    assert metrics.total_connections == 3
    assert metrics.peak_connections == 2
