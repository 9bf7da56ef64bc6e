def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert res.get_json()['socketio_namespace'] == '/ws'


def test_health(client):
    res = client.get('/health')
    assert res.status_code == 200
    data = res.get_json()
    assert data['status'] == 'healthy'
    assert data['uptime'] >= 0
    assert data['metrics']['active_games'] == 0
    assert 'timestamp' in data['metrics']
    assert 'uptime' not in data['metrics']


def test_metrics(client):
    res = client.get('/metrics')
    assert res.status_code == 200
    data = res.get_json()
    for key in ('total_connections', 'peak_connections', 'total_games', 'active_games',
                'completed_games', 'average_game_duration', 'active_connections',
                'waiting_players', 'uptime'):
        assert key in data


def test_metrics_reflect_socket_activity(client, sio_factory):
    a = sio_factory()
    b = sio_factory()
    a.emit('find_game', namespace='/ws')
    data = client.get('/metrics').get_json()
    assert data['active_connections'] == 2
    assert data['waiting_players'] == 1
    b.emit('find_game', namespace='/ws')
    data = client.get('/metrics').get_json()
    assert data['total_games'] == 1
    assert data['active_games'] == 1
    assert data['games_in_progress'] == 1


def test_unknown_route_is_json_404(client):
    res = client.get('/nope')
    assert res.status_code == 404
    assert res.get_json() == {'error': 'Not found'}
