def _events(sio_client, name):
    return [pkt['args'][0] for pkt in sio_client.get_received('/ws') if pkt['name'] == name]


def test_socket_connect_and_ping(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'connected' for pkt in received)

    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    assert _events(sio_client, 'pong') == [{'n': 1}]


def test_broadcast_is_pushed(sio_client, client):
    sio_client.get_received('/ws')  # flush

    client.post('/global', json={'action': 'sendBroadcast', 'data': {'message': 'Double credits!'}})
    received = sio_client.get_received('/ws')
    broadcasts = [pkt['args'][0] for pkt in received if pkt['name'] == 'broadcast']
    updates = [pkt['args'][0] for pkt in received if pkt['name'] == 'settings_update']
    assert [b['message'] for b in broadcasts] == ['Double credits!']
    assert updates == [{'revision': 1}]


def test_rejected_settings_action_pushes_nothing(sio_client, client):
    sio_client.get_received('/ws')  # flush

    client.post('/global', json={'action': 'sendBroadcast', 'data': {}})
    assert _events(sio_client, 'settings_update') == []


def test_level_changes_are_pushed(sio_client, client):
    sio_client.get_received('/ws')  # flush

    obstacles = [{'type': 'spike', 'x': 5, 'y': 0}]
    client.post('/levels', json={'action': 'saveLevel', 'difficulty': 'easy', 'obstacles': obstacles})
    client.post('/levels', json={'action': 'clearAll'})
    assert _events(sio_client, 'levels_update') == [{'easy': obstacles}, {}]
