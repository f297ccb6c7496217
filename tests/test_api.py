import pytest
from fastapi import WebSocketDisconnect

from wordgrid.config import TestingConfig
from wordgrid.main import create_app


def test_health(client):
    res = client.get('/api/health')
    assert res.status_code == 200
    assert res.json() == {'ok': True}


def test_dictionary_lookup(client):
    assert client.get('/dict/validate', params={'word': 'cat'}).json() == {'word': 'CAT', 'valid': True}
    assert client.get('/dict/validate', params={'word': 'xqzv'}).json()['valid'] is False


def test_dictionary_from_file(tmp_path):
    words = tmp_path / 'words.txt'
    words.write_text('zyzzyva\nqat\n', encoding='utf-8')

    class FileConfig(TestingConfig):
        DICTIONARY_PATH = str(words)

    app = create_app(FileConfig)
    assert app.state.dictionary.is_valid('QAT')
    assert not app.state.dictionary.is_valid('CAT')


def test_submit_move_writes_to_log(app, client):
    body = {
        'gameId': 'g1',
        'playerId': 1,
        'placements': [{'x': 7, 'y': 7, 'tile': {'letter': 'A', 'value': 1}}],
        'score': 0,
    }
    res = client.post('/api/submit-move', json=body)
    assert res.status_code == 201
    assert res.json()['moveId']
    assert len(app.state.move_log.records) == 1
    assert app.state.move_log.records[0].placements[0].tile.letter == 'A'


def test_submit_move_to_file(tmp_path):
    path = tmp_path / 'logs' / 'moves.jsonl'

    class FileConfig(TestingConfig):
        MOVE_LOG_PATH = str(path)

    from fastapi.testclient import TestClient
    client = TestClient(create_app(FileConfig))
    client.post('/api/submit-move', json={'gameId': 'g1', 'playerId': 2})
    client.post('/api/submit-move', json={'gameId': 'g1', 'playerId': 1})
    assert len(path.read_text(encoding='utf-8').splitlines()) == 2


def test_submit_move_rejects_bad_body(client):
    assert client.post('/api/submit-move', json={'placements': []}).status_code == 422


def test_relay_over_websocket(client):
    with client.websocket_connect('/ws?room=r1&name=Alice') as a:
        assert a.receive_json() == {'type': 'welcome', 'playerId': 1, 'isHost': True}
        assert a.receive_json() == {'type': 'roster', 'players': [{'id': 1, 'name': 'Alice'}]}

        with client.websocket_connect('/ws?room=r1&name=Bob&prefId=2') as b:
            assert b.receive_json() == {'type': 'welcome', 'playerId': 2, 'isHost': False}
            assert len(b.receive_json()['players']) == 2
            assert len(a.receive_json()['players']) == 2
            assert a.receive_json() == {'type': 'request_state', 'targetPlayerId': 2}

            a.send_text('not json')
            a.send_json({'type': 'action', 'action': {'kind': 'pass'}})
            echoed = {'type': 'action', 'action': {'kind': 'pass'}, 'senderId': 1}
            assert a.receive_json() == echoed
            assert b.receive_json() == echoed


def test_relay_join_without_name_is_closed(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect('/ws?room=r1') as ws:
            ws.receive_json()
