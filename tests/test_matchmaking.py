import asyncio

from wordgrid.managers.matchmaking import WAITING_MESSAGE, Matchmaker
from helpers import FakeSio


def run(coro):
    return asyncio.run(coro)


def test_first_two_identities_are_paired():
    sio = FakeSio()
    mm = Matchmaker(sio)
    assert run(mm.find_game('sid-a', {'username': 'alice'})) is None
    assert sio.events('waiting') == [('waiting', WAITING_MESSAGE, 'sid-a')]

    start = run(mm.find_game('sid-b', {'username': 'bob'}))
    assert start.player1 == 'alice'
    assert start.player2 == 'bob'
    assert start.roomId.startswith('room-')
    assert sio.rooms[start.roomId] == {'sid-a', 'sid-b'}
    assert sio.events('game:start') == [('game:start', start.model_dump(), start.roomId)]
    assert mm.waiting is None


def test_each_pairing_gets_a_fresh_room():
    mm = Matchmaker(FakeSio())
    run(mm.find_game('a', {'username': 'alice'}))
    first = run(mm.find_game('b', {'username': 'bob'}))
    run(mm.find_game('c', {'username': 'cara'}))
    second = run(mm.find_game('d', {'username': 'dan'}))
    assert first.roomId != second.roomId


def test_missing_identity_is_denied():
    sio = FakeSio()
    mm = Matchmaker(sio)
    for payload in (None, {}, {'username': '   '}, {'username': 42}, 'alice'):
        run(mm.find_game('sid-x', payload))
    denials = sio.events('auth:denied')
    assert len(denials) == 5
    assert {d[1]['reason'] for d in denials} == {'missing_identity'}
    assert mm.waiting is None


def test_identity_active_elsewhere_is_denied_not_queued():
    sio = FakeSio()
    mm = Matchmaker(sio)
    run(mm.find_game('sid-a', {'username': 'alice'}))
    run(mm.find_game('sid-a2', {'username': 'alice'}))
    assert sio.events('auth:denied') == [
        ('auth:denied', {'reason': 'already_active', 'message': 'This account is already playing from another connection.'}, 'sid-a2'),
    ]
    assert mm.waiting == ('sid-a', 'alice')


def test_same_identity_keeps_waiting():
    sio = FakeSio()
    mm = Matchmaker(sio)
    run(mm.find_game('sid-a', {'username': 'alice'}))
    run(mm.find_game('sid-a', {'username': 'alice'}))
    assert len(sio.events('waiting')) == 2
    assert sio.events('game:start') == []


def test_renamed_waiting_connection_is_not_paired_with_itself():
    sio = FakeSio()
    mm = Matchmaker(sio)
    run(mm.find_game('sid-a', {'username': 'alice'}))
    assert run(mm.find_game('sid-a', {'username': 'bob'})) is None
    assert sio.events('game:start') == []
    assert mm.waiting == ('sid-a', 'bob')
    assert 'alice' not in mm.active

    start = run(mm.find_game('sid-c', {'username': 'cara'}))
    assert (start.player1, start.player2) == ('bob', 'cara')
    assert sio.rooms[start.roomId] == {'sid-a', 'sid-c'}


def test_disconnect_frees_slot_and_identity():
    sio = FakeSio()
    mm = Matchmaker(sio)
    run(mm.find_game('sid-a', {'username': 'alice'}))
    mm.disconnect('sid-a')
    assert mm.waiting is None
    assert 'alice' not in mm.active
    run(mm.find_game('sid-a2', {'username': 'alice'}))
    assert mm.waiting == ('sid-a2', 'alice')
    assert sio.events('auth:denied') == []


def test_socketio_events_route_to_matchmaker():
    from wordgrid.main import register_socketio_handlers

    sio = FakeSio()
    mm = Matchmaker(sio)
    register_socketio_handlers(sio, mm)
    run(sio.handlers['findGame']('sid-a', {'username': 'alice'}))
    assert mm.waiting == ('sid-a', 'alice')
    run(sio.handlers['disconnect']('sid-a', 'client disconnect'))
    assert mm.waiting is None
    run(sio.handlers['connect']('sid-b', {}))
    assert sio.events('pong') == [('pong', None, 'sid-b')]
