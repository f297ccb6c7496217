import pytest
from fastapi.testclient import TestClient

from wordgrid.config import TestingConfig
from wordgrid.game_logic import create_board
from wordgrid.main import create_app
from wordgrid.managers.relay import RoomRelay


@pytest.fixture()
def board():
    return create_board()


@pytest.fixture()
def relay():
    return RoomRelay()


@pytest.fixture()
def app():
    return create_app(TestingConfig)


@pytest.fixture()
def client(app):
    # one portal so every websocket session shares an event loop
    with TestClient(app) as test_client:
        yield test_client
