from __future__ import annotations
import logging
from typing import Dict

import socketio
from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Config
from .dictionary import load_dictionary
from .managers.matchmaking import Matchmaker
from .managers.relay import RoomRelay
from .movelog import MoveLog
from .routers.ws import router as relay_router
from .schemas import MoveRecord

logger = logging.getLogger(__name__)

def register_socketio_handlers(sio: socketio.AsyncServer, matchmaker: Matchmaker) -> None:
    async def connect(sid, environ, auth=None):
        await sio.emit('pong', to=sid)

    async def disconnect(sid, *args):
        matchmaker.disconnect(sid)

    async def find_game(sid, payload=None):
        await matchmaker.find_game(sid, payload)

    async def ping(sid, *args):
        await sio.emit('pong', to=sid)

    sio.on('connect', connect)
    sio.on('disconnect', disconnect)
    sio.on('findGame', find_game)
    sio.on('ping', ping)

def create_app(config_class=Config) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, str(config_class.LOG_LEVEL).upper(), logging.INFO),
        format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
    )

    # Socket.IO carries matchmaking; the relay is a plain WebSocket route
    origins = config_class.CORS_ORIGINS
    sio = socketio.AsyncServer(async_mode='asgi', cors_allowed_origins='*' if origins == ['*'] else origins)
    app = FastAPI(title="Wordgrid Server", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    app.state.config = config_class
    app.state.sio = sio
    app.state.relay = RoomRelay()
    app.state.matchmaker = Matchmaker(sio)
    app.state.dictionary = load_dictionary(config_class.DICTIONARY_PATH)
    app.state.move_log = MoveLog(config_class.MOVE_LOG_PATH)

    app.include_router(relay_router)
    register_socketio_handlers(sio, app.state.matchmaker)

    @app.get('/api/health')
    async def health() -> Dict[str, bool]:
        return { 'ok': True }

    @app.get('/dict/validate')
    async def validate_word(word: str):
        return { 'word': word.upper(), 'valid': app.state.dictionary.is_valid(word) }

    @app.post('/api/submit-move', status_code=status.HTTP_201_CREATED)
    async def submit_move(record: MoveRecord):
        move_id = app.state.move_log.write(record)
        return { 'message': 'Move submitted successfully', 'moveId': move_id }

    return app

def create_asgi_app(config_class=Config) -> socketio.ASGIApp:
    app = create_app(config_class)
    return socketio.ASGIApp(app.state.sio, other_asgi_app=app)

# uvicorn wordgrid.main:application --host 0.0.0.0 --port 8000
application = create_asgi_app()

def run():
    import uvicorn
    uvicorn.run('wordgrid.main:application', host=Config.HOST, port=Config.PORT)
