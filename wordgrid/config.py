"""
Configuration for the relay/matchmaking server and the rules engine.

Values come from environment variables (optionally loaded from a .env file)
with defaults matching the canonical game setup.
"""

import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    # Server
    HOST = os.getenv('HOST', '127.0.0.1')
    PORT = int(os.getenv('PORT', 8000))
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*').split(',')

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Dictionary word list (one word per line); built-in list when unset
    DICTIONARY_PATH = os.getenv('DICTIONARY_PATH')

    # Move log sink (JSON lines); in-memory when unset
    MOVE_LOG_PATH = os.getenv('MOVE_LOG_PATH')

    # Game rules
    TIME_ALLOWANCE_MS = int(os.getenv('TIME_ALLOWANCE_MS', 600_000))
    TICK_MS = int(os.getenv('TICK_MS', 1000))
    RACK_SIZE = int(os.getenv('RACK_SIZE', 7))
    FULL_RACK_BONUS = int(os.getenv('FULL_RACK_BONUS', 50))


class TestingConfig(Config):
    TESTING = True
    LOG_LEVEL = 'DEBUG'
    DICTIONARY_PATH = None
    MOVE_LOG_PATH = None
