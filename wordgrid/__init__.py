"""Two-player board word game: rules engine plus room relay and matchmaking."""

__version__ = "0.1.0"
