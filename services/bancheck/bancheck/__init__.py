"""BanCheck - join-time ban enforcement for game servers."""

__version__ = "1.0.0"
