"""User records and database connections for the fintech application."""

from __future__ import annotations

from .config import DatabaseConfig, load_config_from_env
from .connection import ConnectionFailure, ConnectionProvider, open_connection
from .models import User

__all__ = [
    "ConnectionFailure",
    "ConnectionProvider",
    "DatabaseConfig",
    "User",
    "load_config_from_env",
    "open_connection",
]
