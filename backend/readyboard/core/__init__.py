"""Core module for configuration and utilities."""

from readyboard.core.celery_app import celery_app
from readyboard.core.config import settings
from readyboard.core.database import Base, get_db
from readyboard.core.redis import get_redis, redis_client

__all__ = [
    "celery_app",
    "settings",
    "Base",
    "get_db",
    "get_redis",
    "redis_client",
]
