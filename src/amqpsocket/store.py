"""Routing-key stores: where a session's responses should be routed.

The frontend gateway records, for every live session, the routing key on
the response exchange that reaches that session's connection. The socket
only reads from the store; keeping it current is the gateway's job.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

import redis

from . import config
from .errors import ConfigurationError


class RoutingKeyStore(ABC):
    """Minimal contract for a session -> routing key lookup."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[str]:
        """Return the routing key for *session_id*, or None if the session
        is no longer tracked."""


class LocalStore(RoutingKeyStore):
    """In-process store, for tests and single-process deployments."""

    def __init__(self, routing_keys: Optional[Dict[str, str]] = None):
        self._routing_keys: Dict[str, str] = dict(routing_keys or {})
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[str]:
        with self._lock:
            return self._routing_keys.get(session_id)

    def set(self, session_id: str, routing_key: str) -> None:
        with self._lock:
            self._routing_keys[session_id] = routing_key

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._routing_keys.pop(session_id, None)


class RedisStore(RoutingKeyStore):
    """Store backed by a Redis (or Valkey) server, one string key per
    session. Connection errors from the client are not caught here."""

    def __init__(self, client: redis.Redis, prefix: str = ""):
        self.client = client
        self.prefix = prefix

    def get(self, session_id: str) -> Optional[str]:
        value = self.client.get(self.prefix + str(session_id))
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value


def create_store(prefix: str = "") -> RedisStore:
    """Connect a :class:`RedisStore` using REDIS_HOST, REDIS_PORT (default
    6379) and the optional REDIS_PASSWORD environment variables."""

    host = config.environment("REDIS_HOST")
    port = config.environment("REDIS_PORT", "6379")
    password = config.environment("REDIS_PASSWORD", "") or None

    try:
        port = int(port)
    except ValueError:
        raise ConfigurationError(
            f"REDIS_PORT is not a port number: {port!r}"
        )

    client = redis.Redis(host=host, port=port, password=password)
    return RedisStore(client, prefix)
