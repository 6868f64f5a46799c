from __future__ import annotations

import logging
from typing import Protocol

import redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class StoreConnectionError(RuntimeError):
    """Raised when a connection to the store cannot be established."""


class KeyStore(Protocol):
    """The subset of store operations the cleanup and seed flows use."""

    def keys(self, pattern: str) -> list[str]: ...

    def ttl(self, key: str) -> int: ...

    def delete(self, key: str) -> None: ...

    def set(self, key: str, value: str) -> None: ...

    def set_ex(self, key: str, value: str, seconds: int) -> None: ...


class RedisStore:
    """KeyStore backed by a single redis-py client (no pooling beyond redis-py's own)."""

    def __init__(self, client: redis.Redis):
        self.client = client

    def keys(self, pattern: str) -> list[str]:
        return list(self.client.keys(pattern))

    def ttl(self, key: str) -> int:
        # -1: no expiry, -2: key vanished since enumeration
        return int(self.client.ttl(key))

    def delete(self, key: str) -> None:
        self.client.delete(key)

    def set(self, key: str, value: str) -> None:
        self.client.set(key, value)

    def set_ex(self, key: str, value: str, seconds: int) -> None:
        self.client.set(key, value, ex=seconds)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "RedisStore":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def connect(url: str, *, socket_timeout: float | None = None) -> RedisStore:
    """Open one connection to the store and verify it with PING.

    `socket_timeout` (seconds) bounds connect and every command; None waits forever.

    Bad URLs and unreachable servers both surface as StoreConnectionError.
    """

    try:
        # surrogateescape keeps non-UTF-8 keys round-tripping into TTL/DEL.
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            encoding_errors="surrogateescape",
            socket_timeout=socket_timeout,
        )
    except ValueError as e:
        raise StoreConnectionError(f"invalid redis url {url!r}: {e}") from e

    try:
        client.ping()
    except RedisError as e:
        client.close()
        raise StoreConnectionError(f"could not connect to {_redact(url)}: {e}") from e

    logger.info("connected to %s", _redact(url))
    return RedisStore(client)


def _redact(url: str) -> str:
    """Hide the password component of a connection URL for display."""

    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    creds, _, host = rest.rpartition("@")
    if ":" not in creds:
        return url
    user = creds.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"
