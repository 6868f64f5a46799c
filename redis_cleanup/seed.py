from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable

from ulid import ULID

from .reporting import Reporter
from .store import KeyStore

logger = logging.getLogger(__name__)

DEFAULT_NUM_KEYS = 40_000
DEFAULT_THRESHOLD = 0.1
DEFAULT_TTL_SEC = 10
SEED_VALUE = "1"


@dataclass
class SeedResult:
    created: int = 0
    with_ttl: int = 0
    without_ttl: int = 0
    keys: list[str] = field(default_factory=list)


def new_token() -> str:
    """Time-ordered, lexicographically sortable unique id (ULID)."""
    return str(ULID())


def seed(
    store: KeyStore,
    prefix: str = "",
    num_keys: int = DEFAULT_NUM_KEYS,
    threshold: float = DEFAULT_THRESHOLD,
    ttl: int = DEFAULT_TTL_SEC,
    *,
    reporter: Reporter | None = None,
    rng: random.Random | None = None,
    new_id: Callable[[], str] = new_token,
) -> SeedResult:
    """Write `num_keys` keys named `{prefix}:{ULID}`.

    Each key gets an expiry of `ttl` seconds when a uniform draw in [0, 1)
    falls below `threshold`; otherwise it never expires.
    """

    if num_keys < 0:
        raise ValueError(f"num_keys must be >= 0, got {num_keys}")
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be within [0, 1], got {threshold}")
    if ttl < 1:
        raise ValueError(f"ttl must be >= 1 second, got {ttl}")

    rep = reporter or Reporter()
    draw = rng or random.Random()
    result = SeedResult()

    rep.seed_started(prefix, num_keys, threshold, ttl)

    for i in range(1, num_keys + 1):
        key = f"{prefix}:{new_id()}"
        if draw.random() < threshold:
            store.set_ex(key, SEED_VALUE, ttl)
            result.with_ttl += 1
            rep.key_created(key, ttl, i, num_keys)
        else:
            store.set(key, SEED_VALUE)
            result.without_ttl += 1
            rep.key_created(key, None, i, num_keys)
        result.created += 1
        result.keys.append(key)

    logger.info(
        "seed done: prefix=%s created=%d with_ttl=%d without_ttl=%d",
        prefix,
        result.created,
        result.with_ttl,
        result.without_ttl,
    )
    return result
