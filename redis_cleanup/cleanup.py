from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterable

from .reporting import Reporter
from .store import KeyStore

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "*"
# Redis reports -1 for keys without an expiry.
NO_TTL = -1
DEFAULT_MANAGED_PREFIXES: tuple[str, ...] = ("bull",)
MAX_UNSIGNED = 2**64 - 1


class Decision(str, enum.Enum):
    DELETE = "delete"
    SKIP = "skip"
    MANAGED_SKIP = "managed_skip"


@dataclass(frozen=True)
class CleanupResult:
    total: int
    delete_candidates: int
    skipped: int
    managed: int
    deleted: int
    commit: bool


def is_managed_key(key: str, managed_prefixes: Iterable[str] = DEFAULT_MANAGED_PREFIXES) -> bool:
    """True when the key belongs to a namespace another system manages.

    The first `:` segment must be a managed prefix and the last segment must
    not be a plain unsigned integer. `bull:queue:42` is therefore NOT managed
    while `bull:queue:meta` is. A key without any `:` is never managed.
    """

    parts = key.split(":")
    if len(parts) < 2 or parts[0] not in tuple(managed_prefixes):
        return False
    return not _is_unsigned_int(parts[-1])


def _is_unsigned_int(text: str) -> bool:
    # Same acceptance as a u64 parse: one optional "+", ASCII digits, no overflow.
    digits = text[1:] if text.startswith("+") else text
    if not (digits.isascii() and digits.isdigit()):
        return False
    return int(digits) <= MAX_UNSIGNED


def should_delete(ttl: int, max_ttl: int) -> bool:
    return ttl <= max_ttl


def classify(
    key: str,
    ttl: int,
    max_ttl: int,
    managed_prefixes: Iterable[str] = DEFAULT_MANAGED_PREFIXES,
) -> Decision:
    if is_managed_key(key, managed_prefixes):
        return Decision.MANAGED_SKIP
    return Decision.DELETE if should_delete(ttl, max_ttl) else Decision.SKIP


def cleanup(
    store: KeyStore,
    pattern: str = DEFAULT_PATTERN,
    max_ttl: int = NO_TTL,
    commit: bool = False,
    *,
    reporter: Reporter | None = None,
    managed_prefixes: Iterable[str] = DEFAULT_MANAGED_PREFIXES,
) -> CleanupResult:
    """Delete keys matching `pattern` whose TTL is at or below `max_ttl`.

    Parameters
    ----------
    store:
        Store to scan and mutate.
    pattern:
        Glob pattern passed verbatim to the store's key enumeration.
    max_ttl:
        Deletion threshold in seconds. The default (-1) only matches keys
        without an expiry.
    commit:
        If False (default), decisions are reported but nothing is deleted.

    Store errors propagate immediately; deletions already made stay applied.
    """

    rep = reporter or Reporter()
    prefixes = tuple(managed_prefixes)

    rep.cleanup_started(pattern, commit)
    keys = store.keys(pattern)
    rep.keys_retrieved(len(keys))

    keys = sorted(keys)
    total = len(keys)
    rep.keys_sorted(total)

    delete_candidates = 0
    skipped = 0
    managed = 0
    deleted = 0

    for i, key in enumerate(keys, 1):
        ttl = store.ttl(key)
        decision = classify(key, ttl, max_ttl, prefixes)
        rep.key_classified(key, ttl, decision, i, total)

        if decision is Decision.MANAGED_SKIP:
            managed += 1
            continue
        if decision is Decision.SKIP:
            skipped += 1
            continue

        delete_candidates += 1
        if commit:
            store.delete(key)
            deleted += 1
            rep.key_deleted(key)

    result = CleanupResult(
        total=total,
        delete_candidates=delete_candidates,
        skipped=skipped,
        managed=managed,
        deleted=deleted,
        commit=commit,
    )
    logger.info(
        "cleanup done: pattern=%s max_ttl=%d commit=%s total=%d candidates=%d skipped=%d managed=%d deleted=%d",
        pattern,
        max_ttl,
        commit,
        total,
        delete_candidates,
        skipped,
        managed,
        deleted,
    )
    return result
