from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from .cleanup import Decision


class Reporter:
    """Narration sink for the cleanup and seed flows.

    The base class ignores every event; subclasses pick what to render.
    """

    def cleanup_started(self, pattern: str, commit: bool) -> None:
        pass

    def keys_retrieved(self, count: int) -> None:
        pass

    def keys_sorted(self, count: int) -> None:
        pass

    def key_classified(self, key: str, ttl: int, decision: "Decision", index: int, total: int) -> None:
        pass

    def key_deleted(self, key: str) -> None:
        pass

    def seed_started(self, prefix: str, num_keys: int, threshold: float, ttl: int) -> None:
        pass

    def key_created(self, key: str, ttl: int | None, index: int, total: int) -> None:
        pass


def _display(key: str) -> str:
    # Non-UTF-8 keys arrive with surrogate escapes; show their bytes instead.
    return key.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")


_LABELS = {
    "delete": "🗑 DELETE",
    "skip": "🚫 SKIPPING",
    "managed_skip": "🛠️ MANAGED SKIPPING",
}


class ConsoleReporter(Reporter):
    """Progress lines on stderr, one per event."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True, highlight=False)

    def _line(self, text: str) -> None:
        self.console.print(text, markup=False, emoji=False, highlight=False, soft_wrap=True)

    def cleanup_started(self, pattern: str, commit: bool) -> None:
        self._line(f"=>Running Cleanup (keys: {_display(pattern)}, commit: {commit})")

    def keys_retrieved(self, count: int) -> None:
        self._line(f"==>Retrieved {count} keys")

    def keys_sorted(self, count: int) -> None:
        self._line(f"==>Sorted {count} keys")

    def key_classified(self, key: str, ttl: int, decision: "Decision", index: int, total: int) -> None:
        self._line(f"===>[{_LABELS[decision.value]}] Key({_display(key)}, ttl: {ttl}) keys | ({index}/{total})")

    def key_deleted(self, key: str) -> None:
        self._line("===>[♲ DELETED]")

    def seed_started(self, prefix: str, num_keys: int, threshold: float, ttl: int) -> None:
        self._line(
            f"=>Running Seed (prefix: {prefix}, num_keys: {num_keys}, threshold: {threshold}, ttl: {ttl})"
        )

    def key_created(self, key: str, ttl: int | None, index: int, total: int) -> None:
        self._line(f"=> Created Key({_display(key)}, ttl: {ttl}) | ({index}/{total})")

    def summary(self, text: str) -> None:
        self.console.print(f"[bold green]✓[/bold green] {escape(text)}")
