"""
Ordered fallback chains: one list of extraction strategies per field, tried in
order until one yields data. Keeping the order as data makes precedence testable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


def is_present(value: Any) -> bool:
    """False for None, blank strings, and empty collections."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) > 0
    return True


@dataclass(frozen=True)
class FallbackChain(Generic[T]):
    """Named, ordered strategies for one field. Each strategy returns a value or None."""

    name: str
    strategies: tuple[tuple[str, Callable[..., T | None]], ...]

    @property
    def labels(self) -> list[str]:
        return [label for label, _ in self.strategies]

    def resolve_with_source(self, *args: Any, **kwargs: Any) -> tuple[str | None, T | None]:
        """Return (label, value) of the first strategy that yields a present value."""
        for label, strategy in self.strategies:
            value = strategy(*args, **kwargs)
            if is_present(value):
                return label, value
        return None, None

    def resolve(self, *args: Any, **kwargs: Any) -> T | None:
        return self.resolve_with_source(*args, **kwargs)[1]


def chain(name: str, *strategies: tuple[str, Callable[..., T | None]]) -> FallbackChain[T]:
    return FallbackChain(name, tuple(strategies))
