"""A singly ordered sequence container with the callback-driven operations of
the server's list utility."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any, Optional

__all__ = ["LinkedList"]

Match = Callable[[Any, Any], Any]


class LinkedList:
    """An ordered collection supporting insertion at both ends, matching
    deletion, positional edits and an in-place selection sort."""

    def __init__(self, items: Optional[Iterable[Any]] = None) -> None:
        self._items: list[Any] = list(items) if items is not None else []

    def __repr__(self) -> str:
        return f"LinkedList({self._items!r})"

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._items):
            raise IndexError(f"list index {index} out of range")

    def add_back(self, item: Any) -> None:
        """Append ``item`` at the end."""
        self._items.append(item)

    def add_front(self, item: Any) -> None:
        """Insert ``item`` at the start."""
        self._items.insert(0, item)

    def delete_node(self, item: Any, match: Match) -> bool:
        """Remove the first element for which ``match(element, item)`` is true.

        Returns whether an element was removed.
        """
        for index, element in enumerate(self._items):
            if match(element, item):
                del self._items[index]
                return True
        return False

    def delete_at(self, index: int) -> None:
        """Remove the element at ``index``; raises IndexError if out of range."""
        self._check_index(index)
        del self._items[index]

    def modify_at(self, index: int, item: Any) -> None:
        """Replace the element at ``index``; raises IndexError if out of range."""
        self._check_index(index)
        self._items[index] = item

    def have_same(self, item: Any, match: Match) -> bool:
        """Return whether ``match(element, item)`` holds for any element."""
        return any(match(element, item) for element in self._items)

    def have_same_cmp(self, item: Any) -> bool:
        """Return whether any element differs from ``item``.

        This mirrors a byte-wise comparison that reports a hit on the first
        element whose contents are not equal to ``item``.
        """
        return any(element != item for element in self._items)

    def foreach(self, func: Callable[[Any], Any]) -> None:
        """Call ``func`` on every element in order."""
        for element in self._items:
            func(element)

    def sort(self, precedes: Match) -> None:
        """Selection-sort the elements in place.

        ``precedes(current, candidate)`` must be true when ``candidate``
        belongs before ``current``; for an ascending sort pass
        ``lambda a, b: a > b``.
        """
        items = self._items
        for i, _ in enumerate(items):
            smallest = i
            for j in range(i + 1, len(items)):
                if precedes(items[smallest], items[j]):
                    smallest = j
            if smallest != i:
                items[i], items[smallest] = items[smallest], items[i]

    def clear(self) -> None:
        """Remove every element."""
        self._items.clear()