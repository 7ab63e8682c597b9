"""
subscriptions.py
Selector-based subscriptions on the state tree.

Each subscriber registers a callback and a selector. The selector pulls an
ordered sequence of values out of the tree; after every store notification the
sequence is recomputed and compared position by position with the previous
one. The callback only fires when some position changed.

Comparison rule per position: identical object, or equal value for primitives
(str, int, float, bool, bytes, None). Containers and value objects are compared
by identity only, which is what the store's structural sharing relies on.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

logger = logging.getLogger("notention.subscriptions")

_PRIMITIVES = (str, int, float, bool, bytes, type(None))

Selector = Callable[[Any], Sequence[Any]]
Callback = Callable[[Any], None]


def select_all(state) -> List[Any]:
    return [state]


def _same(a, b) -> bool:
    if a is b:
        return True
    if isinstance(a, _PRIMITIVES) and isinstance(b, _PRIMITIVES):
        return type(a) is type(b) and a == b
    return False


def dependencies_changed(previous: Sequence[Any], current: Sequence[Any]) -> bool:
    if len(previous) != len(current):
        return True
    for old, new in zip(previous, current):
        if not _same(old, new):
            return True
    return False


class _Subscription:
    __slots__ = ("callback", "selector", "deps", "active")

    def __init__(self, callback: Callback, selector: Selector, deps: List[Any]):
        self.callback = callback
        self.selector = selector
        self.deps = deps
        self.active = True


class SubscriptionRegistry:
    """Keeps subscribers in registration order and dispatches notifications."""

    def __init__(self):
        self._subs: List[_Subscription] = []
        self._generation = 0

    def __len__(self) -> int:
        return len(self._subs)

    def subscribe(self, callback: Callback, selector: Optional[Selector], state) -> Callable[[], None]:
        """Register ``callback``; ``state`` is the snapshot used to seed the cache.

        Returns an unsubscribe function that may be called any number of times.
        """
        if selector is None:
            selector = select_all
        sub = _Subscription(callback, selector, list(selector(state)))
        self._subs.append(sub)

        def unsubscribe():
            if not sub.active:
                return
            sub.active = False
            try:
                self._subs.remove(sub)
            except ValueError:
                pass

        return unsubscribe

    def notify(self, state) -> None:
        self._generation += 1
        generation = self._generation
        # Iterate over a copy: callbacks may subscribe or unsubscribe.
        for sub in list(self._subs):
            if generation != self._generation:
                # A callback committed a newer tree and that pass has already
                # brought every subscriber up to date.
                break
            if not sub.active:
                continue
            try:
                deps = list(sub.selector(state))
            except Exception:
                logger.exception("Selector failed; subscriber skipped")
                continue
            if not dependencies_changed(sub.deps, deps):
                continue
            sub.deps = deps
            try:
                sub.callback(state)
            except Exception:
                logger.exception("Subscriber callback raised")
