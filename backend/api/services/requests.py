"""Generation tracking for in-flight analysis requests.

A dashboard client fires a new analysis whenever its selection (session,
drivers, corner) changes.  Only the newest request per client scope may
deliver a result: starting a request cancels the scope's previous one, and
a result that finishes after being superseded is discarded.

Cancellation is advisory.  Work already handed to a thread keeps running,
its result is simply dropped.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class AnalysisKey:
    """Selection an analysis result depends on.  A change invalidates it."""

    session_key: int
    drivers: tuple[int, ...]
    corner: int | None = None


class StaleRequestError(Exception):
    """The request was superseded by a newer one from the same client scope."""

    def __init__(self, scope: str, key: AnalysisKey, generation: int) -> None:
        super().__init__(f"Request {generation} for {key} in scope {scope!r} was superseded")
        self.scope = scope
        self.key = key
        self.generation = generation


class RequestTracker:
    """Assigns generations per client scope and cancels superseded work.

    A scope is only remembered while it has a request in flight.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._generations: dict[str, int] = {}
        self._keys: dict[str, AnalysisKey] = {}
        self._tasks: dict[str, asyncio.Task[Any]] = {}

    def __len__(self) -> int:
        """Number of scopes with a request in flight."""
        return len(self._generations)

    def generation(self, scope: str) -> int:
        """Generation of the request in flight for *scope* (0 when idle)."""
        return self._generations.get(scope, 0)

    def current_key(self, scope: str) -> AnalysisKey | None:
        return self._keys.get(scope)

    def is_current(self, scope: str, generation: int) -> bool:
        return self._generations.get(scope, 0) == generation

    def _begin(self, scope: str, key: AnalysisKey) -> int:
        generation = next(self._counter)
        self._generations[scope] = generation
        previous_key = self._keys.get(scope)
        self._keys[scope] = key

        previous = self._tasks.pop(scope, None)
        if previous is not None and not previous.done():
            logger.debug(
                "Scope %r: generation %d (%s) supersedes in-flight %s",
                scope,
                generation,
                key,
                previous_key,
            )
            previous.cancel()
        return generation

    def _release(self, scope: str, generation: int, task: asyncio.Task[Any]) -> None:
        if self._tasks.get(scope) is task:
            del self._tasks[scope]
        if self.is_current(scope, generation):
            del self._generations[scope]
            del self._keys[scope]

    async def run(
        self,
        scope: str | None,
        key: AnalysisKey,
        work: Coroutine[Any, Any, T],
    ) -> T:
        """Run *work* as the newest request for *scope*.

        Without a scope the work simply runs untracked.  The scope is
        forgotten once its newest request finishes.

        Raises
        ------
        StaleRequestError
            If a newer request for the same scope started before *work*
            delivered its result.
        """
        if scope is None:
            return await work

        generation = self._begin(scope, key)
        task: asyncio.Task[T] = asyncio.ensure_future(work)
        self._tasks[scope] = task
        try:
            result = await task
        except asyncio.CancelledError:
            if not self.is_current(scope, generation):
                raise StaleRequestError(scope, key, generation) from None
            raise
        finally:
            current = self.is_current(scope, generation)
            self._release(scope, generation, task)

        if not current:
            logger.debug("Scope %r: discarding stale result of generation %d", scope, generation)
            raise StaleRequestError(scope, key, generation)
        return result
