"""Cross-phase completion barrier.

A *build cycle* is one host build (or one stand-alone pipeline run).  The
barrier holds one pending signal per cycle key.  A second consumer, such
as a type-checking pass scheduled by the same host, calls
:meth:`CompletionBarrier.wait` and is resumed when the cycle is
released, whether the build succeeded or failed.

Lifecycle of a cycle::

    Pending ──release()──▶ Released

Released cycles are removed from the table, so starting a cycle with a
key that was used before always creates a fresh signal.

Example
-------
::

    barrier = CompletionBarrier()

    async def build() -> None:
        async with barrier.participate("build-1"):
            await run_pipeline()

    async def typecheck() -> None:
        outcome = await barrier.wait("build-1")
        if outcome is not None and not outcome.succeeded:
            print("build failed, checking anyway")
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from wasmbridge.errors import CycleInFlightError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnonymousCycleKey:
    """Key for a cycle the caller did not name."""

    number: int


@dataclass(frozen=True)
class CycleOutcome:
    """What a waiter observes when a cycle is released.

    Parameters
    ----------
    key:
        The cycle's key.
    failures:
        Exceptions recorded by participants of the cycle, in order.
    """

    key: Hashable
    failures: tuple[BaseException, ...] = ()

    @property
    def succeeded(self) -> bool:
        return not self.failures


class BuildCycle:
    """A one-shot completion signal for a single build cycle."""

    def __init__(self, key: Hashable) -> None:
        self.key = key
        self._event = asyncio.Event()
        self._failures: list[BaseException] = []
        self._outcome: CycleOutcome | None = None

    def __repr__(self) -> str:
        state = "released" if self.released else "pending"
        return f"BuildCycle({self.key!r}, {state})"

    @property
    def released(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> CycleOutcome | None:
        return self._outcome

    def record_failure(self, error: BaseException) -> None:
        """Note that a participant of this cycle failed with ``error``."""
        if self.released:
            return
        self._failures.append(error)

    def release(self) -> bool:
        """Release all waiters.  Returns ``False`` if already released."""
        if self._outcome is not None:
            return False
        self._outcome = CycleOutcome(self.key, tuple(self._failures))
        self._event.set()
        return True

    async def wait(self) -> CycleOutcome:
        await self._event.wait()
        assert self._outcome is not None
        return self._outcome


class CompletionBarrier:
    """Table of pending :class:`BuildCycle` signals keyed by cycle identity."""

    def __init__(self) -> None:
        self._cycles: dict[Hashable, BuildCycle] = {}
        self._anonymous = itertools.count(1)

    def __len__(self) -> int:
        return len(self._cycles)

    def anonymous_key(self) -> AnonymousCycleKey:
        return AnonymousCycleKey(next(self._anonymous))

    def pending(self, key: Hashable) -> BuildCycle | None:
        """Return the pending cycle for ``key``, or ``None``."""
        return self._cycles.get(key)

    def start(self, key: Hashable) -> BuildCycle:
        """Create a pending cycle for ``key``.

        Raises
        ------
        CycleInFlightError
            If a cycle with the same key is still pending.
        """
        if key in self._cycles:
            raise CycleInFlightError(key)
        cycle = BuildCycle(key)
        self._cycles[key] = cycle
        logger.debug("Build cycle %r started", key)
        return cycle

    def release(self, key: Hashable) -> CycleOutcome | None:
        """Release the pending cycle for ``key`` and forget it.

        Returns the outcome, or ``None`` when no cycle was pending.
        """
        cycle = self._cycles.pop(key, None)
        if cycle is None:
            return None
        cycle.release()
        logger.debug(
            "Build cycle %r released (%s)",
            key,
            "ok" if cycle.outcome is not None and cycle.outcome.succeeded else "failed",
        )
        return cycle.outcome

    async def wait(self, key: Hashable) -> CycleOutcome | None:
        """Block until the cycle for ``key`` is released.

        Returns ``None`` immediately if no cycle is pending for ``key``.
        """
        cycle = self._cycles.get(key)
        if cycle is None:
            return None
        return await cycle.wait()

    @asynccontextmanager
    async def participate(self, key: Hashable) -> AsyncIterator[BuildCycle]:
        """Run a block of work as part of the cycle for ``key``.

        Joins the pending cycle when one exists; otherwise starts one and
        releases it when the block exits, on every exit path.  Failures
        raised inside the block are recorded on the cycle and re-raised.
        """
        cycle = self._cycles.get(key)
        owner = cycle is None
        if cycle is None:
            cycle = self.start(key)
        try:
            yield cycle
        except BaseException as exc:
            cycle.record_failure(exc)
            raise
        finally:
            if owner:
                if self._cycles.get(key) is cycle:
                    self.release(key)
                else:
                    cycle.release()
