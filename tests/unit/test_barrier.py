"""Unit tests for wasmbridge.barrier — BuildCycle and CompletionBarrier."""
from __future__ import annotations

import asyncio

import pytest

from wasmbridge.barrier import (
    AnonymousCycleKey,
    BuildCycle,
    CompletionBarrier,
    CycleOutcome,
)
from wasmbridge.errors import CycleInFlightError


# ===========================================================================
# CycleOutcome
# ===========================================================================


class TestCycleOutcome:
    def test_succeeded_without_failures(self) -> None:
        assert CycleOutcome("k").succeeded is True

    def test_failed_with_failures(self) -> None:
        assert CycleOutcome("k", (RuntimeError("x"),)).succeeded is False


# ===========================================================================
# BuildCycle
# ===========================================================================


class TestBuildCycle:
    def test_starts_pending(self) -> None:
        cycle = BuildCycle("k")
        assert cycle.released is False
        assert cycle.outcome is None

    def test_release_once(self) -> None:
        cycle = BuildCycle("k")
        assert cycle.release() is True
        assert cycle.release() is False
        assert cycle.released is True

    def test_failures_recorded_before_release(self) -> None:
        cycle = BuildCycle("k")
        error = RuntimeError("boom")
        cycle.record_failure(error)
        cycle.release()
        assert cycle.outcome is not None
        assert cycle.outcome.failures == (error,)

    def test_failures_after_release_are_ignored(self) -> None:
        cycle = BuildCycle("k")
        cycle.release()
        cycle.record_failure(RuntimeError("late"))
        assert cycle.outcome is not None
        assert cycle.outcome.succeeded

    def test_repr_shows_state(self) -> None:
        cycle = BuildCycle("k")
        assert "pending" in repr(cycle)
        cycle.release()
        assert "released" in repr(cycle)

    @pytest.mark.asyncio
    async def test_all_waiters_unblock(self) -> None:
        cycle = BuildCycle("k")
        waiters = [asyncio.create_task(cycle.wait()) for _ in range(3)]
        await asyncio.sleep(0)
        assert not any(w.done() for w in waiters)
        cycle.release()
        outcomes = await asyncio.wait_for(asyncio.gather(*waiters), timeout=1)
        assert all(o.key == "k" for o in outcomes)

    @pytest.mark.asyncio
    async def test_wait_after_release_returns_immediately(self) -> None:
        cycle = BuildCycle("k")
        cycle.release()
        outcome = await asyncio.wait_for(cycle.wait(), timeout=1)
        assert outcome.succeeded


# ===========================================================================
# CompletionBarrier
# ===========================================================================


class TestCompletionBarrier:
    def test_start_registers_pending_cycle(self) -> None:
        barrier = CompletionBarrier()
        cycle = barrier.start("build-1")
        assert barrier.pending("build-1") is cycle
        assert len(barrier) == 1

    def test_start_twice_raises(self) -> None:
        barrier = CompletionBarrier()
        barrier.start("build-1")
        with pytest.raises(CycleInFlightError) as excinfo:
            barrier.start("build-1")
        assert excinfo.value.key == "build-1"

    def test_release_forgets_cycle(self) -> None:
        barrier = CompletionBarrier()
        cycle = barrier.start("build-1")
        outcome = barrier.release("build-1")
        assert outcome is not None and outcome.succeeded
        assert cycle.released
        assert barrier.pending("build-1") is None

    def test_release_unknown_key_returns_none(self) -> None:
        assert CompletionBarrier().release("nope") is None

    def test_second_release_returns_none(self) -> None:
        barrier = CompletionBarrier()
        barrier.start("build-1")
        barrier.release("build-1")
        assert barrier.release("build-1") is None

    def test_restarting_key_creates_fresh_cycle(self) -> None:
        barrier = CompletionBarrier()
        old = barrier.start("build-1")
        barrier.release("build-1")
        new = barrier.start("build-1")
        assert new is not old
        assert new.released is False

    def test_anonymous_keys_are_unique(self) -> None:
        barrier = CompletionBarrier()
        first = barrier.anonymous_key()
        second = barrier.anonymous_key()
        assert isinstance(first, AnonymousCycleKey)
        assert first != second

    @pytest.mark.asyncio
    async def test_wait_without_cycle_returns_none(self) -> None:
        assert await CompletionBarrier().wait("nope") is None

    @pytest.mark.asyncio
    async def test_wait_blocks_until_release(self) -> None:
        barrier = CompletionBarrier()
        barrier.start("build-1")
        waiter = asyncio.create_task(barrier.wait("build-1"))
        await asyncio.sleep(0)
        assert not waiter.done()
        barrier.release("build-1")
        outcome = await asyncio.wait_for(waiter, timeout=1)
        assert outcome is not None and outcome.key == "build-1"

    @pytest.mark.asyncio
    async def test_waiter_on_old_cycle_not_confused_by_new_one(self) -> None:
        barrier = CompletionBarrier()
        barrier.start("build-1")
        waiter = asyncio.create_task(barrier.wait("build-1"))
        await asyncio.sleep(0)
        barrier.release("build-1")
        barrier.start("build-1")
        outcome = await asyncio.wait_for(waiter, timeout=1)
        assert outcome is not None
        assert barrier.pending("build-1") is not None


# ===========================================================================
# participate()
# ===========================================================================


class TestParticipate:
    @pytest.mark.asyncio
    async def test_owner_releases_on_success(self) -> None:
        barrier = CompletionBarrier()
        async with barrier.participate("k") as cycle:
            assert barrier.pending("k") is cycle
        assert cycle.released
        assert barrier.pending("k") is None

    @pytest.mark.asyncio
    async def test_owner_releases_on_failure(self) -> None:
        barrier = CompletionBarrier()
        with pytest.raises(ValueError):
            async with barrier.participate("k") as cycle:
                raise ValueError("boom")
        assert cycle.released
        assert cycle.outcome is not None
        assert isinstance(cycle.outcome.failures[0], ValueError)

    @pytest.mark.asyncio
    async def test_participant_does_not_release_joined_cycle(self) -> None:
        barrier = CompletionBarrier()
        host = barrier.start("k")
        async with barrier.participate("k") as cycle:
            assert cycle is host
        assert host.released is False
        assert barrier.pending("k") is host

    @pytest.mark.asyncio
    async def test_participant_failure_recorded_on_joined_cycle(self) -> None:
        barrier = CompletionBarrier()
        barrier.start("k")
        with pytest.raises(RuntimeError):
            async with barrier.participate("k"):
                raise RuntimeError("boom")
        outcome = barrier.release("k")
        assert outcome is not None
        assert not outcome.succeeded

    @pytest.mark.asyncio
    async def test_owner_exit_leaves_restarted_cycle_alone(self) -> None:
        barrier = CompletionBarrier()
        async with barrier.participate("k") as cycle:
            barrier.release("k")
            replacement = barrier.start("k")
        assert cycle.released
        assert replacement.released is False
        assert barrier.pending("k") is replacement
