"""
Dispatcher — Executes Plans Stage by Stage Against Bound Handlers

Handlers are bound by name to callables taking a TaskContext. Within a stage
every invocation runs as its own asyncio task; the next stage starts only
after every member of the current one reached a terminal result.

Usage:
    from switchboard.engine.dispatcher import Dispatcher

    dispatcher = Dispatcher({"terraform": run_terraform})
    outcome = await dispatcher.dispatch(plan, request, snapshot)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from switchboard.engine.registry import RegistrySnapshot
from switchboard.models import (
    ExecutionPlan,
    HandlerResult,
    Match,
    Pattern,
    Request,
    ResultStatus,
    TaskContext,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

# Handler callable: (context) -> payload, sync or async
HandlerFn = Callable[[TaskContext], Any]


@dataclass
class DispatchOutcome:
    """Results of one plan run, in stage-then-plan order."""

    results: list[HandlerResult] = field(default_factory=list)
    cancelled: bool = False


class Dispatcher:
    """
    Invokes handlers according to an ExecutionPlan.

    Isolation guarantees:
    - A raising handler yields a FAILURE result, never aborts siblings
    - A slow handler yields a TIMEOUT result, never blocks siblings
    - Cancellation stops the active stage and skips the remaining ones
    """

    def __init__(
        self,
        handlers: Mapping[str, HandlerFn] | None = None,
        default_timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if default_timeout <= 0:
            raise ValueError(f"default_timeout must be > 0, got {default_timeout}")
        self._handlers: dict[str, HandlerFn] = dict(handlers or {})
        self.default_timeout = default_timeout

    def bind(self, name: str, handler: HandlerFn) -> None:
        """Bind a callable to a handler name."""
        self._handlers[name] = handler

    def is_bound(self, name: str) -> bool:
        return name in self._handlers

    async def dispatch(
        self,
        plan: ExecutionPlan,
        request: Request,
        snapshot: RegistrySnapshot,
        matches: Sequence[Match] | None = None,
        cancel: asyncio.Event | None = None,
    ) -> DispatchOutcome:
        """
        Run every stage of a plan.

        Args:
            plan: Plan to execute
            request: Originating request
            snapshot: Registry snapshot the plan was built from
            matches: Classifier output, used to pass matched triggers along
            cancel: Set by the caller to cancel the remaining work

        Returns:
            DispatchOutcome with one result per invoked handler
        """
        triggers = {m.handler: m.matched_triggers for m in matches or ()}
        outcome = DispatchOutcome()
        upstream: dict[str, HandlerResult] = {}

        for stage_idx, stage in enumerate(plan.stages):
            if cancel is not None and cancel.is_set():
                outcome.cancelled = True
                break

            handoff = None
            if plan.pattern == Pattern.HANDOFF and stage_idx == 1 and plan.handoff:
                handoff = upstream.get(plan.handoff[0])

            contexts = [
                TaskContext(
                    request=request,
                    handler=name,
                    stage=stage_idx,
                    matched_triggers=triggers.get(name, frozenset()),
                    upstream=dict(upstream),
                    handoff=handoff,
                )
                for name in stage
            ]
            stage_results, interrupted = await self._run_stage(contexts, snapshot, cancel)

            outcome.results.extend(stage_results)
            upstream.update({r.handler: r for r in stage_results})
            if interrupted:
                outcome.cancelled = True
                break

        return outcome

    async def _run_stage(
        self,
        contexts: Sequence[TaskContext],
        snapshot: RegistrySnapshot,
        cancel: asyncio.Event | None,
    ) -> tuple[list[HandlerResult], bool]:
        """Run one stage to its barrier. Returns (results in stage order, cancelled)."""
        tasks = [
            asyncio.create_task(self.invoke(ctx, self._timeout_for(ctx.handler, snapshot)))
            for ctx in contexts
        ]
        pending: set[asyncio.Future[Any]] = set(tasks)
        cancel_waiter: asyncio.Task[Any] | None = None
        if cancel is not None:
            cancel_waiter = asyncio.create_task(cancel.wait())
            pending.add(cancel_waiter)

        interrupted = False
        try:
            while any(not t.done() for t in tasks):
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                if cancel_waiter is not None and cancel_waiter in done:
                    interrupted = True
                    break
        finally:
            if cancel_waiter is not None and not cancel_waiter.done():
                cancel_waiter.cancel()
            running = [t for t in tasks if not t.done()]
            for task in running:
                task.cancel()
            if running:
                await asyncio.gather(*running, return_exceptions=True)

        results: list[HandlerResult] = []
        now = time.time()
        for ctx, task in zip(contexts, tasks):
            if task.cancelled():
                logger.info("Handler %s cancelled in stage %d", ctx.handler, ctx.stage)
                results.append(
                    HandlerResult(
                        handler=ctx.handler,
                        status=ResultStatus.FAILURE,
                        error="cancelled",
                        stage=ctx.stage,
                        started_at=now,
                        finished_at=now,
                    )
                )
            else:
                results.append(task.result())
        return results, interrupted

    def _timeout_for(self, name: str, snapshot: RegistrySnapshot) -> float:
        if name in snapshot:
            timeout = snapshot.lookup(name).timeout
            if timeout:
                return timeout
        return self.default_timeout

    async def invoke(self, ctx: TaskContext, timeout: float) -> HandlerResult:
        """Invoke one handler, converting every outcome into a HandlerResult."""
        start = time.time()
        handler = self._handlers.get(ctx.handler)
        if handler is None:
            return HandlerResult(
                handler=ctx.handler,
                status=ResultStatus.FAILURE,
                error=f"No handler bound for '{ctx.handler}'",
                stage=ctx.stage,
                started_at=start,
                finished_at=time.time(),
            )

        logger.debug("Invoking %s (stage %d, timeout %.1fs)", ctx.handler, ctx.stage, timeout)
        deadline = asyncio.timeout(timeout)
        try:
            async with deadline:
                raw = await self._call(handler, ctx)
        except TimeoutError as exc:
            if not deadline.expired():
                # raised by the handler itself
                return self._failure(ctx, exc, start)
            logger.warning("Handler %s timed out after %.1fs", ctx.handler, timeout)
            return HandlerResult(
                handler=ctx.handler,
                status=ResultStatus.TIMEOUT,
                error=f"Timed out after {timeout}s",
                stage=ctx.stage,
                started_at=start,
                finished_at=time.time(),
            )
        except Exception as exc:
            return self._failure(ctx, exc, start)

        finished = time.time()
        logger.debug("Handler %s finished in %.3fs", ctx.handler, finished - start)

        if isinstance(raw, HandlerResult):
            return HandlerResult(
                handler=ctx.handler,
                status=raw.status,
                payload=raw.payload,
                error=raw.error,
                stage=ctx.stage,
                started_at=start,
                finished_at=finished,
            )
        return HandlerResult(
            handler=ctx.handler,
            status=ResultStatus.SUCCESS,
            payload=raw,
            stage=ctx.stage,
            started_at=start,
            finished_at=finished,
        )

    @staticmethod
    def _failure(ctx: TaskContext, exc: BaseException, start: float) -> HandlerResult:
        logger.warning("Handler %s failed: %s", ctx.handler, exc)
        return HandlerResult(
            handler=ctx.handler,
            status=ResultStatus.FAILURE,
            error=f"{type(exc).__name__}: {exc}",
            stage=ctx.stage,
            started_at=start,
            finished_at=time.time(),
        )

    @staticmethod
    async def _call(handler: HandlerFn, ctx: TaskContext) -> Any:
        if inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
            getattr(handler, "__call__", None)
        ):
            return await handler(ctx)
        result = await asyncio.to_thread(handler, ctx)
        if inspect.isawaitable(result):
            return await result
        return result
