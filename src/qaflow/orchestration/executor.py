# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Drive a complete analysis run from configuration to report."""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Final

from ..config.models import AnalysisConfiguration, RemoteConfiguration
from ..discovery.filesystem import FileCollector
from ..errors import Cancelled, FatalError
from ..languages import detect_languages
from ..logging import get_logger
from ..models import AnalysisResult, Report, RunState, ToolFailure, ToolFailureKind
from ..tools.base import ToolResult
from ..tools.registry import ToolRegistry
from .aggregator import ResultAggregator
from .analyser import Invocation, build_invocation, classify_failure, run_invocation
from .resolver import ResolvedConfiguration, ToolConfigResolver, ToolPlan

LOGGER = get_logger(__name__)

_POLL_INTERVAL_S: Final[float] = 0.05

Formatter = Callable[[Report], None]
ToolOutcome = list[ToolResult] | ToolFailure


class Executor:
    """Run every resolved tool over one snapshot of the analysed tree.

    A run moves through :class:`RunState` in order and ends either in
    ``REPORTED`` with an :class:`AnalysisResult`, or in ``ERRORED`` with a
    :class:`FatalError`. Failures of individual tools are recorded in the
    result and never abort the run.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        configuration: AnalysisConfiguration,
        *,
        remote: RemoteConfiguration | None = None,
        collector: FileCollector | None = None,
        aggregator: ResultAggregator | None = None,
        formatter: Formatter | None = None,
    ) -> None:
        """Create an executor for a single configuration.

        Args:
            registry: Tools available to the run.
            configuration: Local analysis configuration.
            remote: Already-fetched project configuration or fetch error.
            collector: File collector; one honouring the configured permission
                policy is created when omitted.
            aggregator: Result aggregator.
            formatter: Callable receiving the final report.
        """

        self._registry = registry
        self._configuration = configuration
        self._remote = remote
        self._resolver = ToolConfigResolver(registry)
        self._collector = collector or FileCollector(
            force_file_permissions=configuration.force_file_permissions,
        )
        self._aggregator = aggregator or ResultAggregator()
        self._formatter = formatter
        self._cancel_event = threading.Event()
        self._state = RunState.INIT

    @property
    def state(self) -> RunState:
        """Return the state reached by the current or last run."""

        return self._state

    @property
    def cancelled(self) -> bool:
        """Return whether :meth:`cancel` has been requested."""

        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Request cancellation; running tools observe it through their context."""

        self._cancel_event.set()

    def run(self) -> AnalysisResult:
        """Execute the analysis and return its result.

        Returns:
            AnalysisResult: Report, invoked tools, failures and warnings.

        Raises:
            FatalError: When the run cannot produce a report.
        """

        self._state = RunState.INIT
        try:
            return self._run()
        except FatalError:
            self._state = RunState.ERRORED
            raise
        except KeyboardInterrupt:
            self._cancel_event.set()
            self._state = RunState.ERRORED
            raise Cancelled("Analysis interrupted") from None

    def _run(self) -> AnalysisResult:
        config = self._configuration
        self._check_cancelled()

        resolved = self._resolver.resolve(config.tool, config, self._remote)
        self._state = RunState.CONFIG_RESOLVED
        LOGGER.debug("Resolved tools: %s", ", ".join(resolved.names) or "none")

        root = config.directory
        files = self._collector.collect(root, resolved.exclusions, config.files)
        self._state = RunState.FILES_COLLECTED
        LOGGER.debug("Collected %d files under %s", len(files), root)
        LOGGER.debug("Detected languages: %s", ", ".join(sorted(detect_languages(files))) or "none")
        self._check_cancelled()

        plans = self._resolver.plan(resolved, files)
        results = self._invoke(plans, resolved)
        self._state = RunState.TOOLS_INVOKED

        outcome = self._aggregator.aggregate(
            results,
            resolved,
            root,
            files_by_tool={plan.name: plan.files for plan in plans},
        )
        self._state = RunState.AGGREGATED

        if self._formatter is not None:
            self._formatter(outcome.report)
        self._state = RunState.REPORTED
        return AnalysisResult(
            report=outcome.report,
            tools=tuple(plan.name for plan in plans),
            failures=outcome.failures + resolved.skipped,
            warnings=resolved.warnings,
            files=files,
            state=RunState.REPORTED,
        )

    def _invoke(self, plans: Sequence[ToolPlan], resolved: ResolvedConfiguration) -> dict[str, ToolOutcome]:
        """Run ``plans`` concurrently and return the outcome per tool.

        At most ``jobs`` invocations are active at once. An invocation that
        outlives its timeout is told to stop and no longer counts against that
        bound, so the pool holds one thread per invocation to keep an abandoned
        runner from delaying the ones queued behind it.
        """

        if not plans:
            if resolved.requested is not None:
                LOGGER.info("No applicable files for %s", resolved.requested)
            return {}
        queued = deque(build_invocation(plan, self._configuration.directory, self._cancel_event) for plan in plans)
        limit = max(1, self._configuration.jobs)
        started: dict[str, float] = {}
        results: dict[str, ToolOutcome] = {}
        pending: dict[Future[list[ToolResult]], Invocation] = {}

        def _start(invocation: Invocation) -> list[ToolResult]:
            started[invocation.name] = time.monotonic()
            return run_invocation(invocation)

        pool = ThreadPoolExecutor(max_workers=len(queued), thread_name_prefix="qaflow-tool")
        try:
            while queued or pending:
                self._check_cancelled()
                while queued and len(pending) < limit:
                    invocation = queued.popleft()
                    pending[pool.submit(_start, invocation)] = invocation
                done, _ = wait(pending, timeout=_POLL_INTERVAL_S, return_when=FIRST_COMPLETED)
                for future in done:
                    invocation = pending.pop(future)
                    results[invocation.name] = self._collect_outcome(invocation, future)
                self._expire(pending, started, results)
            self._check_cancelled()
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
        return results

    def _collect_outcome(self, invocation: Invocation, future: Future[list[ToolResult]]) -> ToolOutcome:
        """Return the findings of ``future`` or the failure it raised."""

        try:
            return future.result()
        except Cancelled:
            if self._cancel_event.is_set():
                raise
            return classify_failure(invocation.name, Cancelled(f"{invocation.name} cancelled itself"))
        except Exception as exc:  # runner failures are recorded, not raised
            return classify_failure(invocation.name, exc)

    @staticmethod
    def _expire(
        pending: dict[Future[list[ToolResult]], Invocation],
        started: Mapping[str, float],
        results: dict[str, ToolOutcome],
    ) -> None:
        """Record a timeout for every running invocation past its deadline.

        Expired invocations are signalled through their stop event and leave
        ``pending``, freeing their slot; a runner that ignores the signal keeps
        its own thread until it returns.
        """

        now = time.monotonic()
        for future, invocation in list(pending.items()):
            limit = invocation.context.timeout_seconds
            started_at = started.get(invocation.name)
            if limit is None or started_at is None or now - started_at <= limit:
                continue
            del pending[future]
            invocation.context.stop_event.set()
            LOGGER.error("%s exceeded its %gs timeout", invocation.name, limit)
            results[invocation.name] = ToolFailure(
                tool=invocation.name,
                kind=ToolFailureKind.TIMEOUT,
                message=f"exceeded timeout of {limit:g}s",
            )

    def _check_cancelled(self) -> None:
        if self._cancel_event.is_set():
            raise Cancelled()


def run_analysis(
    registry: ToolRegistry,
    configuration: AnalysisConfiguration,
    *,
    remote: RemoteConfiguration | None = None,
    formatter: Formatter | None = None,
) -> AnalysisResult:
    """Run one analysis with a fresh :class:`Executor`."""

    return Executor(registry, configuration, remote=remote, formatter=formatter).run()


__all__ = ["Executor", "Formatter", "run_analysis"]
