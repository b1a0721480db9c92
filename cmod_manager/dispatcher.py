# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Dispatch of reconciliation passes: parallel across clusters, serialized per cluster."""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

from rich.markup import escape
from tenacity import retry, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from cmod_manager import console, logger
from cmod_manager.config import ClusterRef, ReconcilerConfig
from cmod_manager.errors import ClusterModuleError, MultipleControlPlanesError
from cmod_manager.reconciler import Reconciler


@dataclass
class PassResult:
    """Outcome of one dispatched pass.

    Attributes:
        ref: Cluster the pass ran for.
        error: Final error after retries, or None on success.
        skipped: Whether the pass was skipped because one was already in flight.
        output: Buffered console output of the pass.
    """

    ref: ClusterRef
    error: Exception | None = None
    skipped: bool = False
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped


class ReconcileDispatcher:
    """Runs passes for many clusters with at most one in flight per cluster."""

    def __init__(self, reconciler: Reconciler, cfg: ReconcilerConfig | None = None) -> None:
        self.reconciler = reconciler
        self.cfg = cfg or ReconcilerConfig()
        self._locks: dict[ClusterRef, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, ref: ClusterRef) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(ref, threading.Lock())

    def _prune_locks(self, live: list[ClusterRef]) -> None:
        """Forget idle locks of clusters that are no longer listed."""
        keep = set(live)
        with self._locks_guard:
            for ref in [ref for ref in self._locks if ref not in keep]:
                if not self._locks[ref].locked():
                    del self._locks[ref]

    def _reconcile_with_retry(self, ref: ClusterRef) -> None:
        """Run a pass, retrying failed passes with exponential backoff.

        Raises:
            MultipleControlPlanesError: Immediately; it needs a configuration fix, not a retry.
            Exception: The last error once all attempts failed.
        """

        @retry(
            stop=stop_after_attempt(self.cfg.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=self.cfg.retry_wait_max_seconds),
            retry=retry_if_not_exception_type(MultipleControlPlanesError),
            reraise=True,
        )
        def _attempt() -> None:
            self.reconciler.reconcile(ref)

        _attempt()

    def dispatch(self, ref: ClusterRef) -> PassResult:
        """Run one pass for *ref* unless a pass for it is already running.

        Args:
            ref: Cluster to reconcile.

        Returns:
            The pass result; errors are captured, not raised.
        """
        lock = self._lock_for(ref)
        if not lock.acquire(blocking=False):
            logger.info("Pass for %s already in flight, skipping", ref)
            return PassResult(ref, skipped=True)
        try:
            error: Exception | None = None
            with console.buffered() as buf:
                try:
                    self._reconcile_with_retry(ref)
                    console.print(f"[green]\u2705 {ref}: cluster modules reconciled[/green]")
                except Exception as err:
                    console.print(f"[red]\u274c {ref}: {escape(str(err))}[/red]")
                    error = err
            return PassResult(ref, error=error, output=buf.getvalue())
        finally:
            lock.release()

    def run_once(self, refs: list[ClusterRef]) -> list[PassResult]:
        """Reconcile *refs* in parallel and print each pass's output as a clean block.

        Args:
            refs: Clusters to reconcile; duplicates collapse to one pass.

        Returns:
            Results in the order of *refs*.
        """
        unique_refs = list(dict.fromkeys(refs))
        if not unique_refs:
            return []

        results: dict[ClusterRef, PassResult] = {}
        max_workers = min(len(unique_refs), self.cfg.max_workers)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {executor.submit(self.dispatch, ref): ref for ref in unique_refs}
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        for ref in unique_refs:
            if results[ref].output:
                console.print(results[ref].output, end="")
        return [results[ref] for ref in unique_refs]

    def run_forever(
        self,
        list_refs: Callable[[], list[ClusterRef]],
        stop_event: threading.Event,
    ) -> None:
        """Resync all clusters every ``resync_period_seconds`` until *stop_event* is set.

        Args:
            list_refs: Returns the clusters to reconcile for the next round.
            stop_event: Set to end the loop after the current round.
        """
        while not stop_event.is_set():
            try:
                refs = list_refs()
            except ClusterModuleError as err:
                logger.error("Failed to list clusters: %s", err)
            else:
                results = self.run_once(refs)
                self._prune_locks(refs)
                failed = sum(1 for result in results if result.error is not None)
                logger.info("Resync round finished: %d clusters, %d failed", len(results), failed)
            stop_event.wait(self.cfg.resync_period_seconds)
