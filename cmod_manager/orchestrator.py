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

"""Orchestration functions that compose domain modules into workflows."""

from __future__ import annotations

import threading

import sh
from rich.panel import Panel

from cmod_manager import console
from cmod_manager.config import ClusterRef, KubeConfig, ReconcilerConfig, VSphereConfig
from cmod_manager.discovery import KubectlResourceLister
from cmod_manager.dispatcher import PassResult, ReconcileDispatcher
from cmod_manager.grouping import GovcGroupingService
from cmod_manager.kube import KubectlClient
from cmod_manager.reconciler import Reconciler
from cmod_manager.store import KubectlClusterStateStore

# ============================================================================
# Internal helpers
# ============================================================================


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.") from err


def _check_prerequisites(needs_govc: bool = True) -> None:
    """Check that kubectl (and govc, when modules are touched) are installed."""
    prereqs = ["kubectl"]
    if needs_govc:
        prereqs.append("govc")
    for cmd in prereqs:
        require_command(cmd)


def build_reconciler(kube_cfg: KubeConfig, vsphere_cfg: VSphereConfig) -> tuple[Reconciler, KubectlClusterStateStore]:
    """Wire the kubectl-backed lister and store with the govc grouping service.

    Args:
        kube_cfg: kubectl access configuration.
        vsphere_cfg: vCenter access configuration for govc.

    Returns:
        Tuple of (reconciler, state store).
    """
    kube = KubectlClient(kube_cfg)
    store = KubectlClusterStateStore(kube)
    reconciler = Reconciler(KubectlResourceLister(kube), GovcGroupingService(kube, vsphere_cfg), store)
    return reconciler, store


def display_config(kube_cfg: KubeConfig, vsphere_cfg: VSphereConfig, rec_cfg: ReconcilerConfig) -> None:
    """Print the resolved configuration (secrets omitted).

    Args:
        kube_cfg: kubectl access configuration.
        vsphere_cfg: vCenter access configuration.
        rec_cfg: Dispatch and retry configuration.
    """
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print("[yellow]Kubernetes:[/yellow]")
    console.print(f"  context         : {kube_cfg.context or '(current)'}")
    console.print(f"  namespace       : {kube_cfg.namespace or '(all)'}")
    console.print("[yellow]vCenter:[/yellow]")
    console.print(f"  url             : {vsphere_cfg.url or '(from govc defaults)'}")
    console.print(f"  datacenter      : {vsphere_cfg.datacenter or '(default)'}")
    console.print("[yellow]Reconciler:[/yellow]")
    console.print(f"  resync_period   : {rec_cfg.resync_period_seconds}s")
    console.print(f"  max_workers     : {rec_cfg.max_workers}")
    console.print(f"  max_retries     : {rec_cfg.max_retries}")


# ============================================================================
# Public API
# ============================================================================


def run_reconcile(
    refs: list[ClusterRef] | None,
    kube_cfg: KubeConfig,
    vsphere_cfg: VSphereConfig,
    rec_cfg: ReconcilerConfig,
) -> list[PassResult]:
    """Run a single pass for *refs*, or for every cluster when *refs* is None.

    Args:
        refs: Clusters to reconcile, or None for all clusters in the configured namespace.
        kube_cfg: kubectl access configuration.
        vsphere_cfg: vCenter access configuration.
        rec_cfg: Dispatch and retry configuration.

    Returns:
        One result per reconciled cluster.

    Raises:
        RuntimeError: If a required CLI tool is missing.
    """
    _check_prerequisites()
    reconciler, store = build_reconciler(kube_cfg, vsphere_cfg)
    if refs is None:
        refs = store.list_clusters(kube_cfg.namespace)
    console.print(Panel.fit(f"Reconciling cluster modules for {len(refs)} cluster(s)", style="bold blue"))
    return ReconcileDispatcher(reconciler, rec_cfg).run_once(refs)


def run_loop(
    kube_cfg: KubeConfig,
    vsphere_cfg: VSphereConfig,
    rec_cfg: ReconcilerConfig,
    stop_event: threading.Event | None = None,
) -> None:
    """Resync every cluster periodically until interrupted.

    Args:
        kube_cfg: kubectl access configuration.
        vsphere_cfg: vCenter access configuration.
        rec_cfg: Dispatch and retry configuration.
        stop_event: Event that ends the loop, or None to run until interrupted.

    Raises:
        RuntimeError: If a required CLI tool is missing.
    """
    _check_prerequisites()
    reconciler, store = build_reconciler(kube_cfg, vsphere_cfg)
    dispatcher = ReconcileDispatcher(reconciler, rec_cfg)
    stop_event = stop_event or threading.Event()
    console.print(Panel.fit(
        f"Reconciling cluster modules every {rec_cfg.resync_period_seconds}s", style="bold blue"))
    try:
        dispatcher.run_forever(lambda: store.list_clusters(kube_cfg.namespace), stop_event)
    except KeyboardInterrupt:
        stop_event.set()
        console.print("[yellow]\u2139\ufe0f  Interrupted, stopping[/yellow]")
