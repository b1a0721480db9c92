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

"""Reconcile subcommands (cluster, all)."""

from __future__ import annotations

import typer

from cmod_manager import console
from cmod_manager.config import ClusterRef, KubeConfig, ReconcilerConfig, VSphereConfig
from cmod_manager.orchestrator import run_reconcile

app = typer.Typer(help="Run a single reconciliation pass.")


def _report(results) -> None:
    failed = [result for result in results if result.error is not None]
    skipped = [result for result in results if result.skipped]
    if skipped:
        console.print(f"[yellow]\u26a0\ufe0f  {len(skipped)} cluster(s) skipped: pass already in flight[/yellow]")
    if failed:
        raise RuntimeError(f"{len(failed)} of {len(results)} cluster(s) failed to reconcile")
    console.print(f"[green]\u2705 Reconciled {len(results)} cluster(s)[/green]")


@app.command("cluster")
def cluster(
    name: str = typer.Argument(..., help="VSphereCluster name"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="VSphereCluster namespace"),
    max_retries: int | None = typer.Option(None, "--max-retries", help="Attempts before giving up"),
) -> None:
    """Reconcile the cluster modules of one cluster."""
    kube_cfg = KubeConfig()
    rec_cfg = ReconcilerConfig()
    if max_retries is not None:
        rec_cfg = rec_cfg.model_copy(update={"max_retries": max_retries})
    ref = ClusterRef(namespace=namespace or kube_cfg.namespace or "default", name=name)
    _report(run_reconcile([ref], kube_cfg, VSphereConfig(), rec_cfg))


@app.command("all")
def all_clusters(
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Restrict to one namespace"),
    workers: int | None = typer.Option(None, "--workers", help="Clusters reconciled in parallel"),
) -> None:
    """Reconcile the cluster modules of every VSphereCluster."""
    kube_cfg = KubeConfig()
    if namespace is not None:
        kube_cfg = kube_cfg.model_copy(update={"namespace": namespace})
    rec_cfg = ReconcilerConfig()
    if workers is not None:
        rec_cfg = rec_cfg.model_copy(update={"max_workers": workers})
    _report(run_reconcile(None, kube_cfg, VSphereConfig(), rec_cfg))
