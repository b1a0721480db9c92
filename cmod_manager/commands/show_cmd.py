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

"""Show subcommands (targets, modules)."""

from __future__ import annotations

import typer
from rich.markup import escape
from rich.table import Table

from cmod_manager import console
from cmod_manager.config import ClusterRef, KubeConfig
from cmod_manager.discovery import KubectlResourceLister, fetch_targets
from cmod_manager.kube import KubectlClient
from cmod_manager.store import KubectlClusterStateStore

app = typer.Typer(help="Inspect cluster module state.")


def _load(name: str, namespace: str | None):
    kube_cfg = KubeConfig()
    kube = KubectlClient(kube_cfg)
    ref = ClusterRef(namespace=namespace or kube_cfg.namespace or "default", name=name)
    return kube, KubectlClusterStateStore(kube).load(ref)


@app.command("targets")
def targets(
    name: str = typer.Argument(..., help="VSphereCluster name"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="VSphereCluster namespace"),
) -> None:
    """List the live control plane and worker pools that should have a module."""
    kube, state = _load(name, namespace)
    live = fetch_targets(KubectlResourceLister(kube), state.ref.namespace, state.cluster_name)

    table = Table(title=f"Targets of {state.ref}")
    table.add_column("Key")
    table.add_column("Kind")
    table.add_column("Name")
    table.add_column("Template")
    for key, target in live.items():
        template = f"{target.template_ref.kind}/{target.template_ref.name}" if target.template_ref else "-"
        table.add_row(key, target.kind.value, target.name, template)
    console.print(table)


@app.command("modules")
def modules(
    name: str = typer.Argument(..., help="VSphereCluster name"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="VSphereCluster namespace"),
) -> None:
    """Show recorded cluster modules and the ClusterModulesAvailable condition."""
    _, state = _load(name, namespace)

    table = Table(title=f"Cluster modules of {state.ref}")
    table.add_column("Target")
    table.add_column("Control plane")
    table.add_column("Module UUID")
    for record in state.records:
        table.add_row(record.target_name, "yes" if record.control_plane else "no", record.grouping_id)
    console.print(table)

    signal = state.signal
    if signal.status is None:
        console.print("[yellow]ClusterModulesAvailable: not reported yet[/yellow]")
    elif signal.satisfied:
        console.print("[green]ClusterModulesAvailable: True[/green]")
    else:
        console.print(f"[red]ClusterModulesAvailable: False ({signal.reason}) {escape(signal.message)}[/red]")
