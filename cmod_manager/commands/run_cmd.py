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

"""Run subcommand: periodic resync of every cluster."""

from __future__ import annotations

import typer

from cmod_manager.config import KubeConfig, ReconcilerConfig, VSphereConfig
from cmod_manager.orchestrator import display_config, run_loop


def run(
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Restrict to one namespace"),
    resync: int | None = typer.Option(None, "--resync", help="Seconds between resync rounds"),
    workers: int | None = typer.Option(None, "--workers", help="Clusters reconciled in parallel"),
) -> None:
    """Resync all clusters until interrupted."""
    kube_cfg = KubeConfig()
    if namespace is not None:
        kube_cfg = kube_cfg.model_copy(update={"namespace": namespace})

    rec_cfg = ReconcilerConfig()
    overrides: dict = {}
    if resync is not None:
        overrides["resync_period_seconds"] = resync
    if workers is not None:
        overrides["max_workers"] = workers
    if overrides:
        rec_cfg = rec_cfg.model_copy(update=overrides)

    vsphere_cfg = VSphereConfig()
    display_config(kube_cfg, vsphere_cfg, rec_cfg)
    run_loop(kube_cfg, vsphere_cfg, rec_cfg)
