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

"""
cli.py - CLI for vSphere cluster module reconciliation.

Subcommands:
    reconcile  Run a single pass (cluster, all)
    run        Resync every cluster periodically until interrupted
    show       Inspect targets and recorded modules (targets, modules)

Examples:
    # Reconcile one cluster
    cmod-manager reconcile cluster my-cluster -n default

    # Reconcile every cluster in a namespace, 8 at a time
    cmod-manager reconcile all -n tenants --workers 8

    # Resync everything every two minutes
    cmod-manager run --resync 120

Connection settings come from CMOD_* (kubectl) and GOVC_* (vCenter) environment variables.
"""

from __future__ import annotations

import logging
import sys

import typer
from rich.markup import escape

from cmod_manager import console
from cmod_manager.commands import reconcile_cmd, run_cmd, show_cmd

app = typer.Typer(
    help="Reconcile vSphere cluster modules for Cluster API clusters.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.add_typer(reconcile_cmd.app, name="reconcile")
app.command("run")(run_cmd.run)
app.add_typer(show_cmd.app, name="show")


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]\u274c {escape(str(e))}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
