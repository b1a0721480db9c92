"""Tests for the typer command wiring."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from cmod_manager.cli import app, main
from cmod_manager.config import ClusterRef
from cmod_manager.dispatcher import PassResult
from cmod_manager.errors import GroupingServiceError
from cmod_manager.records import AssociationRecord
from fakes import make_state

runner = CliRunner()


def test_reconcile_cluster_builds_ref_from_namespace_option():
    with patch("cmod_manager.commands.reconcile_cmd.run_reconcile",
               return_value=[PassResult(ClusterRef("tenants", "prod"))]) as run:
        result = runner.invoke(app, ["reconcile", "cluster", "prod", "-n", "tenants", "--max-retries", "2"])

    assert result.exit_code == 0, result.output
    refs, _, _, rec_cfg = run.call_args.args
    assert refs == [ClusterRef("tenants", "prod")]
    assert rec_cfg.max_retries == 2


def test_reconcile_all_fails_when_a_cluster_fails():
    results = [
        PassResult(ClusterRef("default", "a")),
        PassResult(ClusterRef("default", "b"), error=GroupingServiceError("boom")),
    ]
    with patch("cmod_manager.commands.reconcile_cmd.run_reconcile", return_value=results) as run:
        result = runner.invoke(app, ["reconcile", "all", "--workers", "2"])

    assert result.exit_code != 0
    assert isinstance(result.exception, RuntimeError)
    refs, _, _, rec_cfg = run.call_args.args
    assert refs is None
    assert rec_cfg.max_workers == 2


def test_show_modules_prints_records_and_condition():
    state = make_state(AssociationRecord("kcp", True, "uuid-kcp"))
    state.signal.set(False, ["md"])

    with patch("cmod_manager.commands.show_cmd._load", return_value=(None, state)), \
            patch("cmod_manager.commands.show_cmd.console") as console:
        result = runner.invoke(app, ["show", "modules", "test-cluster-vsphere"])

    assert result.exit_code == 0, result.output
    printed = [call.args[0] for call in console.print.call_args_list]
    assert printed[0].row_count == 1
    assert "failed to create cluster modules for: md" in printed[1]


def test_main_prints_bracketed_error_verbatim():
    with patch("cmod_manager.cli.app", side_effect=GroupingServiceError("[/dc0/host/c1] not found")), \
            patch("cmod_manager.cli.console") as console:
        with pytest.raises(SystemExit) as exc:
            main()

    assert exc.value.code == 1
    assert "\\[/dc0/host/c1] not found" in console.print.call_args.args[0]
