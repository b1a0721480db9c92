"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cmod_manager.config import ClusterRef, KubeConfig, ReconcilerConfig, VSphereConfig
from cmod_manager.constants import DEFAULT_RESYNC_PERIOD_SECONDS


def test_reconciler_config_from_env(monkeypatch):
    monkeypatch.setenv("CMOD_MAX_WORKERS", "8")
    monkeypatch.setenv("CMOD_RESYNC_PERIOD_SECONDS", "60")

    cfg = ReconcilerConfig()

    assert cfg.max_workers == 8
    assert cfg.resync_period_seconds == 60


def test_reconciler_config_defaults(monkeypatch):
    monkeypatch.delenv("CMOD_RESYNC_PERIOD_SECONDS", raising=False)

    assert ReconcilerConfig().resync_period_seconds == DEFAULT_RESYNC_PERIOD_SECONDS


def test_reconciler_config_rejects_zero_workers():
    with pytest.raises(ValidationError):
        ReconcilerConfig(max_workers=0)


def test_kube_config_from_env(monkeypatch):
    monkeypatch.setenv("CMOD_CONTEXT", "mgmt")
    monkeypatch.setenv("CMOD_NAMESPACE", "tenants")

    cfg = KubeConfig()

    assert cfg.context == "mgmt"
    assert cfg.namespace == "tenants"


def test_vsphere_config_govc_env(monkeypatch):
    monkeypatch.setenv("GOVC_URL", "https://vc.example.com/sdk")
    monkeypatch.setenv("GOVC_INSECURE", "1")
    monkeypatch.delenv("GOVC_PASSWORD", raising=False)

    env = VSphereConfig().govc_env()

    assert env["GOVC_URL"] == "https://vc.example.com/sdk"
    assert env["GOVC_INSECURE"] == "1"
    assert "GOVC_PASSWORD" not in env


def test_cluster_ref_str():
    assert str(ClusterRef("default", "prod")) == "default/prod"
