"""
Shared pytest fixtures for the cmod_manager test suite.

The grouping service and resource lister doubles keep everything in memory
so reconciliation passes can be driven without kubectl or govc.
"""

from __future__ import annotations

import pytest

from fakes import FakeLister, control_plane, machine_deployment


@pytest.fixture
def lister() -> FakeLister:
    return FakeLister()


@pytest.fixture
def kcp_and_md(lister: FakeLister) -> FakeLister:
    """A cluster with control plane ``kcp`` and machine deployment ``md``."""
    lister.add_control_plane(control_plane("kcp"))
    lister.add_worker_pool(machine_deployment("md"))
    return lister
