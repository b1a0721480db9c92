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

"""Persistence of association records and the availability condition on the VSphereCluster."""

from __future__ import annotations

import copy
import threading
from typing import Any, Protocol

from cmod_manager import logger
from cmod_manager.config import ClusterRef
from cmod_manager.constants import (
    ANNOTATION_PAUSED,
    CONDITION_CLUSTER_MODULES_AVAILABLE,
    LABEL_CLUSTER_NAME,
    RESOURCE_INFRA_CLUSTERS,
)
from cmod_manager.errors import StateConflictError
from cmod_manager.kube import KubectlClient
from cmod_manager.records import AssociationRecord, AvailabilitySignal, ClusterState


class ClusterStateStore(Protocol):
    """Read/replace access to the per-cluster state."""

    def load(self, ref: ClusterRef) -> ClusterState: ...

    def save(self, state: ClusterState) -> None: ...

    def list_clusters(self, namespace: str | None = None) -> list[ClusterRef]: ...


def _owner_cluster_name(metadata: dict[str, Any]) -> str:
    labels = metadata.get("labels") or {}
    if labels.get(LABEL_CLUSTER_NAME):
        return labels[LABEL_CLUSTER_NAME]
    for owner in metadata.get("ownerReferences") or []:
        if owner.get("kind") == "Cluster":
            return owner.get("name", "")
    return metadata.get("name", "")


def state_from_object(obj: dict[str, Any]) -> ClusterState:
    """Build a ClusterState from a VSphereCluster JSON object.

    Args:
        obj: VSphereCluster as returned by ``kubectl get -o json``.

    Returns:
        The parsed state; conditions other than ClusterModulesAvailable are kept verbatim.
    """
    metadata = obj.get("metadata", {})
    spec = obj.get("spec") or {}
    status = obj.get("status") or {}

    signal_condition = None
    other_conditions = []
    for condition in status.get("conditions") or []:
        if condition.get("type") == CONDITION_CLUSTER_MODULES_AVAILABLE:
            signal_condition = condition
        else:
            other_conditions.append(condition)

    return ClusterState(
        ref=ClusterRef(namespace=metadata.get("namespace", ""), name=metadata.get("name", "")),
        cluster_name=_owner_cluster_name(metadata),
        records=[AssociationRecord.from_dict(item) for item in spec.get("clusterModules") or []],
        signal=AvailabilitySignal.from_condition(signal_condition),
        vcenter_version=status.get("vCenterVersion") or "",
        paused=ANNOTATION_PAUSED in (metadata.get("annotations") or {}),
        resource_version=metadata.get("resourceVersion"),
        other_conditions=other_conditions,
    )


def _guarded(patch: dict[str, Any], resource_version: str | None) -> dict[str, Any]:
    """Add the resourceVersion precondition to a merge patch when the version is known."""
    if resource_version:
        patch["metadata"] = {"resourceVersion": resource_version}
    return patch


class KubectlClusterStateStore:
    """ClusterStateStore backed by VSphereCluster objects read and patched with kubectl."""

    def __init__(self, kube: KubectlClient) -> None:
        self.kube = kube

    def load(self, ref: ClusterRef) -> ClusterState:
        return state_from_object(self.kube.get_object(RESOURCE_INFRA_CLUSTERS, ref.name, ref.namespace))

    def save(self, state: ClusterState) -> None:
        """Write records, then conditions, guarding both with the read resourceVersion.

        Raises:
            StateConflictError: If the object changed since it was loaded.
        """
        ref = state.ref
        if not state.resource_version:
            logger.warning("No resourceVersion known for %s, saving without a conflict check", ref)
        updated = self.kube.patch_object(
            RESOURCE_INFRA_CLUSTERS, ref.name, ref.namespace,
            _guarded({"spec": {"clusterModules": [record.to_dict() for record in state.records]}},
                     state.resource_version),
        )
        resource_version = updated.get("metadata", {}).get("resourceVersion", state.resource_version)
        updated = self.kube.patch_object(
            RESOURCE_INFRA_CLUSTERS, ref.name, ref.namespace,
            _guarded({"status": {"conditions": state.conditions()}}, resource_version),
            subresource="status",
        )
        state.resource_version = updated.get("metadata", {}).get("resourceVersion", resource_version)
        logger.debug("Saved state for %s at resourceVersion %s", ref, state.resource_version)

    def list_clusters(self, namespace: str | None = None) -> list[ClusterRef]:
        items = self.kube.list_objects(RESOURCE_INFRA_CLUSTERS, namespace=namespace)
        return [
            ClusterRef(namespace=item["metadata"]["namespace"], name=item["metadata"]["name"])
            for item in items
        ]


class InMemoryClusterStateStore:
    """ClusterStateStore keeping states in a dict, with resourceVersion conflict checks."""

    def __init__(self, states: list[ClusterState] | None = None) -> None:
        self._lock = threading.Lock()
        self._states: dict[ClusterRef, ClusterState] = {}
        self.saves = 0
        for state in states or []:
            if state.resource_version is None:
                state.resource_version = "1"
            self._states[state.ref] = copy.deepcopy(state)

    def load(self, ref: ClusterRef) -> ClusterState:
        with self._lock:
            if ref not in self._states:
                raise KeyError(f"cluster {ref} not found")
            return copy.deepcopy(self._states[ref])

    def save(self, state: ClusterState) -> None:
        with self._lock:
            current = self._states.get(state.ref)
            if current is not None and current.resource_version != state.resource_version:
                raise StateConflictError(["save", str(state.ref)], "the object has been modified")
            state.resource_version = str(int(state.resource_version or "0") + 1)
            self._states[state.ref] = copy.deepcopy(state)
            self.saves += 1

    def list_clusters(self, namespace: str | None = None) -> list[ClusterRef]:
        with self._lock:
            return [ref for ref in self._states if namespace is None or ref.namespace == namespace]
