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

"""Association records, the availability condition, and the per-cluster state they live in."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from cmod_manager.config import ClusterRef
from cmod_manager.constants import (
    CONDITION_CLUSTER_MODULES_AVAILABLE,
    MESSAGE_SETUP_FAILED_PREFIX,
    REASON_CLUSTER_MODULE_SETUP_FAILED,
    REASON_VCENTER_VERSION_INCOMPATIBLE,
    SEVERITY_INFO,
    SEVERITY_WARNING,
    STATUS_FALSE,
    STATUS_TRUE,
)
from cmod_manager.targets import target_key


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# ============================================================================
# Association records
# ============================================================================

@dataclass(frozen=True)
class AssociationRecord:
    """Link between a target and the cluster module created for it.

    Records are never mutated; a replaced module means a removed record and a
    new one.

    Attributes:
        target_name: Name of the control plane or worker pool.
        control_plane: Whether the target is the control plane.
        grouping_id: Module UUID assigned by vCenter.
    """

    target_name: str
    control_plane: bool
    grouping_id: str

    @property
    def target_key(self) -> str:
        return target_key(self.target_name, self.control_plane)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the ``spec.clusterModules`` item shape."""
        return {
            "controlPlane": self.control_plane,
            "targetObjectName": self.target_name,
            "moduleUUID": self.grouping_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AssociationRecord:
        return cls(
            target_name=data.get("targetObjectName", ""),
            control_plane=bool(data.get("controlPlane", False)),
            grouping_id=data.get("moduleUUID", ""),
        )


# ============================================================================
# Availability signal
# ============================================================================

@dataclass
class AvailabilitySignal:
    """The ClusterModulesAvailable condition.

    Attributes:
        status: ``"True"``, ``"False"``, or None when never computed.
        reason: Machine-readable reason when the condition is False.
        severity: Condition severity when the condition is False.
        message: Human-readable summary when the condition is False.
        last_transition_time: RFC 3339 time of the last status flip.
    """

    status: str | None = None
    reason: str = ""
    severity: str = ""
    message: str = ""
    last_transition_time: str | None = None

    @property
    def satisfied(self) -> bool:
        return self.status == STATUS_TRUE

    def set(self, satisfied: bool, names: list[str]) -> None:
        """Recompute the condition from the names whose module creation failed.

        Args:
            satisfied: Whether every desired cluster module is in place.
            names: Failing target names in processing order; ignored when satisfied.
        """
        if satisfied:
            self._transition(STATUS_TRUE, "", "", "")
            return
        self._transition(
            STATUS_FALSE,
            REASON_CLUSTER_MODULE_SETUP_FAILED,
            SEVERITY_WARNING,
            MESSAGE_SETUP_FAILED_PREFIX + ", ".join(names),
        )

    def mark_incompatible(self, version: str) -> None:
        """Mark the condition False because vCenter does not support cluster modules."""
        self._transition(
            STATUS_FALSE,
            REASON_VCENTER_VERSION_INCOMPATIBLE,
            SEVERITY_INFO,
            f"vCenter API version {version} is not compatible with cluster modules",
        )

    def _transition(self, status: str, reason: str, severity: str, message: str) -> None:
        if status != self.status or self.last_transition_time is None:
            self.last_transition_time = _now()
        self.status = status
        self.reason = reason
        self.severity = severity
        self.message = message

    def to_condition(self) -> dict[str, Any]:
        condition: dict[str, Any] = {
            "type": CONDITION_CLUSTER_MODULES_AVAILABLE,
            "status": self.status,
            "lastTransitionTime": self.last_transition_time,
        }
        for key, value in (("reason", self.reason), ("severity", self.severity), ("message", self.message)):
            if value:
                condition[key] = value
        return condition

    @classmethod
    def from_condition(cls, condition: dict[str, Any] | None) -> AvailabilitySignal:
        if not condition:
            return cls()
        return cls(
            status=condition.get("status"),
            reason=condition.get("reason", ""),
            severity=condition.get("severity", ""),
            message=condition.get("message", ""),
            last_transition_time=condition.get("lastTransitionTime"),
        )


# ============================================================================
# Cluster state
# ============================================================================

@dataclass
class ClusterState:
    """Everything a pass reads from and writes back to one VSphereCluster.

    Attributes:
        ref: Namespace and name of the VSphereCluster.
        cluster_name: Name of the owning Cluster API cluster, used for label lookups.
        records: Current association records.
        signal: Current ClusterModulesAvailable condition.
        vcenter_version: vCenter version reported in status, or "" when unknown.
        paused: Whether reconciliation is paused for this cluster.
        resource_version: Object resourceVersion at read time.
        other_conditions: Conditions owned by other controllers, written back untouched.
    """

    ref: ClusterRef
    cluster_name: str
    records: list[AssociationRecord] = field(default_factory=list)
    signal: AvailabilitySignal = field(default_factory=AvailabilitySignal)
    vcenter_version: str = ""
    paused: bool = False
    resource_version: str | None = None
    other_conditions: list[dict[str, Any]] = field(default_factory=list)

    def snapshot(self) -> tuple:
        """Return a comparable view of the fields a pass may change."""
        return tuple(self.records), self.signal.to_condition()

    def conditions(self) -> list[dict[str, Any]]:
        """Return the full conditions list with ClusterModulesAvailable in place."""
        conditions = list(self.other_conditions)
        if self.signal.status is not None:
            conditions.append(self.signal.to_condition())
        return conditions
