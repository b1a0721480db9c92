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

"""Target discovery: live control plane and worker pools of a cluster."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from cmod_manager import logger
from cmod_manager.constants import (
    LABEL_CLUSTER_NAME,
    RESOURCE_CONTROL_PLANES,
    RESOURCE_WORKER_POOLS,
    resource_value,
)
from cmod_manager.errors import MultipleControlPlanesError
from cmod_manager.kube import KubectlClient
from cmod_manager.targets import TargetDescriptor, TargetKind, TemplateRef


@dataclass(frozen=True)
class Resource:
    """The slice of a control plane or worker pool object discovery cares about.

    Attributes:
        name: Object name.
        namespace: Object namespace.
        marked_for_deletion: Whether a deletion timestamp is set.
        template_ref: Infrastructure machine template reference, if any.
    """

    name: str
    namespace: str
    marked_for_deletion: bool = False
    template_ref: TemplateRef | None = None

    @classmethod
    def from_object(cls, obj: dict[str, Any], template_ref_path: list[str]) -> Resource:
        """Build a Resource from a kubectl JSON object.

        Args:
            obj: Kubernetes object as returned by ``kubectl get -o json``.
            template_ref_path: Key path to the infrastructure template reference.
        """
        metadata = obj.get("metadata", {})
        namespace = metadata.get("namespace", "")

        node: Any = obj
        for key in template_ref_path:
            node = node.get(key) if isinstance(node, dict) else None
        template_ref = None
        if isinstance(node, dict) and node.get("name"):
            template_ref = TemplateRef(
                kind=node.get("kind", ""),
                name=node["name"],
                namespace=node.get("namespace") or namespace,
            )

        return cls(
            name=metadata.get("name", ""),
            namespace=namespace,
            marked_for_deletion=bool(metadata.get("deletionTimestamp")),
            template_ref=template_ref,
        )


class ResourceLister(Protocol):
    """Lists the control planes and worker pools labelled for a cluster."""

    def list_control_planes(self, namespace: str, cluster: str) -> list[Resource]: ...

    def list_worker_pools(self, namespace: str, cluster: str) -> list[Resource]: ...


class KubectlResourceLister:
    """ResourceLister backed by kubectl label-selector queries."""

    def __init__(self, kube: KubectlClient) -> None:
        self.kube = kube

    def _list(self, resource: str, ref_path: list[str], namespace: str, cluster: str) -> list[Resource]:
        items = self.kube.list_objects(resource, namespace=namespace, selector=f"{LABEL_CLUSTER_NAME}={cluster}")
        return [Resource.from_object(item, ref_path) for item in items]

    def list_control_planes(self, namespace: str, cluster: str) -> list[Resource]:
        ref_path = resource_value("control_plane", "template_ref_path", default=[])
        return self._list(RESOURCE_CONTROL_PLANES, ref_path, namespace, cluster)

    def list_worker_pools(self, namespace: str, cluster: str) -> list[Resource]:
        ref_path = resource_value("worker_pool", "template_ref_path", default=[])
        return self._list(RESOURCE_WORKER_POOLS, ref_path, namespace, cluster)


def fetch_targets(lister: ResourceLister, namespace: str, cluster: str) -> dict[str, TargetDescriptor]:
    """Return the live targets of a cluster keyed by target key.

    Resources with a deletion timestamp are left out. The control plane, when
    present, comes first; worker pools follow in list order.

    Args:
        lister: Source of control plane and worker pool resources.
        namespace: Namespace of the cluster.
        cluster: Cluster API cluster name.

    Returns:
        Mapping of target key to descriptor.

    Raises:
        MultipleControlPlanesError: If more than one live control plane exists.
    """
    control_planes = [r for r in lister.list_control_planes(namespace, cluster) if not r.marked_for_deletion]
    if len(control_planes) > 1:
        raise MultipleControlPlanesError(namespace, cluster, [r.name for r in control_planes])

    targets: dict[str, TargetDescriptor] = {}
    for resource in control_planes:
        target = TargetDescriptor(TargetKind.CONTROL_PLANE, resource.name, resource.namespace, resource.template_ref)
        targets[target.key] = target

    for resource in lister.list_worker_pools(namespace, cluster):
        if resource.marked_for_deletion:
            logger.debug("Skipping worker pool %s/%s: marked for deletion", resource.namespace, resource.name)
            continue
        target = TargetDescriptor(TargetKind.WORKER_POOL, resource.name, resource.namespace, resource.template_ref)
        targets[target.key] = target

    return targets
