"""In-memory doubles for the resource lister and the grouping service."""

from __future__ import annotations

from dataclasses import dataclass, field

from cmod_manager.config import ClusterRef
from cmod_manager.discovery import Resource
from cmod_manager.records import AssociationRecord, ClusterState
from cmod_manager.targets import TargetDescriptor, TemplateRef

NAMESPACE = "default"
CLUSTER = "test-cluster"


def control_plane(name: str, namespace: str = NAMESPACE, deleting: bool = False) -> Resource:
    return Resource(
        name=name,
        namespace=namespace,
        marked_for_deletion=deleting,
        template_ref=TemplateRef("VSphereMachineTemplate", f"{name}-template", namespace),
    )


def machine_deployment(name: str, namespace: str = NAMESPACE, deleting: bool = False) -> Resource:
    return control_plane(name, namespace, deleting)


@dataclass
class FakeLister:
    """ResourceLister double; entries are (cluster, resource) pairs."""

    control_planes: list[tuple[str, Resource]] = field(default_factory=list)
    worker_pools: list[tuple[str, Resource]] = field(default_factory=list)
    calls: int = 0

    def add_control_plane(self, resource: Resource, cluster: str = CLUSTER) -> None:
        self.control_planes.append((cluster, resource))

    def add_worker_pool(self, resource: Resource, cluster: str = CLUSTER) -> None:
        self.worker_pools.append((cluster, resource))

    def list_control_planes(self, namespace: str, cluster: str) -> list[Resource]:
        self.calls += 1
        return [r for c, r in self.control_planes if c == cluster and r.namespace == namespace]

    def list_worker_pools(self, namespace: str, cluster: str) -> list[Resource]:
        return [r for c, r in self.worker_pools if c == cluster and r.namespace == namespace]


class FakeGroupingService:
    """GroupingService double backed by a set of existing module ids.

    Attributes:
        modules: Module ids that currently exist.
        create_results: Per target name, the id to return or the exception to raise.
            Names not listed get ``uuid-<name>``.
        remove_errors: Per module id, the exception to raise on removal.
        exists_errors: Per module id, the exception to raise on existence checks.
    """

    def __init__(self, modules=None, create_results=None, remove_errors=None, exists_errors=None) -> None:
        self.modules: set[str] = set(modules or ())
        self.create_results: dict[str, object] = dict(create_results or {})
        self.remove_errors: dict[str, Exception] = dict(remove_errors or {})
        self.exists_errors: dict[str, Exception] = dict(exists_errors or {})
        self.created: list[TargetDescriptor] = []
        self.removed: list[str] = []
        self.checked: list[tuple[TargetDescriptor, str]] = []

    def exists(self, target: TargetDescriptor, grouping_id: str) -> bool:
        self.checked.append((target, grouping_id))
        if grouping_id in self.exists_errors:
            raise self.exists_errors[grouping_id]
        return grouping_id in self.modules

    def create(self, target: TargetDescriptor) -> str:
        self.created.append(target)
        result = self.create_results.get(target.name, f"uuid-{target.name}")
        if isinstance(result, Exception):
            raise result
        if result:
            self.modules.add(result)
        return result

    def remove(self, grouping_id: str) -> None:
        self.removed.append(grouping_id)
        if grouping_id in self.remove_errors:
            raise self.remove_errors[grouping_id]
        self.modules.discard(grouping_id)

    @property
    def created_names(self) -> list[str]:
        return [target.name for target in self.created]


def make_state(*records: AssociationRecord, vcenter_version: str = "7.0.0", paused: bool = False) -> ClusterState:
    return ClusterState(
        ref=ClusterRef(namespace=NAMESPACE, name=f"{CLUSTER}-vsphere"),
        cluster_name=CLUSTER,
        records=list(records),
        vcenter_version=vcenter_version,
        paused=paused,
    )
