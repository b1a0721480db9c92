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

"""Grouping service: vSphere cluster module lookup, creation, and removal."""

from __future__ import annotations

import os
from typing import Any, Protocol

import sh

from cmod_manager import logger
from cmod_manager.config import VSphereConfig
from cmod_manager.constants import (
    DEFAULT_RESOURCE_POOL,
    GOVC_NOT_FOUND_MARKERS,
    KIND_MACHINE_TEMPLATE,
    OWNER_KIND_COMPUTE_CLUSTER,
    RESOURCE_MACHINE_TEMPLATES,
    resource_value,
)
from cmod_manager.errors import GroupingServiceError, IncompatibleOwnerError
from cmod_manager.kube import KubectlClient
from cmod_manager.targets import TargetDescriptor


class GroupingService(Protocol):
    """Operations the reconciler needs from the platform hosting cluster modules."""

    def exists(self, target: TargetDescriptor, grouping_id: str) -> bool:
        """Return whether the module *grouping_id* still exists for *target*."""
        ...

    def create(self, target: TargetDescriptor) -> str:
        """Create a module for *target* and return its id.

        Returns ``""`` when creation was skipped on purpose.

        Raises:
            IncompatibleOwnerError: If the target's placement cannot host a module.
        """
        ...

    def remove(self, grouping_id: str) -> None:
        """Delete the module *grouping_id*."""
        ...


def _lookup(obj: dict[str, Any], path: list[str]) -> Any:
    node: Any = obj
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


class GovcGroupingService:
    """GroupingService implemented with the govc CLI.

    Module placement follows the resource pool of the target's
    VSphereMachineTemplate: the pool's owner must be a compute cluster, and
    the module is created on that cluster.
    """

    def __init__(self, kube: KubectlClient, vsphere_cfg: VSphereConfig | None = None) -> None:
        self.kube = kube
        self.vsphere_cfg = vsphere_cfg or VSphereConfig()

    def _govc(self, *args: str) -> str:
        """Run a govc subcommand and return its stdout.

        Raises:
            GroupingServiceError: If govc is missing, fails, or exceeds the configured timeout.
        """
        env = {**os.environ, **self.vsphere_cfg.govc_env()}
        try:
            return str(sh.govc(*args, _env=env, _timeout=self.vsphere_cfg.timeout))
        except sh.CommandNotFound as err:
            raise GroupingServiceError("Required command 'govc' not found. Please install it first.") from err
        except sh.TimeoutException as err:
            raise GroupingServiceError(
                f"govc {args[0]} timed out after {self.vsphere_cfg.timeout}s"
            ) from err
        except sh.ErrorReturnCode as err:
            stderr = err.stderr.decode(errors="replace").strip()
            raise GroupingServiceError(f"govc {args[0]} failed: {stderr[:200]}", stderr=stderr) from err

    def _resource_pool(self, target: TargetDescriptor) -> str | None:
        ref = target.template_ref
        if ref is None or ref.kind != KIND_MACHINE_TEMPLATE:
            return None
        template = self.kube.get_object(RESOURCE_MACHINE_TEMPLATES, ref.name, ref.namespace)
        pool_path = resource_value("machine_template", "resource_pool_path", default=[])
        return _lookup(template, pool_path) or DEFAULT_RESOURCE_POOL

    def create(self, target: TargetDescriptor) -> str:
        pool = self._resource_pool(target)
        if pool is None:
            logger.info("Skipping cluster module for %s %s/%s: no %s reference",
                        target.kind.value, target.namespace, target.name, KIND_MACHINE_TEMPLATE)
            return ""

        owner = self._govc("object.collect", "-s", pool, "owner").strip()
        if not owner.startswith(f"{OWNER_KIND_COMPUTE_CLUSTER}:"):
            raise IncompatibleOwnerError(
                f"resource pool {pool} is owned by {owner or 'an unknown object'}, not a compute cluster"
            )

        cluster_path = self._govc("ls", "-L", owner).strip()
        module_id = self._govc("cluster.module.create", "-cluster", cluster_path).strip()
        logger.info("Created cluster module %s on %s for %s/%s", module_id, cluster_path, target.namespace, target.name)
        return module_id

    def exists(self, target: TargetDescriptor, grouping_id: str) -> bool:
        output = self._govc("cluster.module.ls")
        module_ids = {line.split()[0] for line in output.splitlines() if line.strip()}
        return grouping_id in module_ids

    def remove(self, grouping_id: str) -> None:
        try:
            self._govc("cluster.module.rm", grouping_id)
        except GroupingServiceError as err:
            if any(marker in err.stderr.lower() for marker in GOVC_NOT_FOUND_MARKERS):
                logger.info("Cluster module %s already gone", grouping_id)
                return
            raise
        logger.info("Removed cluster module %s", grouping_id)
