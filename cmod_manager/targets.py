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

"""Target descriptors: the control plane and worker pools that may own a cluster module."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from cmod_manager.constants import CONTROL_PLANE_KEY_SUFFIX


class TargetKind(str, Enum):
    CONTROL_PLANE = "ControlPlane"
    WORKER_POOL = "WorkerPool"


@dataclass(frozen=True)
class TemplateRef:
    """Reference to the infrastructure machine template of a target."""

    kind: str
    name: str
    namespace: str


def control_plane_key(name: str) -> str:
    """Return the lookup key for a control plane named *name*."""
    return f"{name}{CONTROL_PLANE_KEY_SUFFIX}"


def target_key(name: str, control_plane: bool) -> str:
    """Return the lookup key for a target, suffixing control planes."""
    return control_plane_key(name) if control_plane else name


@dataclass(frozen=True)
class TargetDescriptor:
    """A resource group that may have a cluster module.

    Attributes:
        kind: Whether the target is the control plane or a worker pool.
        name: Name of the owning resource.
        namespace: Namespace of the owning resource.
        template_ref: Infrastructure machine template used by the target, if any.
    """

    kind: TargetKind
    name: str
    namespace: str
    template_ref: TemplateRef | None = None

    @property
    def is_control_plane(self) -> bool:
        return self.kind is TargetKind.CONTROL_PLANE

    @property
    def key(self) -> str:
        return target_key(self.name, self.is_control_plane)
