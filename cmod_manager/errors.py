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

"""Error taxonomy for discovery, the grouping service, and persistence."""

from __future__ import annotations

from collections.abc import Sequence


class ClusterModuleError(Exception):
    """Base class for all cmod_manager errors."""


class MultipleControlPlanesError(ClusterModuleError):
    """More than one live control plane references the same cluster."""

    def __init__(self, namespace: str, cluster: str, names: Sequence[str]) -> None:
        self.namespace = namespace
        self.cluster = cluster
        self.names = list(names)
        super().__init__(
            f"multiple control planes found for cluster {namespace}/{cluster}: {', '.join(self.names)}"
        )


class IncompatibleOwnerError(ClusterModuleError):
    """The placement backing a target cannot host a cluster module.

    Raised by the grouping service when the resource pool is not owned by a
    compute cluster (e.g. a standalone host).
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"incompatible resource pool owner: {reason}")


class GroupingServiceError(ClusterModuleError):
    """A call to the grouping service failed or timed out."""

    def __init__(self, message: str, stderr: str = "") -> None:
        self.stderr = stderr
        super().__init__(message)


class KubectlError(ClusterModuleError):
    """A kubectl invocation returned a non-zero exit code."""

    def __init__(self, args: Sequence[str], stderr: str) -> None:
        self.args_list = list(args)
        self.stderr = stderr
        super().__init__(f"kubectl {' '.join(self.args_list)} failed: {stderr.strip()[:200]}")


class StateConflictError(KubectlError):
    """The cluster object changed since it was read."""


class ReconcileError(ClusterModuleError):
    """Aggregate of the pass-fatal errors collected during one pass."""

    def __init__(self, errors: Sequence[Exception]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(str(err) for err in self.errors))
