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

"""kubectl access: JSON reads, merge patches, and error classification."""

from __future__ import annotations

import json
import subprocess
from typing import Any

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from cmod_manager.config import KubeConfig
from cmod_manager.constants import KUBECTL_CONFLICT_MARKERS, KUBECTL_READ_MAX_RETRIES
from cmod_manager.errors import KubectlError, StateConflictError

_PERMANENT_READ_MARKERS = ("NotFound", "Forbidden", "the server doesn't have a resource type")


def run_kubectl(args: list[str], timeout: int = 30) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Args:
        args: kubectl arguments (e.g. ``["get", "pods", "-n", "default"]``).
        timeout: Maximum seconds to wait for the command to complete.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            ["kubectl", *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)


def _is_transient(err: BaseException) -> bool:
    if not isinstance(err, KubectlError):
        return False
    return not any(marker in err.stderr for marker in _PERMANENT_READ_MARKERS)


class KubectlClient:
    """Thin kubectl wrapper returning parsed JSON objects."""

    def __init__(self, kube_cfg: KubeConfig | None = None) -> None:
        self.kube_cfg = kube_cfg or KubeConfig()

    def _base_args(self) -> list[str]:
        args: list[str] = []
        if self.kube_cfg.kubeconfig:
            args.extend(["--kubeconfig", self.kube_cfg.kubeconfig])
        if self.kube_cfg.context:
            args.extend(["--context", self.kube_cfg.context])
        return args

    def _run_json(self, args: list[str]) -> dict[str, Any]:
        full_args = [*self._base_args(), *args]
        ok, stdout, stderr = run_kubectl(full_args, timeout=self.kube_cfg.kubectl_timeout)
        if not ok:
            if any(marker in stderr for marker in KUBECTL_CONFLICT_MARKERS):
                raise StateConflictError(full_args, stderr)
            raise KubectlError(full_args, stderr)
        return json.loads(stdout) if stdout.strip() else {}

    @retry(
        stop=stop_after_attempt(KUBECTL_READ_MAX_RETRIES),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception(_is_transient),
        reraise=True,
    )
    def _read(self, args: list[str]) -> dict[str, Any]:
        return self._run_json(args)

    def list_objects(
        self,
        resource: str,
        namespace: str | None = None,
        selector: str | None = None,
    ) -> list[dict[str, Any]]:
        """List objects of a resource type.

        Args:
            resource: kubectl resource name (e.g. ``machinedeployments.cluster.x-k8s.io``).
            namespace: Namespace to list in, or None for all namespaces.
            selector: Label selector, or None.

        Returns:
            The ``items`` of the returned list.

        Raises:
            KubectlError: If kubectl fails after retries.
        """
        args = ["get", resource, "-o", "json"]
        args.extend(["-n", namespace] if namespace else ["--all-namespaces"])
        if selector:
            args.extend(["-l", selector])
        return self._read(args).get("items", [])

    def get_object(self, resource: str, name: str, namespace: str) -> dict[str, Any]:
        """Fetch a single object.

        Raises:
            KubectlError: If the object cannot be read.
        """
        return self._read(["get", resource, name, "-n", namespace, "-o", "json"])

    def patch_object(
        self,
        resource: str,
        name: str,
        namespace: str,
        patch: dict[str, Any],
        subresource: str | None = None,
    ) -> dict[str, Any]:
        """Apply a JSON merge patch and return the updated object.

        Writes are not retried: a conflict must reach the caller so the next
        pass starts from fresh state.

        Raises:
            StateConflictError: If the patch carries a stale resourceVersion.
            KubectlError: For any other failure.
        """
        args = ["patch", resource, name, "-n", namespace, "--type=merge", "-p", json.dumps(patch), "-o", "json"]
        if subresource:
            args.append(f"--subresource={subresource}")
        return self._run_json(args)
