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

"""Configuration classes and config models."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cmod_manager.constants import (
    DEFAULT_GOVC_TIMEOUT,
    DEFAULT_KUBECTL_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_WORKERS,
    DEFAULT_RESYNC_PERIOD_SECONDS,
    DEFAULT_RETRY_WAIT_MAX_SECONDS,
)


# ============================================================================
# Configuration classes
# ============================================================================

class KubeConfig(BaseSettings):
    """kubectl access, auto-loaded from CMOD_* env vars.

    Attributes:
        kubeconfig: Path to the kubeconfig file, or None for kubectl's default.
        context: kubeconfig context to use, or None for the current context.
        namespace: Namespace to restrict cluster lookups to, or None for all.
        kubectl_timeout: Maximum seconds for a single kubectl call.
    """

    model_config = SettingsConfigDict(env_prefix="CMOD_", extra="ignore")

    kubeconfig: str | None = None
    context: str | None = None
    namespace: str | None = None
    kubectl_timeout: int = Field(default=DEFAULT_KUBECTL_TIMEOUT, ge=1, le=600)


class VSphereConfig(BaseSettings):
    """vCenter access for govc, auto-loaded from the standard GOVC_* env vars.

    Attributes:
        url: vCenter SDK URL.
        username: vCenter user name.
        password: vCenter password.
        insecure: Whether to skip TLS verification.
        datacenter: Default datacenter for inventory path lookups.
        timeout: Maximum seconds for a single govc call.
    """

    model_config = SettingsConfigDict(env_prefix="GOVC_", extra="ignore")

    url: str | None = None
    username: str | None = None
    password: str | None = None
    insecure: bool = False
    datacenter: str | None = None
    timeout: int = Field(default=DEFAULT_GOVC_TIMEOUT, ge=1, le=600)

    def govc_env(self) -> dict[str, str]:
        """Return the GOVC_* variables to pass to govc invocations."""
        env = {
            "GOVC_URL": self.url,
            "GOVC_USERNAME": self.username,
            "GOVC_PASSWORD": self.password,
            "GOVC_DATACENTER": self.datacenter,
        }
        resolved = {key: value for key, value in env.items() if value}
        resolved["GOVC_INSECURE"] = "1" if self.insecure else "0"
        return resolved


class ReconcilerConfig(BaseSettings):
    """Dispatch and retry tuning, auto-loaded from CMOD_* env vars.

    Attributes:
        resync_period_seconds: Seconds between full resync rounds in run mode.
        max_workers: Number of clusters reconciled in parallel.
        max_retries: Attempts per cluster pass before giving up for the round.
        retry_wait_max_seconds: Upper bound of the exponential retry backoff.
    """

    model_config = SettingsConfigDict(env_prefix="CMOD_", extra="ignore")

    resync_period_seconds: int = Field(default=DEFAULT_RESYNC_PERIOD_SECONDS, ge=1)
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1, le=64)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=1, le=10)
    retry_wait_max_seconds: int = Field(default=DEFAULT_RETRY_WAIT_MAX_SECONDS, ge=1)


# ============================================================================
# Cluster reference
# ============================================================================

@dataclass(frozen=True)
class ClusterRef:
    """Identity of one infrastructure cluster object.

    Attributes:
        namespace: Namespace of the VSphereCluster.
        name: Name of the VSphereCluster.
    """

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"
