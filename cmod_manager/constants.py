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

"""Constants, resource metadata loading, and resource_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_resources() -> dict:
    """Load resource kinds and version limits from resources.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    resources_file = Path(__file__).resolve().parent / "resources.yaml"
    with open(resources_file) as f:
        return yaml.safe_load(f)


RESOURCES = load_resources()


def resource_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the RESOURCES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = RESOURCES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Resource kinds --
KIND_MACHINE_TEMPLATE = resource_value("machine_template", "kind")

# -- kubectl resource names --
RESOURCE_CONTROL_PLANES = resource_value("control_plane", "plural")
RESOURCE_WORKER_POOLS = resource_value("worker_pool", "plural")
RESOURCE_INFRA_CLUSTERS = resource_value("infra_cluster", "plural")
RESOURCE_MACHINE_TEMPLATES = resource_value("machine_template", "plural")

# -- Labels & annotations --
LABEL_CLUSTER_NAME = "cluster.x-k8s.io/cluster-name"
ANNOTATION_PAUSED = "cluster.x-k8s.io/paused"

# -- Target keys --
# "/" is not allowed in object names, so suffixed keys never collide with worker pool names.
CONTROL_PLANE_KEY_SUFFIX = "/control-plane"

# -- Conditions --
CONDITION_CLUSTER_MODULES_AVAILABLE = "ClusterModulesAvailable"
REASON_CLUSTER_MODULE_SETUP_FAILED = "ClusterModuleSetupFailed"
REASON_VCENTER_VERSION_INCOMPATIBLE = "VCenterVersionIncompatible"
SEVERITY_WARNING = "Warning"
SEVERITY_INFO = "Info"
STATUS_TRUE = "True"
STATUS_FALSE = "False"
MESSAGE_SETUP_FAILED_PREFIX = "failed to create cluster modules for: "

# -- vCenter --
MIN_VCENTER_VERSION = resource_value("vcenter", "min_version", default="7.0.0")
OWNER_KIND_COMPUTE_CLUSTER = "ClusterComputeResource"
DEFAULT_RESOURCE_POOL = "*/Resources"
GOVC_NOT_FOUND_MARKERS = ("not found", "does not exist")

# -- kubectl --
KUBECTL_CONFLICT_MARKERS = ("Conflict", "the object has been modified")
DEFAULT_KUBECTL_TIMEOUT = 30
KUBECTL_READ_MAX_RETRIES = 3

# -- Reconciler defaults --
DEFAULT_RESYNC_PERIOD_SECONDS = 300
DEFAULT_MAX_WORKERS = 4
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_WAIT_MAX_SECONDS = 30
DEFAULT_GOVC_TIMEOUT = 60
