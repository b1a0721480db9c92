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

"""Cluster module reconciliation: diff live targets against records and converge."""

from __future__ import annotations

import re

from cmod_manager import logger
from cmod_manager.config import ClusterRef
from cmod_manager.constants import MIN_VCENTER_VERSION
from cmod_manager.discovery import ResourceLister, fetch_targets
from cmod_manager.errors import IncompatibleOwnerError, ReconcileError
from cmod_manager.grouping import GroupingService
from cmod_manager.records import AssociationRecord, ClusterState
from cmod_manager.store import ClusterStateStore


def parse_version(version: str) -> tuple[int, ...]:
    """Parse the leading numeric components of a version string.

    Args:
        version: Version such as ``7.0.3`` or ``v8.0.1.00300``.

    Returns:
        Tuple of integers, empty when no numeric component is found.
    """
    return tuple(int(part) for part in re.findall(r"\d+", version)[:3])


def vcenter_supports_modules(version: str) -> bool:
    """Return whether *version* supports cluster modules; unknown versions are assumed to."""
    parsed = parse_version(version)
    if not parsed:
        return True
    return parsed >= parse_version(MIN_VCENTER_VERSION)


class Reconciler:
    """Converges the cluster modules of one cluster per call.

    The reconciler holds no locks; callers must not run two passes for the
    same cluster at once (see ReconcileDispatcher).
    """

    def __init__(self, lister: ResourceLister, service: GroupingService, store: ClusterStateStore) -> None:
        self.lister = lister
        self.service = service
        self.store = store

    def reconcile(self, ref: ClusterRef) -> None:
        """Run one pass for the VSphereCluster *ref* and persist the outcome.

        State is written once at the end of the pass when it changed, also
        when some sub-operations failed, so created and removed modules are
        never forgotten.

        Raises:
            MultipleControlPlanesError: Discovery found more than one control plane; nothing is written.
            ReconcileError: One or more module operations failed; partial progress is saved first.
        """
        state = self.store.load(ref)
        before = state.snapshot()
        try:
            self.reconcile_state(state)
        except ReconcileError:
            self._save_if_changed(state, before)
            raise
        self._save_if_changed(state, before)

    def _save_if_changed(self, state: ClusterState, before: tuple) -> None:
        if state.snapshot() == before:
            logger.debug("No changes for %s", state.ref)
            return
        self.store.save(state)

    def reconcile_state(self, state: ClusterState) -> None:
        """Converge *state* in place against the live targets and the grouping service.

        Raises:
            MultipleControlPlanesError: Before any change to *state*.
            ReconcileError: After *state* reflects every sub-operation of the pass.
        """
        if state.paused:
            logger.info("Reconciliation is paused for %s", state.ref)
            return

        if not vcenter_supports_modules(state.vcenter_version):
            logger.info("vCenter %s of %s does not support cluster modules", state.vcenter_version, state.ref)
            state.signal.mark_incompatible(state.vcenter_version)
            return

        live = fetch_targets(self.lister, state.ref.namespace, state.cluster_name)

        errors: list[Exception] = []
        retained: list[AssociationRecord] = []
        associated: set[str] = set()

        for record in state.records:
            target = live.get(record.target_key)
            if target is None:
                try:
                    self.service.remove(record.grouping_id)
                except Exception as err:
                    # The record stays until a removal succeeds (DESIGN.md, open question 3).
                    logger.error("Failed to remove cluster module %s of %s: %s",
                                 record.grouping_id, record.target_name, err)
                    retained.append(record)
                    errors.append(err)
                    continue
                logger.info("Removed cluster module %s of deleted target %s", record.grouping_id, record.target_name)
                continue

            try:
                exists = self.service.exists(target, record.grouping_id)
            except Exception as err:
                logger.error("Failed to verify cluster module %s of %s: %s",
                             record.grouping_id, record.target_name, err)
                retained.append(record)
                associated.add(record.target_key)
                errors.append(err)
                continue

            if exists:
                retained.append(record)
                associated.add(record.target_key)
            else:
                # Gone on the platform already; the key is left free so it is recreated below.
                logger.info("Cluster module %s of %s no longer exists", record.grouping_id, record.target_name)

        failed_names: list[str] = []
        for key, target in live.items():
            if key in associated:
                continue
            try:
                grouping_id = self.service.create(target)
            except IncompatibleOwnerError as err:
                logger.warning("Cannot create cluster module for %s: %s", target.name, err.reason)
                failed_names.append(target.name)
                continue
            except Exception as err:
                logger.error("Failed to create cluster module for %s: %s", target.name, err)
                failed_names.append(target.name)
                errors.append(err)
                continue

            if not grouping_id:
                logger.info("Cluster module creation skipped for %s", target.name)
                continue
            retained.append(AssociationRecord(target.name, target.is_control_plane, grouping_id))

        state.records = retained
        state.signal.set(not failed_names, failed_names)

        if errors:
            raise ReconcileError(errors)
