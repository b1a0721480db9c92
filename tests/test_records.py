"""Tests for target keys, association records, and the availability condition."""

from __future__ import annotations

from unittest.mock import patch

from cmod_manager.constants import (
    CONDITION_CLUSTER_MODULES_AVAILABLE,
    REASON_CLUSTER_MODULE_SETUP_FAILED,
    SEVERITY_WARNING,
    STATUS_FALSE,
    STATUS_TRUE,
)
from cmod_manager.records import AssociationRecord, AvailabilitySignal
from cmod_manager.targets import TargetDescriptor, TargetKind, control_plane_key
from fakes import make_state


def test_control_plane_key_differs_from_worker_pool_key():
    cp = TargetDescriptor(TargetKind.CONTROL_PLANE, "foo", "default")
    md = TargetDescriptor(TargetKind.WORKER_POOL, "foo", "default")

    assert cp.key == control_plane_key("foo")
    assert md.key == "foo"
    assert cp.key != md.key


def test_record_key_matches_descriptor_key():
    record = AssociationRecord("foo", True, "uuid-1")

    assert record.target_key == TargetDescriptor(TargetKind.CONTROL_PLANE, "foo", "default").key


def test_record_uses_cluster_modules_field_names():
    record = AssociationRecord("kcp", True, "uuid-1")

    assert record.to_dict() == {"controlPlane": True, "targetObjectName": "kcp", "moduleUUID": "uuid-1"}
    assert AssociationRecord.from_dict({"targetObjectName": "md", "moduleUUID": "uuid-2"}) == \
        AssociationRecord("md", False, "uuid-2")


class TestAvailabilitySignal:
    """ClusterModulesAvailable computation."""

    def test_unsatisfied_lists_names(self):
        signal = AvailabilitySignal()

        signal.set(False, ["kcp", "md"])

        assert signal.status == STATUS_FALSE
        assert signal.reason == REASON_CLUSTER_MODULE_SETUP_FAILED
        assert signal.severity == SEVERITY_WARNING
        assert signal.message == "failed to create cluster modules for: kcp, md"

    def test_satisfied_clears_reason_and_message(self):
        signal = AvailabilitySignal()
        signal.set(False, ["md"])

        signal.set(True, [])

        assert signal.satisfied
        assert signal.reason == "" and signal.severity == "" and signal.message == ""
        assert signal.to_condition() == {
            "type": CONDITION_CLUSTER_MODULES_AVAILABLE,
            "status": STATUS_TRUE,
            "lastTransitionTime": signal.last_transition_time,
        }

    def test_transition_time_changes_only_on_status_flip(self):
        signal = AvailabilitySignal()
        with patch("cmod_manager.records._now", side_effect=["t1", "t2", "t3"]):
            signal.set(False, ["md"])
            signal.set(False, ["md", "kcp"])
            assert signal.last_transition_time == "t1"
            signal.set(True, [])
            assert signal.last_transition_time == "t2"

    def test_round_trips_through_condition(self):
        signal = AvailabilitySignal()
        signal.set(False, ["md"])

        assert AvailabilitySignal.from_condition(signal.to_condition()) == signal

    def test_mark_incompatible(self):
        signal = AvailabilitySignal()

        signal.mark_incompatible("6.7.0")

        assert signal.status == STATUS_FALSE
        assert "6.7.0" in signal.message


def test_state_conditions_keep_other_conditions():
    state = make_state()
    state.other_conditions = [{"type": "Ready", "status": "True"}]

    assert state.conditions() == [{"type": "Ready", "status": "True"}]

    state.signal.set(True, [])
    assert [c["type"] for c in state.conditions()] == ["Ready", CONDITION_CLUSTER_MODULES_AVAILABLE]
