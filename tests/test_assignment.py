"""
Tests for vdi_broker.services.assignment (ledger transitions + fan-out).
"""

import pytest

from vdi_broker.domain.errors import ConflictError, NotFoundError
from vdi_broker.domain.messages import VDIRequestMessage, VDIUpdateMessage, parse_push_message
from vdi_broker.domain.types import RequestStatus, VDIStatus
from vdi_broker.services import assignment


def _messages(channel):
    return [parse_push_message(raw) for raw in channel.sent]


class TestAssignVdi:

    def test_assign_broadcasts(self, services, users, channel_factory):
        """Successful assign is followed by one vdi_update to everyone."""
        a, b = channel_factory(), channel_factory()
        services.notifier.register(users["alice"].id, a)
        services.notifier.register(users["bob"].id, b)

        vdi = assignment.assign_vdi(services, "VDI01", users["alice"].id)

        assert vdi.assigned_user_id == users["alice"].id
        for ch in (a, b):
            [msg] = _messages(ch)
            assert isinstance(msg, VDIUpdateMessage)
            assert msg.data[0]["assignedUsername"] == "alice"

    def test_failed_assign_sends_nothing(self, services, users, channel_factory):
        """Conflict propagates before any notification."""
        ch = channel_factory()
        services.notifier.register(users["bob"].id, ch)
        services.ledger.assign("VDI01", users["alice"].id)

        with pytest.raises(ConflictError):
            assignment.assign_vdi(services, "VDI01", users["bob"].id)
        with pytest.raises(NotFoundError):
            assignment.assign_vdi(services, "VDI42", users["bob"].id)

        assert ch.sent == []

    def test_notification_failure_does_not_affect_result(self, services, users, channel_factory):
        """Broken channels never turn a successful assign into an error."""
        services.notifier.register(users["bob"].id, channel_factory(fail=True))
        vdi = assignment.assign_vdi(services, "VDI02", users["alice"].id)
        assert vdi.status is VDIStatus.ASSIGNED


class TestScenario:
    """Alice assigns VDI01, Bob requests it, Alice approves."""

    def test_full_handover(self, services, users, channel_factory):
        alice, bob, carol = users["alice"], users["bob"], users["carol"]
        a_ch, b_ch, c_ch = channel_factory(), channel_factory(), channel_factory()
        services.notifier.register(alice.id, a_ch)
        services.notifier.register(bob.id, b_ch)
        services.notifier.register(carol.id, c_ch)

        # Alice claims VDI01
        vdi = assignment.assign_vdi(services, "VDI01", alice.id)
        assert (vdi.status, vdi.assigned_user_id) == (VDIStatus.ASSIGNED, alice.id)

        # Bob asks for it: alert to Alice only, then a broadcast to all
        req = assignment.request_vdi(services, "VDI01", bob.id)
        assert (req.status, req.vdi_id, req.requested_by_user_id) == (
            RequestStatus.PENDING, "VDI01", bob.id,
        )
        alice_msgs = _messages(a_ch)
        assert [m.type for m in alice_msgs] == ["vdi_update", "vdi_request", "vdi_update"]
        alert = alice_msgs[1]
        assert isinstance(alert, VDIRequestMessage)
        assert alert.data.request_id == req.id
        assert [m.type for m in _messages(b_ch)] == ["vdi_update", "vdi_update"]
        assert [m.type for m in _messages(c_ch)] == ["vdi_update", "vdi_update"]

        # Alice approves: Bob now holds VDI01, everyone sees it
        approved = assignment.approve_request(services, req.id)
        assert approved.status is RequestStatus.APPROVED
        assert services.ledger.get_vdi("VDI01").assigned_user_id == bob.id
        last = _messages(c_ch)[-1]
        assert isinstance(last, VDIUpdateMessage)
        assert last.data[0]["assignedUsername"] == "bob"

    def test_reject_keeps_holder(self, services, users, channel_factory):
        """Rejection broadcasts but leaves the VDI with its holder."""
        alice, bob = users["alice"], users["bob"]
        ch = channel_factory()
        services.notifier.register(bob.id, ch)
        assignment.assign_vdi(services, "VDI01", alice.id)
        req = assignment.request_vdi(services, "VDI01", bob.id)

        rejected = assignment.reject_request(services, req.id)

        assert rejected.status is RequestStatus.REJECTED
        assert services.ledger.get_vdi("VDI01").assigned_user_id == alice.id
        assert _messages(ch)[-1].type == "vdi_update"

    def test_disconnected_user_gets_nothing(self, services, users):
        """No channel → no push; state is still visible via a direct read."""
        alice, bob = users["alice"], users["bob"]
        assignment.assign_vdi(services, "VDI01", alice.id)
        req = assignment.request_vdi(services, "VDI01", bob.id)
        assignment.approve_request(services, req.id)

        snapshot = services.notifier.snapshot()
        assert snapshot[0]["assignedUsername"] == "bob"

    def test_approve_conflict_sends_nothing(self, services, users, channel_factory):
        """Approval that conflicts propagates and leaves the request pending."""
        alice, bob, carol = users["alice"], users["bob"], users["carol"]
        assignment.assign_vdi(services, "VDI01", alice.id)
        req = assignment.request_vdi(services, "VDI01", bob.id)
        services.ledger.unassign("VDI01")
        services.ledger.assign("VDI01", carol.id)
        ch = channel_factory()
        services.notifier.register(carol.id, ch)

        with pytest.raises(ConflictError):
            assignment.approve_request(services, req.id)

        assert ch.sent == []
        assert services.ledger.get_request(req.id).is_pending
        assert services.ledger.get_vdi("VDI01").assigned_user_id == carol.id
