import pytest

from fixerhub.domain.disputes.workflow import DisputeWorkflow
from fixerhub.errors import InvalidTransition, ValidationError
from fixerhub.models_dispute import Dispute


@pytest.fixture
def dispute(db, booking, seeker):
    item = Dispute(
        title="Provider did not show up",
        description="The provider never arrived for the scheduled job.",
        booking_id=booking.id,
        service_provider_id=booking.service_provider_id,
        service_seeker_id=booking.service_seeker_id,
        reported_by_id=seeker.id,
        category="no_show",
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def test_new_dispute_defaults(dispute):
    assert dispute.status == "open"
    assert dispute.priority == "medium"
    assert dispute.outcome_currency == "LKR"


def test_resolve_without_outcome(db, dispute, admin):
    DisputeWorkflow.resolve(db, dispute, "Provider apologised and rescheduled", admin.id)

    assert dispute.status == "resolved"
    assert dispute.resolution == "Provider apologised and rescheduled"
    assert dispute.resolved_by_id == admin.id
    assert dispute.resolved_at is not None
    assert dispute.outcome is None
    assert dispute.outcome_amount is None


def test_resolve_with_outcome(db, dispute, admin):
    DisputeWorkflow.resolve(db, dispute, "Partial refund agreed", admin.id, "partial_refund", 2500.0)

    assert dispute.outcome == "partial_refund"
    assert dispute.outcome_amount == 2500.0


@pytest.mark.parametrize("status", ["resolved", "closed"])
def test_resolve_terminal_dispute_raises(db, dispute, admin, status):
    dispute.status = status
    db.commit()

    with pytest.raises(InvalidTransition):
        DisputeWorkflow.resolve(db, dispute, "Again", admin.id)


def test_resolve_with_invalid_outcome_leaves_dispute_open(db, dispute, admin):
    with pytest.raises(ValidationError):
        DisputeWorkflow.resolve(db, dispute, "Something", admin.id, "compensation")

    assert dispute.status == "open"
    assert dispute.resolution is None


def test_resolve_with_negative_amount_leaves_dispute_open(db, dispute, admin):
    with pytest.raises(ValidationError):
        DisputeWorkflow.resolve(db, dispute, "Refund", admin.id, "refund", -10.0)

    assert dispute.status == "open"
    assert dispute.outcome is None


def test_resolve_requires_resolution_text(db, dispute, admin):
    with pytest.raises(ValidationError):
        DisputeWorkflow.resolve(db, dispute, "   ", admin.id)


def test_admin_notes_and_messages_keep_order(db, dispute, admin, seeker):
    DisputeWorkflow.add_admin_note(db, dispute, "Called the provider", admin.id)
    DisputeWorkflow.add_admin_note(db, dispute, "Provider confirmed the no-show", admin.id)
    DisputeWorkflow.add_message(db, dispute, seeker.id, "Any update?")
    DisputeWorkflow.add_message(db, dispute, admin.id, "We are looking into it", is_admin=True)

    db.expire_all()
    assert [n.note for n in dispute.admin_notes] == ["Called the provider", "Provider confirmed the no-show"]
    assert [m.message for m in dispute.messages] == ["Any update?", "We are looking into it"]
    assert [m.is_admin for m in dispute.messages] == [False, True]


def test_empty_note_rejected(db, dispute, admin):
    with pytest.raises(ValidationError):
        DisputeWorkflow.add_admin_note(db, dispute, "  ", admin.id)
    assert dispute.admin_notes == []


def test_update_status_assigns_admin_and_records_note(db, dispute, admin):
    DisputeWorkflow.update_status(db, dispute, "under_review", admin.id, note="Investigating")

    assert dispute.status == "under_review"
    assert dispute.assigned_admin_id == admin.id
    assert [n.note for n in dispute.admin_notes] == ["Investigating"]


def test_update_status_cannot_resolve(db, dispute, admin):
    with pytest.raises(InvalidTransition):
        DisputeWorkflow.update_status(db, dispute, "resolved", admin.id)


def test_closed_dispute_stays_closed(db, dispute, admin):
    DisputeWorkflow.update_status(db, dispute, "closed", admin.id)

    with pytest.raises(InvalidTransition):
        DisputeWorkflow.update_status(db, dispute, "open", admin.id)
