from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest

from tracker import workflow
from tracker.errors import DuplicateOpportunity, InvalidStatus, OpportunityNotFound, ValidationError
from tracker.models import Opportunity, Reminder, TimelineStep


def test_create_seeds_saved_step(make_opportunity):
    opp = make_opportunity()

    assert opp.status == "interested"
    steps = list(opp.timeline_steps.all())
    assert len(steps) == 1
    assert steps[0].step_type == "saved"
    assert steps[0].label == "Saved opportunity"


def test_create_ignores_requested_status(make_opportunity):
    opp = make_opportunity(status="accepted")
    assert opp.status == "interested"


def test_create_requires_title(user):
    with pytest.raises(ValidationError):
        workflow.create_opportunity(user.pk, title="   ", opportunity_type="job")
    assert not Opportunity.objects.exists()


def test_create_rejects_unknown_type(user):
    with pytest.raises(ValidationError) as exc:
        workflow.create_opportunity(user.pk, title="Role", opportunity_type="grant")
    assert exc.value.field == "opportunity_type"


def test_create_parses_deadline_and_structured_fields(make_opportunity):
    opp = make_opportunity(
        deadline="2024-06-10",
        tags=["stem", "uk"],
        checklist_items=[{"label": "Essay", "done": False, "notes": "500 words"}],
    )
    opp.refresh_from_db()
    assert opp.deadline == datetime(2024, 6, 10, tzinfo=timezone.utc)
    assert opp.tags == ["stem", "uk"]
    assert opp.checklist_items == [{"label": "Essay", "done": False, "notes": "500 words"}]


def test_duplicate_source_url_rejected_per_owner(make_opportunity, other_user):
    first = make_opportunity(source_url="https://example.org/apply")

    with pytest.raises(DuplicateOpportunity) as exc:
        make_opportunity(title="Again", source_url="https://example.org/apply")
    assert exc.value.existing_id == first.pk

    # a different owner may track the same link
    make_opportunity(owner=other_user, source_url="https://example.org/apply")
    assert Opportunity.objects.filter(source_url="https://example.org/apply").count() == 2


def test_blank_source_url_is_stored_as_null(make_opportunity):
    a = make_opportunity(source_url="")
    b = make_opportunity(title="Other", source_url="")
    assert a.source_url is None and b.source_url is None


@pytest.mark.parametrize("new_status", ["in_progress", "submitted", "interview", "accepted", "rejected", "archived"])
def test_status_change_appends_one_step(make_opportunity, user, new_status):
    opp = make_opportunity()

    updated = workflow.update_status(opp.pk, new_status, user.pk)

    assert updated.status == new_status
    opp.refresh_from_db()
    assert opp.status == new_status
    assert opp.timeline_steps.filter(step_type=new_status).count() == 1
    assert opp.timeline_steps.count() == 2


def test_status_label_is_humanized(make_opportunity, user):
    opp = make_opportunity()
    workflow.update_status(opp.pk, "in_progress", user.pk)
    assert opp.timeline_steps.filter(step_type="in_progress").get().label == "Status changed to in progress"


def test_same_status_creates_no_step(make_opportunity, user):
    opp = make_opportunity()
    workflow.update_status(opp.pk, "submitted", user.pk)

    workflow.update_status(opp.pk, "submitted", user.pk)

    assert opp.timeline_steps.filter(step_type="submitted").count() == 1
    assert opp.timeline_steps.count() == 2


def test_backward_transition_allowed(make_opportunity, user):
    opp = make_opportunity()
    workflow.update_status(opp.pk, "rejected", user.pk)
    workflow.update_status(opp.pk, "interested", user.pk)

    opp.refresh_from_db()
    assert opp.status == "interested"
    assert [s.step_type for s in TimelineStep.objects.filter(opportunity=opp).order_by("id")] == [
        "saved", "rejected", "interested",
    ]


def test_unknown_status_rejected_without_mutation(make_opportunity, user):
    opp = make_opportunity()
    with pytest.raises(InvalidStatus):
        workflow.update_status(opp.pk, "decision_pending", user.pk)
    opp.refresh_from_db()
    assert opp.status == "interested"
    assert opp.timeline_steps.count() == 1


def test_foreign_owner_gets_not_found(make_opportunity, other_user):
    opp = make_opportunity()
    with pytest.raises(OpportunityNotFound):
        workflow.update_status(opp.pk, "submitted", other_user.pk)
    with pytest.raises(OpportunityNotFound):
        workflow.get_opportunity(opp.pk, other_user.pk)
    opp.refresh_from_db()
    assert opp.status == "interested"


def test_missing_or_malformed_id_not_found(user):
    with pytest.raises(OpportunityNotFound):
        workflow.update_status(uuid.uuid4(), "submitted", user.pk)
    with pytest.raises(OpportunityNotFound):
        workflow.get_opportunity("not-a-uuid", user.pk)


def test_patch_routes_status_through_timeline(make_opportunity, user):
    opp = make_opportunity()

    updated = workflow.update_opportunity(opp.pk, user.pk, {"status": "submitted", "organization": "Rhodes Trust"})

    assert updated.status == "submitted"
    assert updated.organization == "Rhodes Trust"
    assert opp.timeline_steps.filter(step_type="submitted").count() == 1


def test_patch_without_status_adds_no_step(make_opportunity, user):
    opp = make_opportunity()
    workflow.update_opportunity(opp.pk, user.pk, {"tags": ["priority"]})
    assert opp.timeline_steps.count() == 1


def test_patch_rejects_unknown_field(make_opportunity, user):
    opp = make_opportunity()
    with pytest.raises(ValidationError):
        workflow.update_opportunity(opp.pk, user.pk, {"created_by": 42})


def test_patch_rejects_bad_checklist(make_opportunity, user):
    opp = make_opportunity()
    with pytest.raises(ValidationError):
        workflow.update_opportunity(opp.pk, user.pk, {"checklist_items": [{"label": "Essay"}]})


def test_patch_duplicate_url(make_opportunity, user):
    make_opportunity(source_url="https://example.org/a")
    other = make_opportunity(title="Other", source_url="https://example.org/b")
    with pytest.raises(DuplicateOpportunity):
        workflow.update_opportunity(other.pk, user.pk, {"source_url": "https://example.org/a"})
    # keeping its own url is fine
    workflow.update_opportunity(other.pk, user.pk, {"source_url": "https://example.org/b"})


def test_delete_cascades(make_opportunity, user):
    opp = make_opportunity(deadline="2024-06-10")
    workflow.update_status(opp.pk, "in_progress", user.pk)
    Reminder.objects.create(
        user=user, opportunity=opp, scheduled_at=opp.deadline, offset_days=3, status="sent", sent_at=opp.deadline,
    )

    workflow.delete_opportunity(opp.pk, user.pk)

    assert not Opportunity.objects.filter(pk=opp.pk).exists()
    assert not TimelineStep.objects.filter(opportunity_id=opp.pk).exists()
    assert not Reminder.objects.filter(opportunity_id=opp.pk).exists()


def test_delete_requires_owner(make_opportunity, other_user):
    opp = make_opportunity()
    with pytest.raises(OpportunityNotFound):
        workflow.delete_opportunity(opp.pk, other_user.pk)
    assert Opportunity.objects.filter(pk=opp.pk).exists()


def test_list_is_owner_scoped_and_filtered(make_opportunity, user, other_user):
    a = make_opportunity(title="A", opportunity_type="job")
    make_opportunity(title="B", opportunity_type="internship")
    make_opportunity(owner=other_user, title="C", opportunity_type="job")
    workflow.update_status(a.pk, "submitted", user.pk)

    assert {o.title for o in workflow.list_opportunities(user.pk)} == {"A", "B"}
    assert [o.title for o in workflow.list_opportunities(user.pk, opportunity_type="job")] == ["A"]
    assert [o.title for o in workflow.list_opportunities(user.pk, status="submitted")] == ["A"]
    with pytest.raises(InvalidStatus):
        workflow.list_opportunities(user.pk, status="bogus")


def test_timeline_steps_are_append_only(make_opportunity):
    step = make_opportunity().timeline_steps.get()
    step.label = "edited"
    with pytest.raises(ValueError):
        step.save()


def test_progress_index():
    assert workflow.progress_index("interested") == 0
    assert workflow.progress_index("accepted") == 4
    assert workflow.progress_index("rejected") == -1


@pytest.mark.parametrize("field,limit", [("title", 500), ("organization", 300)])
def test_overlong_text_rejected(user, field, limit):
    fields = {"title": "Rhodes", "opportunity_type": "scholarship", field: "x" * (limit + 1)}
    with pytest.raises(ValidationError) as exc:
        workflow.create_opportunity(user.pk, **fields)
    assert exc.value.field == field
    assert not Opportunity.objects.exists()


def test_text_at_limit_accepted(user):
    opp = workflow.create_opportunity(user.pk, title="t" * 500, organization="o" * 300, opportunity_type="job")
    assert len(opp.title) == 500


def test_overlong_title_on_update_rejected(make_opportunity, user):
    opp = make_opportunity()
    with pytest.raises(ValidationError):
        workflow.update_opportunity(opp.pk, user.pk, {"title": "x" * 501})
    opp.refresh_from_db()
    assert opp.title == "Rhodes Scholarship"
