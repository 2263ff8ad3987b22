"""
Tests for posting management (create, update, visibility, staff review,
delete) and representative account approval.
"""

from datetime import date, timedelta

import pytest

from app.core.errors import ErrorKind
from app.models import InternshipLevel, Major, OpportunityStatus

TODAY = date(2026, 3, 10)


def draft(**overrides):
    fields = dict(
        title="Embedded Intern",
        level=InternshipLevel.INTERMEDIATE,
        preferred_major=Major.EEE,
        opening_date=TODAY,
        closing_date=TODAY + timedelta(days=30),
        total_slots=3,
    )
    fields.update(overrides)
    return fields


class TestCreateOpportunity:
    def test_new_posting_is_pending_and_hidden(self, engine):
        result = engine.allocation.create_opportunity("rep1", description="Firmware work", **draft())

        assert result.ok
        opportunity = result.value
        assert opportunity.opportunity_id == "INT000001"
        assert opportunity.status == OpportunityStatus.PENDING
        assert not opportunity.visible
        assert opportunity.company_name == "Acme"
        assert opportunity.filled_slots == 0
        assert opportunity.applicant_ids == []
        assert engine.identity.lookup("rep1").created_opportunities == ["INT000001"]

    def test_unapproved_representative_cannot_post(self, engine):
        assert engine.allocation.create_opportunity("rep_new", **draft()).error == ErrorKind.FORBIDDEN

    def test_wrong_role_and_unknown_user(self, engine):
        assert engine.allocation.create_opportunity("S_CSC_Y3", **draft()).error == ErrorKind.FORBIDDEN
        assert engine.allocation.create_opportunity("ghost", **draft()).error == ErrorKind.NOT_FOUND

    def test_sixth_posting_hits_the_cap(self, engine):
        for i in range(5):
            assert engine.allocation.create_opportunity("rep1", **draft(title=f"Posting {i}")).ok

        result = engine.allocation.create_opportunity("rep1", **draft(title="One too many"))

        assert result.error == ErrorKind.CAPACITY_EXCEEDED
        assert len(engine.opportunities) == 5

    @pytest.mark.parametrize("slots", [0, 11])
    def test_slot_range(self, engine, slots):
        assert engine.allocation.create_opportunity("rep1", **draft(total_slots=slots)).error == ErrorKind.CAPACITY_EXCEEDED

    @pytest.mark.parametrize("slots", [1, 10])
    def test_slot_range_bounds_are_inclusive(self, engine, slots):
        assert engine.allocation.create_opportunity("rep1", **draft(total_slots=slots)).ok

    def test_malformed_drafts(self, engine):
        assert engine.allocation.create_opportunity("rep1", **draft(title="   ")).error == ErrorKind.INVALID_INPUT
        bad_dates = draft(opening_date=TODAY, closing_date=TODAY - timedelta(days=1))
        assert engine.allocation.create_opportunity("rep1", **bad_dates).error == ErrorKind.INVALID_INPUT
        assert len(engine.opportunities) == 0

    def test_deleted_ids_are_never_reused(self, engine):
        first = engine.allocation.create_opportunity("rep1", **draft(title="First")).value
        second = engine.allocation.create_opportunity("rep1", **draft(title="Second")).value
        assert engine.allocation.delete_opportunity(second.opportunity_id, "rep1").ok

        third = engine.allocation.create_opportunity("rep1", **draft(title="Third")).value

        assert first.opportunity_id == "INT000001"
        assert third.opportunity_id == "INT000003"


class TestUpdateOpportunity:
    def test_owner_edits_pending_posting(self, engine, post_opportunity):
        opp_id = post_opportunity(approve=False)

        result = engine.allocation.update_opportunity(opp_id, "rep1", title="Platform Intern", total_slots=4, level=None)

        assert result.ok
        assert result.value.title == "Platform Intern"
        assert result.value.total_slots == 4
        assert result.value.level == InternshipLevel.BASIC

    def test_edited_title_is_trimmed(self, engine, post_opportunity):
        opp_id = post_opportunity(approve=False)

        result = engine.allocation.update_opportunity(opp_id, "rep1", title="  Platform Intern  ")

        assert result.value.title == "Platform Intern"
        assert engine.allocation.update_opportunity(opp_id, "rep1", title="   ").error == ErrorKind.INVALID_INPUT

    def test_reviewed_posting_is_frozen(self, engine, post_opportunity):
        opp_id = post_opportunity()
        assert engine.allocation.update_opportunity(opp_id, "rep1", title="New").error == ErrorKind.INVALID_STATE

    def test_other_representative_cannot_edit(self, engine, post_opportunity):
        opp_id = post_opportunity(approve=False)
        assert engine.allocation.update_opportunity(opp_id, "rep2", title="New").error == ErrorKind.FORBIDDEN

    def test_rejects_unknown_fields_and_bad_values(self, engine, post_opportunity):
        opp_id = post_opportunity(approve=False)
        assert engine.allocation.update_opportunity(opp_id, "rep1", status="APPROVED").error == ErrorKind.INVALID_INPUT
        assert engine.allocation.update_opportunity(
            opp_id, "rep1", opening_date=TODAY + timedelta(days=60)
        ).error == ErrorKind.INVALID_INPUT
        assert engine.allocation.update_opportunity(opp_id, "rep1", total_slots=20).error == ErrorKind.CAPACITY_EXCEEDED
        assert engine.opportunities.get(opp_id).status == OpportunityStatus.PENDING


class TestVisibility:
    def test_toggle_on_approved_posting(self, engine, post_opportunity):
        opp_id = post_opportunity()

        assert not engine.allocation.set_visibility(opp_id, "rep1", False).value.visible
        assert engine.allocation.set_visibility(opp_id, "rep1", True).value.visible

    def test_pending_posting_cannot_be_shown(self, engine, post_opportunity):
        opp_id = post_opportunity(approve=False)
        assert engine.allocation.set_visibility(opp_id, "rep1", True).error == ErrorKind.INVALID_STATE

    def test_only_owner(self, engine, post_opportunity):
        opp_id = post_opportunity()
        assert engine.allocation.set_visibility(opp_id, "rep2", False).error == ErrorKind.FORBIDDEN


class TestStaffReview:
    def test_approval_publishes(self, engine, post_opportunity):
        opp_id = post_opportunity(approve=False)

        result = engine.allocation.approve_opportunity(opp_id)

        assert result.value.status == OpportunityStatus.APPROVED
        assert result.value.visible

    def test_rejection(self, engine, post_opportunity):
        opp_id = post_opportunity(approve=False)

        result = engine.allocation.reject_opportunity(opp_id)

        assert result.value.status == OpportunityStatus.REJECTED
        assert not result.value.visible

    def test_only_pending_postings_are_reviewed(self, engine, post_opportunity):
        opp_id = post_opportunity()
        assert engine.allocation.approve_opportunity(opp_id).error == ErrorKind.INVALID_STATE
        assert engine.allocation.reject_opportunity(opp_id).error == ErrorKind.INVALID_STATE
        assert engine.allocation.approve_opportunity("INT999999").error == ErrorKind.NOT_FOUND


class TestDeleteOpportunity:
    def test_pending_posting_without_applicants(self, engine, post_opportunity):
        opp_id = post_opportunity(approve=False)

        assert engine.allocation.delete_opportunity(opp_id, "rep1").ok

        assert engine.opportunities.get(opp_id) is None
        assert engine.identity.lookup("rep1").created_opportunities == []

    def test_approved_posting_with_applicants_is_kept(self, engine, post_opportunity, snapshot):
        opp_id = post_opportunity()
        assert engine.allocation.submit_application("S_CSC_Y3", opp_id).ok
        before = snapshot()

        result = engine.allocation.delete_opportunity(opp_id, "rep1")

        assert result.error == ErrorKind.INVALID_STATE
        assert snapshot() == before

    def test_approved_posting_without_applicants(self, engine, post_opportunity):
        opp_id = post_opportunity()
        assert engine.allocation.delete_opportunity(opp_id, "rep1").ok

    def test_deletion_frees_a_place_under_the_creation_cap(self, engine, post_opportunity):
        opportunity_ids = [post_opportunity(title=f"Posting {i}", approve=False) for i in range(5)]
        engine.allocation.delete_opportunity(opportunity_ids[0], "rep1")
        assert engine.allocation.create_opportunity("rep1", **draft()).ok

    def test_only_owner(self, engine, post_opportunity):
        opp_id = post_opportunity(approve=False)
        assert engine.allocation.delete_opportunity(opp_id, "rep2").error == ErrorKind.FORBIDDEN
        assert engine.allocation.delete_opportunity("INT999999", "rep1").error == ErrorKind.NOT_FOUND


class TestRepresentativeAccounts:
    def test_approval_unlocks_posting(self, engine):
        result = engine.allocation.approve_representative("rep_new")

        assert result.ok
        assert result.value.approved
        assert engine.allocation.create_opportunity("rep_new", **draft()).value.company_name == "Initech"

    def test_already_approved(self, engine):
        assert engine.allocation.approve_representative("rep1").error == ErrorKind.INVALID_STATE
        assert engine.allocation.reject_representative("rep1").error == ErrorKind.INVALID_STATE

    def test_rejection_removes_the_account(self, engine):
        assert engine.allocation.reject_representative("rep_new").ok
        assert engine.identity.lookup("rep_new") is None

    def test_wrong_role_and_unknown_user(self, engine):
        assert engine.allocation.approve_representative("staff1").error == ErrorKind.FORBIDDEN
        assert engine.allocation.approve_representative("ghost").error == ErrorKind.NOT_FOUND
