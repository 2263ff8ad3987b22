"""
Allocation Service - every state-changing placement command.

COMMANDS:
- Students: submit_application, accept_placement, request_withdrawal
- Representatives: create/update/delete opportunity, set_visibility,
  approve_application, reject_application
- Staff: approve/reject opportunity, approve/reject withdrawal,
  approve/reject representative

RULES THAT SPAN ENTITIES:
- A student holds at most 3 applications and at most 1 accepted placement.
- Approval of an application only grants the right to accept. The slot is
  consumed when the student accepts (confirm_placement).
- Accepting withdraws every other active application of that student
  (the cascade).

Every command checks all of its preconditions before the first mutation
and runs under the exclusive side of the shared lock, so a caller either
sees the whole effect or none of it. Failures come back as an
OperationResult carrying an ErrorKind; nothing here raises for a business
rule violation.
"""

import functools
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple

from app.core.config import Settings, get_settings
from app.core.errors import ErrorKind, OperationResult
from app.core.locking import ReadWriteLock
from app.db.identity import IdentityStore
from app.db.stores import ApplicationRepository, IdGenerator, OpportunityRepository
from app.models import (
    ACTIVE_APPLICATION_STATUSES,
    Application,
    ApplicationStatus,
    CompanyRepresentative,
    InternshipLevel,
    InternshipOpportunity,
    Major,
    OpportunityStatus,
    Student,
)
from app.services.eligibility import (
    is_eligible,
    is_open_for_applications,
    is_past_closing_date,
    is_within_application_window,
)

logger = logging.getLogger(__name__)

# Fields a representative may change while the posting is still pending
EDITABLE_FIELDS = (
    "title", "description", "level", "preferred_major",
    "opening_date", "closing_date", "total_slots",
)


@dataclass(frozen=True)
class PlacementResult:
    """Accepted application plus the IDs the cascade withdrew."""
    application: Application
    withdrawn_application_ids: List[str] = field(default_factory=list)


def exclusive(method):
    """Run the decorated command under the write lock."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.lock.write():
            return method(self, *args, **kwargs)
    return wrapper


class AllocationService:
    def __init__(
        self,
        identity: IdentityStore,
        opportunities: OpportunityRepository,
        applications: ApplicationRepository,
        settings: Optional[Settings] = None,
        lock: Optional[ReadWriteLock] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_generator: Optional[IdGenerator] = None,
    ):
        self.identity = identity
        self.opportunities = opportunities
        self.applications = applications
        self.settings = settings or get_settings()
        self.lock = lock or ReadWriteLock()
        self.clock = clock or datetime.now
        self.ids = id_generator or IdGenerator(opportunities, applications)

    # ============================================================
    # HELPERS
    # ============================================================

    def _now(self) -> datetime:
        return self.clock()

    def _today(self) -> date:
        return self.clock().date()

    def _fail(self, command: str, error: ErrorKind, message: str) -> OperationResult:
        logger.warning("%s rejected (%s): %s", command, error.value, message)
        return OperationResult.failure(error, message)

    def _require_student(self, command: str, student_id: str) -> Tuple[Optional[Student], Optional[OperationResult]]:
        match self.identity.lookup(student_id):
            case Student() as student:
                return student, None
            case None:
                return None, self._fail(command, ErrorKind.NOT_FOUND, f"Student {student_id} not found")
            case _:
                return None, self._fail(command, ErrorKind.FORBIDDEN, f"User {student_id} is not a student")

    def _require_representative(
        self, command: str, representative_id: str
    ) -> Tuple[Optional[CompanyRepresentative], Optional[OperationResult]]:
        match self.identity.lookup(representative_id):
            case CompanyRepresentative() as rep:
                return rep, None
            case None:
                return None, self._fail(
                    command, ErrorKind.NOT_FOUND, f"Representative {representative_id} not found"
                )
            case _:
                return None, self._fail(
                    command, ErrorKind.FORBIDDEN, f"User {representative_id} is not a company representative"
                )

    def _owned_opportunity(
        self, command: str, opportunity_id: str, representative_id: str
    ) -> Tuple[Optional[InternshipOpportunity], Optional[OperationResult]]:
        opportunity = self.opportunities.get(opportunity_id)
        if opportunity is None:
            return None, self._fail(command, ErrorKind.NOT_FOUND, f"Opportunity {opportunity_id} not found")
        if opportunity.representative_id != representative_id:
            return None, self._fail(
                command, ErrorKind.FORBIDDEN,
                f"Opportunity {opportunity_id} is not owned by {representative_id}",
            )
        return opportunity, None

    def _validate_posting(
        self, command: str, title: str, opening_date: date, closing_date: date, total_slots: int
    ) -> Optional[OperationResult]:
        if not title or not title.strip():
            return self._fail(command, ErrorKind.INVALID_INPUT, "Title must not be empty")
        if opening_date > closing_date:
            return self._fail(command, ErrorKind.INVALID_INPUT, "Opening date is after closing date")
        low = self.settings.min_slots_per_opportunity
        high = self.settings.max_slots_per_opportunity
        if not low <= total_slots <= high:
            return self._fail(
                command, ErrorKind.CAPACITY_EXCEEDED, f"Total slots must be between {low} and {high}"
            )
        return None

    # ============================================================
    # APPLICATIONS
    # ============================================================

    @exclusive
    def submit_application(self, student_id: str, opportunity_id: str) -> OperationResult[Application]:
        command = "submit_application"
        student, failure = self._require_student(command, student_id)
        if failure:
            return failure

        opportunity = self.opportunities.get(opportunity_id)
        if opportunity is None:
            return self._fail(command, ErrorKind.NOT_FOUND, f"Opportunity {opportunity_id} not found")

        limit = self.settings.max_applications_per_student
        if len(student.applied_opportunities) >= limit:
            return self._fail(
                command, ErrorKind.CAPACITY_EXCEEDED, f"Student {student_id} already holds {limit} applications"
            )
        if student.has_accepted_placement:
            return self._fail(
                command, ErrorKind.INVALID_STATE, f"Student {student_id} has already accepted a placement"
            )

        today = self._today()
        if not is_open_for_applications(opportunity, today):
            if is_past_closing_date(opportunity, today):
                return self._fail(
                    command, ErrorKind.INVALID_STATE,
                    f"Opportunity {opportunity_id} closed on {opportunity.closing_date.isoformat()}",
                )
            only_full = (
                opportunity.status == OpportunityStatus.APPROVED
                and opportunity.visible
                and is_within_application_window(opportunity, today)
            )
            if only_full:
                return self._fail(command, ErrorKind.CAPACITY_EXCEEDED, f"Opportunity {opportunity_id} has no slots left")
            return self._fail(
                command, ErrorKind.INVALID_STATE, f"Opportunity {opportunity_id} is not open for applications"
            )

        if not is_eligible(student, opportunity):
            return self._fail(
                command, ErrorKind.INELIGIBLE_STUDENT,
                f"Student {student_id} does not meet the major/level requirements of {opportunity_id}",
            )
        if opportunity_id in student.applied_opportunities:
            return self._fail(command, ErrorKind.INVALID_STATE, f"Student {student_id} already applied to {opportunity_id}")

        now = self._now()
        application = Application(
            application_id=self.ids.next_application_id(),
            student_id=student_id,
            opportunity_id=opportunity_id,
            submitted_at=now,
            status_updated_at=now,
        )
        self.applications.add(application)
        self.identity.record_application(student_id, opportunity_id)
        opportunity.add_applicant(student_id)

        logger.info("Application %s submitted by %s for %s", application.application_id, student_id, opportunity_id)
        return OperationResult.success(application.model_copy(deep=True))

    def _review_application(
        self, command: str, application_id: str, representative_id: str, approve: bool
    ) -> OperationResult[Application]:
        application = self.applications.get(application_id)
        if application is None:
            return self._fail(command, ErrorKind.NOT_FOUND, f"Application {application_id} not found")
        if application.status != ApplicationStatus.PENDING:
            return self._fail(
                command, ErrorKind.INVALID_STATE,
                f"Application {application_id} is {application.status.value}, not PENDING",
            )

        opportunity, failure = self._owned_opportunity(command, application.opportunity_id, representative_id)
        if failure:
            return failure

        if approve and opportunity.available_slots <= 0:
            return self._fail(
                command, ErrorKind.CAPACITY_EXCEEDED, f"Opportunity {opportunity.opportunity_id} has no slots left"
            )

        new_status = ApplicationStatus.SUCCESSFUL if approve else ApplicationStatus.UNSUCCESSFUL
        application.set_status(new_status, self._now())
        logger.info("Application %s marked %s by %s", application_id, new_status.value, representative_id)
        return OperationResult.success(application.model_copy(deep=True))

    @exclusive
    def approve_application(self, application_id: str, representative_id: str) -> OperationResult[Application]:
        return self._review_application("approve_application", application_id, representative_id, approve=True)

    @exclusive
    def reject_application(self, application_id: str, representative_id: str) -> OperationResult[Application]:
        return self._review_application("reject_application", application_id, representative_id, approve=False)

    @exclusive
    def accept_placement(self, application_id: str, student_id: str) -> OperationResult[PlacementResult]:
        """
        Student accepts a SUCCESSFUL application.

        In one critical section: the student's applied list collapses to
        the accepted posting, one slot is consumed (FILLED on the last
        one), and every other PENDING/SUCCESSFUL application of the
        student is withdrawn and dropped from its posting's applicants.
        """
        command = "accept_placement"
        application = self.applications.get(application_id)
        if application is None:
            return self._fail(command, ErrorKind.NOT_FOUND, f"Application {application_id} not found")
        if application.student_id != student_id:
            return self._fail(command, ErrorKind.FORBIDDEN, f"Application {application_id} does not belong to {student_id}")
        if application.status != ApplicationStatus.SUCCESSFUL:
            return self._fail(
                command, ErrorKind.INVALID_STATE,
                f"Application {application_id} is {application.status.value}, not SUCCESSFUL",
            )

        student, failure = self._require_student(command, student_id)
        if failure:
            return failure
        if student.has_accepted_placement:
            return self._fail(command, ErrorKind.INVALID_STATE, f"Student {student_id} has already accepted a placement")

        opportunity_id = application.opportunity_id
        opportunity = self.opportunities.get(opportunity_id)
        if opportunity is None:
            return self._fail(command, ErrorKind.NOT_FOUND, f"Opportunity {opportunity_id} not found")
        if opportunity_id not in student.applied_opportunities or student_id not in opportunity.applicant_ids:
            return self._fail(
                command, ErrorKind.INVALID_STATE, f"Student {student_id} is no longer an applicant of {opportunity_id}"
            )
        if opportunity.filled_slots >= opportunity.total_slots:
            return self._fail(command, ErrorKind.CAPACITY_EXCEEDED, f"Opportunity {opportunity_id} has no slots left")

        self.identity.record_acceptance(student_id, opportunity_id)
        opportunity.confirm_placement(student_id)

        now = self._now()
        withdrawn = []
        for other in self.applications.for_student(student_id):
            if other.application_id == application_id or other.status not in ACTIVE_APPLICATION_STATUSES:
                continue
            other.withdraw_by_cascade(now)
            other_opportunity = self.opportunities.get(other.opportunity_id)
            if other_opportunity is not None:
                other_opportunity.remove_applicant(student_id)
            withdrawn.append(other.application_id)

        logger.info(
            "Student %s accepted %s (%d/%d slots filled); cascade withdrew %s",
            student_id, opportunity_id, opportunity.filled_slots, opportunity.total_slots, withdrawn or "nothing",
        )
        return OperationResult.success(
            PlacementResult(application=application.model_copy(deep=True), withdrawn_application_ids=withdrawn)
        )

    # ============================================================
    # WITHDRAWALS
    # ============================================================

    @exclusive
    def request_withdrawal(
        self, application_id: str, student_id: str, reason: Optional[str] = None
    ) -> OperationResult[Application]:
        command = "request_withdrawal"
        application = self.applications.get(application_id)
        if application is None:
            return self._fail(command, ErrorKind.NOT_FOUND, f"Application {application_id} not found")
        if application.student_id != student_id:
            return self._fail(command, ErrorKind.FORBIDDEN, f"Application {application_id} does not belong to {student_id}")
        if not application.is_active:
            return self._fail(
                command, ErrorKind.INVALID_STATE,
                f"Application {application_id} is {application.status.value} and cannot be withdrawn",
            )

        application.request_withdrawal(reason)
        logger.info("Withdrawal requested for %s by %s", application_id, student_id)
        return OperationResult.success(application.model_copy(deep=True))

    @exclusive
    def approve_withdrawal(self, application_id: str) -> OperationResult[Application]:
        """
        Staff approves a pending withdrawal request.

        The application becomes WITHDRAWN, the student leaves the posting's
        applicants and the posting leaves the student's applied list. If
        the application was the student's accepted placement, the accepted
        slot is cleared too and, with release_slot_on_withdrawal on, the
        posting gets the slot back.
        """
        command = "approve_withdrawal"
        application = self.applications.get(application_id)
        if application is None:
            return self._fail(command, ErrorKind.NOT_FOUND, f"Application {application_id} not found")
        if not application.withdrawal_requested or application.withdrawal_approved:
            return self._fail(command, ErrorKind.INVALID_STATE, f"Application {application_id} has no pending withdrawal request")
        if not application.is_active:
            return self._fail(
                command, ErrorKind.INVALID_STATE,
                f"Application {application_id} is already {application.status.value}",
            )

        student_id = application.student_id
        opportunity_id = application.opportunity_id
        student = None
        match self.identity.lookup(student_id):
            case Student() as found:
                student = found
        opportunity = self.opportunities.get(opportunity_id)
        was_accepted = student is not None and student.accepted_opportunity == opportunity_id

        application.approve_withdrawal(self._now())
        if opportunity is not None:
            opportunity.remove_applicant(student_id)
            if was_accepted and self.settings.release_slot_on_withdrawal:
                opportunity.release_placement()
        if student is not None:
            self.identity.record_withdrawal(student_id, opportunity_id)

        logger.info(
            "Withdrawal of %s approved (student %s, opportunity %s, accepted placement: %s)",
            application_id, student_id, opportunity_id, was_accepted,
        )
        return OperationResult.success(application.model_copy(deep=True))

    @exclusive
    def reject_withdrawal(self, application_id: str) -> OperationResult[Application]:
        command = "reject_withdrawal"
        application = self.applications.get(application_id)
        if application is None:
            return self._fail(command, ErrorKind.NOT_FOUND, f"Application {application_id} not found")
        if application.withdrawal_approved:
            return self._fail(command, ErrorKind.INVALID_STATE, f"Withdrawal of {application_id} was already approved")

        application.reject_withdrawal()
        logger.info("Withdrawal request for %s rejected", application_id)
        return OperationResult.success(application.model_copy(deep=True))

    # ============================================================
    # OPPORTUNITIES
    # ============================================================

    @exclusive
    def create_opportunity(
        self,
        representative_id: str,
        title: str,
        level: InternshipLevel,
        preferred_major: Major,
        opening_date: date,
        closing_date: date,
        total_slots: int,
        description: str = "",
    ) -> OperationResult[InternshipOpportunity]:
        command = "create_opportunity"
        rep, failure = self._require_representative(command, representative_id)
        if failure:
            return failure
        if not rep.approved:
            return self._fail(command, ErrorKind.FORBIDDEN, f"Representative {representative_id} is not approved yet")

        limit = self.settings.max_opportunities_per_representative
        if len(rep.created_opportunities) >= limit:
            return self._fail(
                command, ErrorKind.CAPACITY_EXCEEDED, f"Representative {representative_id} already created {limit} opportunities"
            )

        failure = self._validate_posting(command, title, opening_date, closing_date, total_slots)
        if failure:
            return failure

        opportunity = InternshipOpportunity(
            opportunity_id=self.ids.next_opportunity_id(),
            title=title.strip(),
            description=description,
            level=level,
            preferred_major=preferred_major,
            opening_date=opening_date,
            closing_date=closing_date,
            company_name=rep.company_name,
            representative_id=representative_id,
            total_slots=total_slots,
        )
        self.opportunities.add(opportunity)
        self.identity.record_created_opportunity(representative_id, opportunity.opportunity_id)

        logger.info("Opportunity %s (%s) created by %s", opportunity.opportunity_id, opportunity.title, representative_id)
        return OperationResult.success(opportunity.model_copy(deep=True))

    @exclusive
    def update_opportunity(
        self, opportunity_id: str, representative_id: str, **changes
    ) -> OperationResult[InternshipOpportunity]:
        """Edit a posting that staff has not reviewed yet. None values are ignored."""
        command = "update_opportunity"
        opportunity, failure = self._owned_opportunity(command, opportunity_id, representative_id)
        if failure:
            return failure
        if opportunity.status != OpportunityStatus.PENDING:
            return self._fail(
                command, ErrorKind.INVALID_STATE,
                f"Opportunity {opportunity_id} is {opportunity.status.value}; only PENDING postings can be edited",
            )

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            return self._fail(command, ErrorKind.INVALID_INPUT, f"Fields not editable: {', '.join(sorted(unknown))}")

        updates = {k: v for k, v in changes.items() if v is not None}
        if "title" in updates:
            updates["title"] = updates["title"].strip()
        merged = {name: updates.get(name, getattr(opportunity, name)) for name in EDITABLE_FIELDS}
        failure = self._validate_posting(
            command, merged["title"], merged["opening_date"], merged["closing_date"], merged["total_slots"]
        )
        if failure:
            return failure

        for name, value in updates.items():
            setattr(opportunity, name, value)
        logger.info("Opportunity %s updated: %s", opportunity_id, ", ".join(sorted(updates)) or "no changes")
        return OperationResult.success(opportunity.model_copy(deep=True))

    @exclusive
    def set_visibility(
        self, opportunity_id: str, representative_id: str, visible: bool
    ) -> OperationResult[InternshipOpportunity]:
        command = "set_visibility"
        opportunity, failure = self._owned_opportunity(command, opportunity_id, representative_id)
        if failure:
            return failure
        if opportunity.status != OpportunityStatus.APPROVED:
            return self._fail(
                command, ErrorKind.INVALID_STATE,
                f"Opportunity {opportunity_id} is {opportunity.status.value}; visibility applies to APPROVED postings",
            )

        opportunity.visible = visible
        logger.info("Opportunity %s visibility set to %s", opportunity_id, visible)
        return OperationResult.success(opportunity.model_copy(deep=True))

    def _review_opportunity(self, command: str, opportunity_id: str, approve: bool) -> OperationResult[InternshipOpportunity]:
        opportunity = self.opportunities.get(opportunity_id)
        if opportunity is None:
            return self._fail(command, ErrorKind.NOT_FOUND, f"Opportunity {opportunity_id} not found")
        if opportunity.status != OpportunityStatus.PENDING:
            return self._fail(
                command, ErrorKind.INVALID_STATE,
                f"Opportunity {opportunity_id} is {opportunity.status.value}, not PENDING",
            )

        if approve:
            opportunity.status = OpportunityStatus.APPROVED
            opportunity.visible = True
        else:
            opportunity.status = OpportunityStatus.REJECTED
        logger.info("Opportunity %s marked %s", opportunity_id, opportunity.status.value)
        return OperationResult.success(opportunity.model_copy(deep=True))

    @exclusive
    def approve_opportunity(self, opportunity_id: str) -> OperationResult[InternshipOpportunity]:
        return self._review_opportunity("approve_opportunity", opportunity_id, approve=True)

    @exclusive
    def reject_opportunity(self, opportunity_id: str) -> OperationResult[InternshipOpportunity]:
        return self._review_opportunity("reject_opportunity", opportunity_id, approve=False)

    @exclusive
    def delete_opportunity(self, opportunity_id: str, representative_id: str) -> OperationResult[None]:
        command = "delete_opportunity"
        opportunity, failure = self._owned_opportunity(command, opportunity_id, representative_id)
        if failure:
            return failure
        if opportunity.status != OpportunityStatus.PENDING and opportunity.applicant_ids:
            return self._fail(
                command, ErrorKind.INVALID_STATE,
                f"Opportunity {opportunity_id} is {opportunity.status.value} with {len(opportunity.applicant_ids)} applicant(s)",
            )

        self.opportunities.remove(opportunity_id)
        match self.identity.lookup(representative_id):
            case CompanyRepresentative():
                self.identity.record_deleted_opportunity(representative_id, opportunity_id)

        logger.info("Opportunity %s deleted by %s", opportunity_id, representative_id)
        return OperationResult.success(None)

    # ============================================================
    # REPRESENTATIVE ACCOUNTS
    # ============================================================

    @exclusive
    def approve_representative(self, representative_id: str) -> OperationResult[CompanyRepresentative]:
        command = "approve_representative"
        rep, failure = self._require_representative(command, representative_id)
        if failure:
            return failure
        if rep.approved:
            return self._fail(command, ErrorKind.INVALID_STATE, f"Representative {representative_id} is already approved")

        self.identity.approve_representative(representative_id)
        return OperationResult.success(rep.model_copy(deep=True))

    @exclusive
    def reject_representative(self, representative_id: str) -> OperationResult[None]:
        command = "reject_representative"
        rep, failure = self._require_representative(command, representative_id)
        if failure:
            return failure
        if rep.approved:
            return self._fail(command, ErrorKind.INVALID_STATE, f"Representative {representative_id} is already approved")

        self.identity.remove_user(representative_id)
        logger.info("Representative %s rejected and removed", representative_id)
        return OperationResult.success(None)
