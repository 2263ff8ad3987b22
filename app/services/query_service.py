"""
Query Service - read-only listings, filters and statistics.

Everything here runs under the shared side of the engine lock, so a
listing never sees half of an acceptance cascade. Results are deep copies:
callers can keep or modify them without touching engine state.

Ordering is always deterministic:
- opportunities: by title, then ID
- applications by student / by representative: newest submission first
- applications by opportunity: oldest submission first
- withdrawal requests: oldest status update first
"""

from datetime import date
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from app.core.locking import ReadWriteLock
from app.db.identity import IdentityStore
from app.db.stores import ApplicationRepository, OpportunityRepository
from app.models import (
    Application,
    ApplicationStatus,
    CompanyRepresentative,
    InternshipLevel,
    InternshipOpportunity,
    Major,
    OpportunityStatus,
    Staff,
    Student,
    User,
)
from app.services.eligibility import is_eligible


class OpportunityFilter(BaseModel):
    """
    Conjunctive filter over opportunities. A None field does not filter.

    closing_from / closing_to are inclusive bounds on the closing date.
    show_only_applied only has meaning for student listings.
    """
    status: Optional[OpportunityStatus] = None
    major: Optional[Major] = None
    level: Optional[InternshipLevel] = None
    closing_from: Optional[date] = None
    closing_to: Optional[date] = None
    min_available_slots: Optional[int] = None
    show_only_applied: bool = False

    def has_active_filters(self) -> bool:
        return self.show_only_applied or any(
            value is not None
            for value in (
                self.status, self.major, self.level,
                self.closing_from, self.closing_to, self.min_available_slots,
            )
        )

    def matches(self, opportunity: InternshipOpportunity) -> bool:
        if self.status is not None and opportunity.status != self.status:
            return False
        if self.major is not None and opportunity.preferred_major != self.major:
            return False
        if self.level is not None and opportunity.level != self.level:
            return False
        if self.closing_from is not None and opportunity.closing_date < self.closing_from:
            return False
        if self.closing_to is not None and opportunity.closing_date > self.closing_to:
            return False
        if self.min_available_slots is not None and opportunity.available_slots < self.min_available_slots:
            return False
        return True


def _by_title(opportunities: Iterable[InternshipOpportunity]) -> List[InternshipOpportunity]:
    return [
        o.model_copy(deep=True)
        for o in sorted(opportunities, key=lambda o: (o.title, o.opportunity_id))
    ]


def _visible_to_student(student: Student, opportunity: InternshipOpportunity) -> bool:
    """APPROVED and eligible, and either visible or already applied to."""
    return (
        (opportunity.visible or opportunity.opportunity_id in student.applied_opportunities)
        and opportunity.status == OpportunityStatus.APPROVED
        and is_eligible(student, opportunity)
    )


def _awaiting_withdrawal_decision(application: Application) -> bool:
    return application.withdrawal_requested and not application.withdrawal_approved and application.is_active


def _by_submission(applications: Iterable[Application], newest_first: bool) -> List[Application]:
    ordered = sorted(applications, key=lambda a: (a.submitted_at, a.application_id), reverse=newest_first)
    return [a.model_copy(deep=True) for a in ordered]


class QueryService:
    def __init__(
        self,
        identity: IdentityStore,
        opportunities: OpportunityRepository,
        applications: ApplicationRepository,
        lock: Optional[ReadWriteLock] = None,
    ):
        self.identity = identity
        self.opportunities = opportunities
        self.applications = applications
        self.lock = lock or ReadWriteLock()

    # ============================================================
    # SINGLE RECORDS
    # ============================================================

    def get_opportunity(self, opportunity_id: str) -> Optional[InternshipOpportunity]:
        with self.lock.read():
            opportunity = self.opportunities.get(opportunity_id)
            return opportunity.model_copy(deep=True) if opportunity else None

    def get_application(self, application_id: str) -> Optional[Application]:
        with self.lock.read():
            application = self.applications.get(application_id)
            return application.model_copy(deep=True) if application else None

    def get_user(self, user_id: str) -> Optional[User]:
        with self.lock.read():
            user = self.identity.lookup(user_id)
            return user.model_copy(deep=True) if user else None

    def opportunity_for_user(self, user_id: str, opportunity_id: str) -> Optional[InternshipOpportunity]:
        """
        One posting as the given user may see it, or None.

        Students get the same view as their listing, representatives only
        their own postings, staff everything.
        """
        with self.lock.read():
            opportunity = self.opportunities.get(opportunity_id)
            if opportunity is None:
                return None
            match self.identity.lookup(user_id):
                case Student() as student if _visible_to_student(student, opportunity):
                    pass
                case CompanyRepresentative(user_id=owner) if owner == opportunity.representative_id:
                    pass
                case Staff():
                    pass
                case _:
                    return None
            return opportunity.model_copy(deep=True)

    # ============================================================
    # OPPORTUNITY LISTINGS
    # ============================================================

    def opportunities_for_student(
        self, student_id: str, filters: Optional[OpportunityFilter] = None
    ) -> List[InternshipOpportunity]:
        """
        What a student may browse: APPROVED postings they are eligible for
        that are visible, plus any they applied to even if the
        representative has since hidden them.
        """
        filters = filters or OpportunityFilter()
        with self.lock.read():
            match self.identity.lookup(student_id):
                case Student() as student:
                    pass
                case _:
                    return []
            applied = set(student.applied_opportunities)
            selected = [
                o for o in self.opportunities.all()
                if _visible_to_student(student, o)
                and filters.matches(o)
                and (not filters.show_only_applied or o.opportunity_id in applied)
            ]
            return _by_title(selected)

    def all_opportunities(self, filters: Optional[OpportunityFilter] = None) -> List[InternshipOpportunity]:
        filters = filters or OpportunityFilter()
        with self.lock.read():
            return _by_title(o for o in self.opportunities.all() if filters.matches(o))

    def opportunities_by_representative(
        self, representative_id: str, filters: Optional[OpportunityFilter] = None
    ) -> List[InternshipOpportunity]:
        filters = filters or OpportunityFilter()
        with self.lock.read():
            return _by_title(
                o for o in self.opportunities.all()
                if o.representative_id == representative_id and filters.matches(o)
            )

    def pending_opportunities(self) -> List[InternshipOpportunity]:
        return self.all_opportunities(OpportunityFilter(status=OpportunityStatus.PENDING))

    # ============================================================
    # APPLICATION LISTINGS
    # ============================================================

    def applications_by_student(self, student_id: str) -> List[Application]:
        with self.lock.read():
            return _by_submission(self.applications.for_student(student_id), newest_first=True)

    def applications_by_opportunity(self, opportunity_id: str) -> List[Application]:
        with self.lock.read():
            return _by_submission(
                (a for a in self.applications.all() if a.opportunity_id == opportunity_id),
                newest_first=False,
            )

    def applications_by_representative(self, representative_id: str) -> List[Application]:
        with self.lock.read():
            owned = {
                o.opportunity_id for o in self.opportunities.all()
                if o.representative_id == representative_id
            }
            return _by_submission(
                (a for a in self.applications.all() if a.opportunity_id in owned),
                newest_first=True,
            )

    def withdrawal_requests(self) -> List[Application]:
        """Requests still waiting for a staff decision."""
        with self.lock.read():
            waiting = [
                a for a in self.applications.all()
                if _awaiting_withdrawal_decision(a)
            ]
            waiting.sort(key=lambda a: (a.status_updated_at, a.application_id))
            return [a.model_copy(deep=True) for a in waiting]

    # ============================================================
    # STATISTICS
    # ============================================================

    def application_statistics(self) -> Dict[str, int]:
        with self.lock.read():
            applications = self.applications.all()
            stats = {"total": len(applications)}
            for status in ApplicationStatus:
                stats[status.value.lower()] = sum(1 for a in applications if a.status == status)
            stats["withdrawal_requests"] = sum(
                1 for a in applications if _awaiting_withdrawal_decision(a)
            )
            return stats

    def opportunity_statistics(self) -> Dict[str, int]:
        with self.lock.read():
            opportunities = self.opportunities.all()
            stats = {"total": len(opportunities)}
            for status in OpportunityStatus:
                stats[status.value.lower()] = sum(1 for o in opportunities if o.status == status)
            stats["total_slots"] = sum(o.total_slots for o in opportunities)
            stats["filled_slots"] = sum(o.filled_slots for o in opportunities)
            return stats

    # ============================================================
    # REPRESENTATIVE ACCOUNTS
    # ============================================================

    def pending_representatives(self) -> List[CompanyRepresentative]:
        """Representative accounts staff have not approved yet, by user ID."""
        with self.lock.read():
            pending = []
            for user in self.identity.all_users():
                match user:
                    case CompanyRepresentative(approved=False):
                        pending.append(user.model_copy(deep=True))
            pending.sort(key=lambda u: u.user_id)
            return pending
