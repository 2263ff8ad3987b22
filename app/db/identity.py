"""
Identity store - Student / CompanyRepresentative / Staff records.

The engine does not own users. It looks them up here and changes the
per-user counters (applied list, accepted placement, created postings)
only through the record_* hooks below.
"""
import logging
from typing import Dict, Iterable, List, Optional, Protocol

from app.models import CompanyRepresentative, Student, User

logger = logging.getLogger(__name__)


class IdentityStore(Protocol):
    def lookup(self, user_id: str) -> Optional[User]: ...
    def record_application(self, student_id: str, opportunity_id: str) -> None: ...
    def record_acceptance(self, student_id: str, opportunity_id: str) -> None: ...
    def record_withdrawal(self, student_id: str, opportunity_id: str) -> None: ...
    def record_created_opportunity(self, representative_id: str, opportunity_id: str) -> None: ...
    def record_deleted_opportunity(self, representative_id: str, opportunity_id: str) -> None: ...
    def approve_representative(self, representative_id: str) -> bool: ...
    def remove_user(self, user_id: str) -> bool: ...


class InMemoryIdentityStore:
    """
    Dict-backed IdentityStore.

    lookup() returns None for unknown IDs; that is the NotFound case of the
    user variant.
    """

    def __init__(self, users: Iterable[User] = ()):
        self._users: Dict[str, User] = {}
        self.load(users)

    def load(self, users: Iterable[User]) -> None:
        self._users = {u.user_id: u for u in users}

    def add(self, user: User) -> None:
        if user.user_id in self._users:
            raise KeyError(f"Duplicate user ID {user.user_id}")
        self._users[user.user_id] = user

    def all_users(self) -> List[User]:
        return list(self._users.values())

    def lookup(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def _student(self, student_id: str) -> Student:
        match self._users.get(student_id):
            case Student() as student:
                return student
        raise KeyError(f"{student_id} is not a student")

    def _representative(self, representative_id: str) -> CompanyRepresentative:
        match self._users.get(representative_id):
            case CompanyRepresentative() as rep:
                return rep
        raise KeyError(f"{representative_id} is not a company representative")

    # ---- student counters ----

    def record_application(self, student_id: str, opportunity_id: str) -> None:
        student = self._student(student_id)
        if opportunity_id not in student.applied_opportunities:
            student.applied_opportunities.append(opportunity_id)

    def record_acceptance(self, student_id: str, opportunity_id: str) -> None:
        """Accepting collapses the applied list to the accepted posting."""
        student = self._student(student_id)
        student.accepted_opportunity = opportunity_id
        student.applied_opportunities = [opportunity_id]

    def record_withdrawal(self, student_id: str, opportunity_id: str) -> None:
        student = self._student(student_id)
        if student.accepted_opportunity == opportunity_id:
            student.accepted_opportunity = None
        if opportunity_id in student.applied_opportunities:
            student.applied_opportunities.remove(opportunity_id)

    # ---- representative counters ----

    def record_created_opportunity(self, representative_id: str, opportunity_id: str) -> None:
        rep = self._representative(representative_id)
        if opportunity_id not in rep.created_opportunities:
            rep.created_opportunities.append(opportunity_id)

    def record_deleted_opportunity(self, representative_id: str, opportunity_id: str) -> None:
        rep = self._representative(representative_id)
        if opportunity_id in rep.created_opportunities:
            rep.created_opportunities.remove(opportunity_id)

    def approve_representative(self, representative_id: str) -> bool:
        match self._users.get(representative_id):
            case CompanyRepresentative() as rep:
                rep.approved = True
            case _:
                return False
        logger.info("Representative %s approved", representative_id)
        return True

    def remove_user(self, user_id: str) -> bool:
        removed = self._users.pop(user_id, None) is not None
        if removed:
            logger.info("User %s removed", user_id)
        return removed
