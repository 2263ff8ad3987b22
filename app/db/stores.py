"""
In-memory stores for opportunities and applications.

The engine is the single owner of these stores. They hold live entity
objects; the query service hands out deep copies so callers never get a
handle on engine state.
"""
import re
from typing import Dict, Iterable, List, Optional, Protocol

from app.models import Application, InternshipOpportunity


class OpportunityRepository(Protocol):
    def get(self, opportunity_id: str) -> Optional[InternshipOpportunity]: ...
    def add(self, opportunity: InternshipOpportunity) -> None: ...
    def remove(self, opportunity_id: str) -> bool: ...
    def all(self) -> List[InternshipOpportunity]: ...
    def load(self, opportunities: Iterable[InternshipOpportunity]) -> None: ...


class ApplicationRepository(Protocol):
    def get(self, application_id: str) -> Optional[Application]: ...
    def add(self, application: Application) -> None: ...
    def all(self) -> List[Application]: ...
    def for_student(self, student_id: str) -> List[Application]: ...
    def load(self, applications: Iterable[Application]) -> None: ...


class InMemoryOpportunityStore:
    def __init__(self):
        self._items: Dict[str, InternshipOpportunity] = {}

    def __len__(self) -> int:
        return len(self._items)

    def get(self, opportunity_id: str) -> Optional[InternshipOpportunity]:
        return self._items.get(opportunity_id)

    def add(self, opportunity: InternshipOpportunity) -> None:
        if opportunity.opportunity_id in self._items:
            raise KeyError(f"Duplicate opportunity ID {opportunity.opportunity_id}")
        self._items[opportunity.opportunity_id] = opportunity

    def remove(self, opportunity_id: str) -> bool:
        return self._items.pop(opportunity_id, None) is not None

    def all(self) -> List[InternshipOpportunity]:
        return list(self._items.values())

    def load(self, opportunities: Iterable[InternshipOpportunity]) -> None:
        """Replace the whole store (startup load)."""
        self._items = {o.opportunity_id: o for o in opportunities}


class InMemoryApplicationStore:
    def __init__(self):
        self._items: Dict[str, Application] = {}

    def __len__(self) -> int:
        return len(self._items)

    def get(self, application_id: str) -> Optional[Application]:
        return self._items.get(application_id)

    def add(self, application: Application) -> None:
        if application.application_id in self._items:
            raise KeyError(f"Duplicate application ID {application.application_id}")
        self._items[application.application_id] = application

    def all(self) -> List[Application]:
        return list(self._items.values())

    def for_student(self, student_id: str) -> List[Application]:
        return [a for a in self._items.values() if a.student_id == student_id]

    def load(self, applications: Iterable[Application]) -> None:
        self._items = {a.application_id: a for a in applications}


# ============================================================
# ID GENERATION
# ============================================================

_ID_SUFFIX = re.compile(r"(\d+)$")


class IdGenerator:
    """
    Issues INT000001 / APP000001 style IDs.

    Counters only move forward and are re-seeded from the highest existing
    suffix after a bulk load, so a deleted opportunity's ID is never handed
    out again.
    """

    OPPORTUNITY_PREFIX = "INT"
    APPLICATION_PREFIX = "APP"

    def __init__(self, opportunities: OpportunityRepository, applications: ApplicationRepository):
        self._opportunities = opportunities
        self._applications = applications
        self._next_opportunity = 1
        self._next_application = 1
        self.reseed()

    @staticmethod
    def _highest(ids: Iterable[str]) -> int:
        highest = 0
        for item_id in ids:
            match = _ID_SUFFIX.search(item_id)
            if match:
                highest = max(highest, int(match.group(1)))
        return highest

    def reseed(self) -> None:
        self._next_opportunity = max(
            self._next_opportunity,
            self._highest(o.opportunity_id for o in self._opportunities.all()) + 1,
        )
        self._next_application = max(
            self._next_application,
            self._highest(a.application_id for a in self._applications.all()) + 1,
        )

    def next_opportunity_id(self) -> str:
        value = f"{self.OPPORTUNITY_PREFIX}{self._next_opportunity:06d}"
        self._next_opportunity += 1
        return value

    def next_application_id(self) -> str:
        value = f"{self.APPLICATION_PREFIX}{self._next_application:06d}"
        self._next_application += 1
        return value
