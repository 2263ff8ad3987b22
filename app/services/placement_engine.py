"""
Placement Engine - wires stores, lock, services and persistence together.

One PlacementEngine instance owns one set of stores. It is built
explicitly and handed to whoever needs it (the FastAPI app keeps it on
app.state); there is no module-level instance.

Usage:
    engine = build_engine(settings, persistence=SqlPersistence(settings.database_url))
    engine.load()
    result = engine.allocation.submit_application("U2310001A", "INT000001")
    engine.save()
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from app.core.config import Settings, get_settings
from app.core.locking import ReadWriteLock
from app.db.database import SqlPersistence
from app.db.identity import InMemoryIdentityStore
from app.db.stores import IdGenerator, InMemoryApplicationStore, InMemoryOpportunityStore
from app.models import User
from app.services.allocation_service import AllocationService
from app.services.query_service import QueryService

logger = logging.getLogger(__name__)


@dataclass
class PlacementEngine:
    settings: Settings
    identity: InMemoryIdentityStore
    opportunities: InMemoryOpportunityStore
    applications: InMemoryApplicationStore
    ids: IdGenerator
    lock: ReadWriteLock
    allocation: AllocationService
    queries: QueryService
    persistence: Optional[SqlPersistence] = None

    def load(self) -> None:
        """Replace in-memory state with what persistence holds."""
        if self.persistence is None:
            return
        self.persistence.create_schema()
        with self.lock.write():
            users = self.persistence.load_users()
            # An empty users table keeps the users the engine was built with
            if users:
                self.identity.load(users)
            opportunities, applications = self.persistence.load_all()
            self.opportunities.load(opportunities)
            self.applications.load(applications)
            self.ids.reseed()

    def save(self) -> None:
        if self.persistence is None:
            return
        self.persistence.create_schema()
        # Read side is enough: saving does not mutate the stores
        with self.lock.read():
            self.persistence.save_users(self.identity.all_users())
            self.persistence.save_all(self.opportunities.all(), self.applications.all())


def build_engine(
    settings: Optional[Settings] = None,
    persistence: Optional[SqlPersistence] = None,
    users: Iterable[User] = (),
    clock: Optional[Callable[[], datetime]] = None,
) -> PlacementEngine:
    settings = settings or get_settings()
    identity = InMemoryIdentityStore(users)
    opportunities = InMemoryOpportunityStore()
    applications = InMemoryApplicationStore()
    ids = IdGenerator(opportunities, applications)
    lock = ReadWriteLock()

    allocation = AllocationService(
        identity, opportunities, applications,
        settings=settings, lock=lock, clock=clock, id_generator=ids,
    )
    queries = QueryService(identity, opportunities, applications, lock=lock)

    logger.info("Placement engine built (persistence: %s)", "on" if persistence else "off")
    return PlacementEngine(
        settings=settings,
        identity=identity,
        opportunities=opportunities,
        applications=applications,
        ids=ids,
        lock=lock,
        allocation=allocation,
        queries=queries,
        persistence=persistence,
    )
