"""
SQL persistence - bulk load/save of engine state.

Stores:
- opportunities: one row per InternshipOpportunity (applicants as JSON text)
- applications: one row per Application
- users: one row per identity record (full record as JSON payload)

The engine never touches the database mid-operation. load_all() runs at
startup, save_all() at shutdown, each inside a single transaction.
"""
import json
import logging
from contextlib import contextmanager
from typing import List, Tuple

from pydantic import TypeAdapter
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from app.models import Application, InternshipOpportunity, User

logger = logging.getLogger(__name__)

_user_adapter = TypeAdapter(User)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS opportunities (
        opportunity_id VARCHAR(32) PRIMARY KEY,
        title VARCHAR(200) NOT NULL,
        description TEXT,
        level VARCHAR(20) NOT NULL,
        preferred_major VARCHAR(20) NOT NULL,
        opening_date DATE NOT NULL,
        closing_date DATE NOT NULL,
        status VARCHAR(20) NOT NULL,
        company_name VARCHAR(200),
        representative_id VARCHAR(64) NOT NULL,
        total_slots INTEGER NOT NULL,
        filled_slots INTEGER NOT NULL,
        visible BOOLEAN NOT NULL,
        applicant_ids TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS applications (
        application_id VARCHAR(32) PRIMARY KEY,
        student_id VARCHAR(64) NOT NULL,
        opportunity_id VARCHAR(32) NOT NULL,
        status VARCHAR(20) NOT NULL,
        submitted_at TIMESTAMP NOT NULL,
        status_updated_at TIMESTAMP NOT NULL,
        withdrawal_reason TEXT,
        withdrawal_requested BOOLEAN NOT NULL,
        withdrawal_approved BOOLEAN NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users (
        user_id VARCHAR(64) PRIMARY KEY,
        role VARCHAR(20) NOT NULL,
        payload TEXT NOT NULL
    )
    """,
]


class SqlPersistence:
    """
    Persistence collaborator backed by SQLAlchemy.

    Usage:
        persistence = SqlPersistence("sqlite:///./placement.db")
        opportunities, applications = persistence.load_all()
        ...
        persistence.save_all(opportunities, applications)
    """

    def __init__(self, database_url: str, echo: bool = False):
        engine_kwargs = {"echo": echo}
        if not database_url.startswith("sqlite"):
            # pool_size=5: keep 5 connections ready, max_overflow=10 under load
            engine_kwargs.update(pool_size=5, max_overflow=10)
        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @contextmanager
    def get_db_session(self):
        """
        Context manager for database sessions.
        Commits on success, rolls back and re-raises on any error.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_schema(self) -> None:
        """Create the tables if missing. Safe to call repeatedly."""
        with self.get_db_session() as db:
            for statement in SCHEMA:
                db.execute(text(statement))

    def execute_raw_sql(self, sql: str, params: dict = None) -> list:
        """Execute raw SQL and return results as list of dicts."""
        with self.get_db_session() as db:
            result = db.execute(text(sql), params or {})
            columns = result.keys()
            return [dict(zip(columns, row)) for row in result.fetchall()]

    def test_connection(self) -> bool:
        """Returns True if the database answers a trivial query."""
        try:
            rows = self.execute_raw_sql("SELECT 1 AS test")
            return rows[0]["test"] == 1
        except Exception as e:
            logger.error("Database connection failed: %s", e)
            return False

    # ============================================================
    # OPPORTUNITIES + APPLICATIONS
    # ============================================================

    def load_all(self) -> Tuple[List[InternshipOpportunity], List[Application]]:
        opportunity_rows = self.execute_raw_sql("SELECT * FROM opportunities")
        application_rows = self.execute_raw_sql("SELECT * FROM applications")

        opportunities = []
        for row in opportunity_rows:
            row["applicant_ids"] = json.loads(row["applicant_ids"])
            opportunities.append(InternshipOpportunity.model_validate(row))

        applications = [Application.model_validate(row) for row in application_rows]

        logger.info("Loaded %d opportunities and %d applications", len(opportunities), len(applications))
        return opportunities, applications

    def save_all(self, opportunities: List[InternshipOpportunity], applications: List[Application]) -> None:
        opportunity_params = [
            {
                **o.model_dump(mode="json", exclude={"applicant_ids"}),
                "applicant_ids": json.dumps(o.applicant_ids),
            }
            for o in opportunities
        ]
        application_params = [a.model_dump(mode="json") for a in applications]

        with self.get_db_session() as db:
            db.execute(text("DELETE FROM applications"))
            db.execute(text("DELETE FROM opportunities"))
            if opportunity_params:
                db.execute(
                    text("""
                        INSERT INTO opportunities (opportunity_id, title, description, level, preferred_major,
                            opening_date, closing_date, status, company_name, representative_id,
                            total_slots, filled_slots, visible, applicant_ids)
                        VALUES (:opportunity_id, :title, :description, :level, :preferred_major,
                            :opening_date, :closing_date, :status, :company_name, :representative_id,
                            :total_slots, :filled_slots, :visible, :applicant_ids)
                    """),
                    opportunity_params,
                )
            if application_params:
                db.execute(
                    text("""
                        INSERT INTO applications (application_id, student_id, opportunity_id, status,
                            submitted_at, status_updated_at, withdrawal_reason,
                            withdrawal_requested, withdrawal_approved)
                        VALUES (:application_id, :student_id, :opportunity_id, :status,
                            :submitted_at, :status_updated_at, :withdrawal_reason,
                            :withdrawal_requested, :withdrawal_approved)
                    """),
                    application_params,
                )

        logger.info("Saved %d opportunities and %d applications", len(opportunities), len(applications))

    # ============================================================
    # USERS (identity store backing)
    # ============================================================

    def load_users(self) -> List[User]:
        rows = self.execute_raw_sql("SELECT payload FROM users")
        return [_user_adapter.validate_json(row["payload"]) for row in rows]

    def save_users(self, users: List[User]) -> None:
        params = [
            {"user_id": u.user_id, "role": u.role.value, "payload": u.model_dump_json()}
            for u in users
        ]
        with self.get_db_session() as db:
            db.execute(text("DELETE FROM users"))
            if params:
                db.execute(
                    text("INSERT INTO users (user_id, role, payload) VALUES (:user_id, :role, :payload)"),
                    params,
                )
        logger.info("Saved %d users", len(users))
