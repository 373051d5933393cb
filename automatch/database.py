"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for applicants, job requests, auto-applications
and shortlists. Pair uniqueness lives in the schema, and insert_ignore is the
one atomic "insert, ignore conflict" write every dedup path goes through.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Sequence

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

Base = declarative_base()

# Applicant workflow states. Only the matching pools read them here.
APPLICANT_STATUSES = ("new", "ready", "shortlisted", "selected", "deployed", "rejected")

JOB_OPEN = "open"
JOB_CLOSED = "closed"

# Proposal lifecycle: pending -> submitted | declined
PENDING = "pending"
SUBMITTED = "submitted"
DECLINED = "declined"

DEFAULT_TIMEOUT = 30.0


class Applicant(Base):
    """Registered applicant."""

    __tablename__ = "applicants"

    id = Column(Integer, primary_key=True)
    first_name = Column(String, nullable=False, default="")
    last_name = Column(String, nullable=False, default="")
    email = Column(String, nullable=True)
    category = Column(String, nullable=False)  # job category label, e.g. "Welder"
    nationality = Column(String, nullable=False, default="")
    years_of_experience = Column(Integer, nullable=False, default=0)
    gender = Column(String, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    passport_number = Column(String, nullable=True)
    training_completed = Column(Boolean, nullable=False, default=False)
    medical_clearance = Column(Boolean, nullable=False, default=False)
    status = Column(String, nullable=False, default="new")
    auto_match_enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def __repr__(self):
        return f"<Applicant {self.id} {self.category!r} status={self.status}>"


class JobRequest(Base):
    """Employer job request. Read-only while matching."""

    __tablename__ = "job_requests"

    id = Column(Integer, primary_key=True)
    employer_id = Column(Integer, nullable=True)
    category = Column(String, nullable=False)
    country = Column(String, nullable=False, default="")
    required_experience = Column(Integer, nullable=False, default=0)
    gender = Column(String, nullable=True)  # required-gender filter, None = any
    age_min = Column(Integer, nullable=True)
    age_max = Column(Integer, nullable=True)
    status = Column(String, nullable=False, default=JOB_OPEN)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def __repr__(self):
        return f"<JobRequest {self.id} {self.category!r}/{self.country} status={self.status}>"


class AutoApplication(Base):
    """System-generated proposal linking one applicant to one job request."""

    __tablename__ = "auto_applications"
    __table_args__ = (
        UniqueConstraint("applicant_id", "job_request_id", name="uq_auto_application_pair"),
    )

    id = Column(Integer, primary_key=True)
    applicant_id = Column(Integer, ForeignKey("applicants.id"), nullable=False, index=True)
    job_request_id = Column(Integer, ForeignKey("job_requests.id"), nullable=False, index=True)
    match_score = Column(Integer, nullable=False)  # 0 - 100
    status = Column(String, nullable=False, default=PENDING)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    reviewed_at = Column(DateTime, nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    declined_at = Column(DateTime, nullable=True)

    applicant = relationship("Applicant")
    job_request = relationship("JobRequest")

    def __repr__(self):
        return (
            f"<AutoApplication {self.id} {self.applicant_id}->{self.job_request_id} "
            f"score={self.match_score} status={self.status}>"
        )


class Shortlist(Base):
    """Staff review record created when an auto-application is submitted."""

    __tablename__ = "shortlists"
    __table_args__ = (
        UniqueConstraint("job_request_id", "applicant_id", name="uq_shortlist_pair"),
    )

    id = Column(Integer, primary_key=True)
    job_request_id = Column(Integer, ForeignKey("job_requests.id"), nullable=False, index=True)
    applicant_id = Column(Integer, ForeignKey("applicants.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default=PENDING)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


def get_engine(db_path: Path, timeout: float = DEFAULT_TIMEOUT):
    """
    Create an engine for the SQLite database file.

    Args:
        db_path: Path to SQLite database file
        timeout: Seconds a connection waits on a locked database before failing

    Returns:
        SQLAlchemy engine
    """
    return create_engine(
        f"sqlite:///{db_path}",
        connect_args={"timeout": timeout, "check_same_thread": False},
    )


def init_database(db_path: Path, timeout: float = DEFAULT_TIMEOUT) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
        timeout: Lock wait timeout in seconds
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(db_path, timeout)
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session_factory(db_path: Path, timeout: float = DEFAULT_TIMEOUT) -> sessionmaker:
    """
    Get a session factory bound to one engine.

    Workers running in parallel each open their own session from it.
    """
    return sessionmaker(bind=get_engine(db_path, timeout), expire_on_commit=False)


def get_session(db_path: Path, timeout: float = DEFAULT_TIMEOUT):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file
        timeout: Lock wait timeout in seconds

    Returns:
        SQLAlchemy session
    """
    return get_session_factory(db_path, timeout)()


def insert_ignore(session, model, values: Dict[str, Any], key_columns: Sequence[str]) -> bool:
    """
    Insert a row unless one with the same key already exists.

    The check and the insert are a single statement, so two writers racing
    on the same key cannot both create a row.

    Args:
        session: Open session; the caller owns commit/rollback
        model: Mapped class to insert into
        values: Column values for the new row
        key_columns: Columns of the unique constraint that defines "exists"

    Returns:
        True if this call inserted the row, False if it already existed
    """
    dialect = session.get_bind().dialect.name

    if dialect in ("sqlite", "postgresql"):
        insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = (
            insert(model.__table__)
            .values(**values)
            .on_conflict_do_nothing(index_elements=list(key_columns))
        )
        result = session.execute(stmt)
        return result.rowcount == 1

    try:
        with session.begin_nested():
            session.add(model(**values))
        return True
    except IntegrityError:
        return False
