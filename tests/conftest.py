"""
Pytest configuration and shared fixtures.
"""

from datetime import date

import pytest

from automatch.database import Applicant, JobRequest, get_session_factory, init_database
from automatch.logger import get_logger, reset_logger


@pytest.fixture(autouse=True)
def quiet_logger():
    """Global logger without console or file output."""
    reset_logger()
    logger = get_logger(enable_file=False, enable_console=False)
    yield logger
    reset_logger()


@pytest.fixture
def db_path(tmp_path):
    """Initialized SQLite database file."""
    path = tmp_path / "test.db"
    init_database(path)
    return path


@pytest.fixture
def session_factory(db_path):
    """Session factory bound to the test database."""
    factory = get_session_factory(db_path, timeout=30)
    yield factory
    factory.kw["bind"].dispose()


@pytest.fixture
def session(session_factory):
    """An open session on the test database."""
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def welder() -> Applicant:
    """Unsaved welder applicant used in scoring scenarios."""
    return Applicant(
        first_name="Amina",
        last_name="Otieno",
        category="Welder",
        nationality="KE",
        years_of_experience=3,
        gender="M",
        date_of_birth=date(1995, 4, 12),
        passport_number=None,
        training_completed=True,
        medical_clearance=True,
        status="ready",
    )


@pytest.fixture
def welder_job() -> JobRequest:
    """Unsaved welder job request used in scoring scenarios."""
    return JobRequest(
        employer_id=7,
        category="Welder",
        country="KE",
        required_experience=2,
        gender="M",
        status="open",
    )


@pytest.fixture
def make_applicant(session):
    """Persist an applicant; defaults describe a bulk-eligible welder from KE."""
    def _make(**overrides) -> Applicant:
        values = {
            "first_name": "Test",
            "last_name": "Applicant",
            "category": "Welder",
            "nationality": "KE",
            "years_of_experience": 3,
            "gender": "M",
            "passport_number": None,
            "training_completed": True,
            "medical_clearance": True,
            "status": "ready",
        }
        values.update(overrides)
        applicant = Applicant(**values)
        session.add(applicant)
        session.commit()
        return applicant
    return _make


@pytest.fixture
def make_job(session):
    """Persist an open job request; defaults describe a welder job in KE."""
    def _make(**overrides) -> JobRequest:
        values = {
            "employer_id": 1,
            "category": "Welder",
            "country": "KE",
            "required_experience": 2,
            "gender": None,
            "status": "open",
        }
        values.update(overrides)
        job = JobRequest(**values)
        session.add(job)
        session.commit()
        return job
    return _make
