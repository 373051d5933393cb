"""
Tests for the command line entry points.
"""

import importlib.util
import json
from pathlib import Path

import pytest

from automatch import __version__
from automatch.app import main
from automatch.database import Applicant, AutoApplication, JobRequest, Shortlist, get_session


@pytest.fixture
def run(db_path, capsys):
    """Run the CLI against the test database and return stdout."""
    def _run(*argv):
        main(["--db", str(db_path), *argv])
        return capsys.readouterr().out
    return _run


class TestCli:
    """Test CLI commands end to end."""

    def test_version(self, capsys):
        """--version prints the package version."""
        main(["--version"])
        assert capsys.readouterr().out.strip() == __version__

    def test_init_db(self, tmp_path, capsys):
        """init-db creates the database."""
        db = tmp_path / "cli" / "new.db"
        main(["--db", str(db), "init-db"])
        assert db.exists()
        assert "Database ready" in capsys.readouterr().out

    def test_missing_database(self, tmp_path):
        """Commands other than init-db need an existing database."""
        with pytest.raises(SystemExit, match="Database not found"):
            main(["--db", str(tmp_path / "nope.db"), "match-all"])

    def test_match_job_and_preview(self, run, session, make_applicant, make_job):
        """match-job persists; --preview does not."""
        make_applicant()
        job = make_job()

        preview = run("match-job", "--job-id", str(job.id), "--preview")
        assert "Found 1 matching applicants" in preview
        assert session.query(AutoApplication).count() == 0

        out = run("match-job", "--job-id", str(job.id))
        assert "Created 1 auto-applications" in out
        assert session.query(AutoApplication).count() == 1

    def test_match_applicant_create(self, run, session, make_applicant, make_job):
        """match-applicant --create persists proposals."""
        applicant = make_applicant()
        make_job()

        out = run("match-applicant", "--applicant-id", str(applicant.id), "--create")

        assert "Created 1 auto-applications for applicant" in out
        assert session.query(AutoApplication).count() == 1

    def test_match_all(self, run, make_applicant, make_job):
        """match-all reports totals."""
        make_applicant()
        make_job()
        make_job()

        out = run("match-all")

        assert "Created 2 auto-applications for 2 job requests" in out
        assert "Failed: 0" in out

    def test_submit_and_conflict(self, run, session, make_applicant, make_job):
        """Submitting twice reports a conflict on the second attempt."""
        make_applicant()
        job = make_job()
        run("match-job", "--job-id", str(job.id))
        proposal = session.query(AutoApplication).one()

        out = run("submit", "--id", str(proposal.id), "--notes", "Looks good")
        assert "Application submitted successfully" in out
        assert session.query(Shortlist).count() == 1

        with pytest.raises(SystemExit, match="ConflictError"):
            run("submit", "--id", str(proposal.id))

    def test_decline_unknown(self, run):
        """Declining an unknown id reports NotFoundError."""
        with pytest.raises(SystemExit, match="NotFoundError"):
            run("decline", "--id", "77")

    def test_invalid_id(self, run, capsys):
        """Malformed ids exit with code 2."""
        with pytest.raises(SystemExit) as exc_info:
            run("decline", "--id", "0")
        assert exc_info.value.code == 2
        assert "positive integer" in capsys.readouterr().out

    def test_pending_and_lists(self, run, make_applicant, make_job):
        """pending, proposals and shortlists print what is stored."""
        applicant = make_applicant()
        job = make_job()
        run("match-job", "--job-id", str(job.id))

        assert "1 pending auto-applications" in run("pending", "--applicant-id", str(applicant.id))
        assert "1 auto-applications" in run("proposals", "--status", "pending")
        assert "No shortlist entries." in run("shortlists")


class TestImportScript:
    """Test scripts/import_records.py."""

    @pytest.fixture
    def import_records(self):
        path = Path(__file__).resolve().parent.parent / "scripts" / "import_records.py"
        spec = importlib.util.spec_from_file_location("import_records", path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module.import_records

    def test_imports_valid_rows(self, import_records, tmp_path, capsys):
        """Valid rows are stored; invalid ones are skipped."""
        records = tmp_path / "records.json"
        records.write_text(json.dumps({
            "applicants": [
                {"category": "Welder", "nationality": "KE", "years_of_experience": 3,
                 "date_of_birth": "1995-04-12"},
                {"category": "", "years_of_experience": 1},
            ],
            "job_requests": [
                {"category": "Welder", "country": "KE", "required_experience": 2},
            ],
        }))
        db = tmp_path / "imported.db"

        assert import_records(records, db) is True

        session = get_session(db)
        applicants = session.query(Applicant).all()
        assert len(applicants) == 1
        assert applicants[0].date_of_birth.year == 1995
        assert session.query(JobRequest).count() == 1
        session.close()
        assert "1 imported, 1 skipped" in capsys.readouterr().out
