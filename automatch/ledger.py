"""
Auto-Application Ledger and Shortlist book.

Responsibilities:
- Persist auto-application proposals, at most one per (applicant, job request).
- Persist shortlist records, at most one per (job request, applicant).
- Ranked reads for applicant queues and staff overviews.

Non-Responsibilities:
- No scoring.
- No state transitions (see reconciler).
- No commits: the caller owns the transaction.

Invariant:
Dedup is enforced by the unique constraints and a single
"insert, ignore conflict" statement, never by a read followed by a write.
"""

from typing import List, Optional, Tuple

from .database import PENDING, AutoApplication, Shortlist, insert_ignore
from .retry import store_errors

_ledger_call = store_errors("Auto-application ledger unavailable")
_shortlist_call = store_errors("Shortlist store unavailable")


class AutoApplicationLedger:
    """Auto-application records on one session."""

    def __init__(self, session):
        self.session = session

    @_ledger_call
    def upsert_if_absent(
        self, applicant_id: int, job_request_id: int, score: int
    ) -> Tuple[AutoApplication, bool]:
        """
        Create a pending proposal for the pair unless one already exists.

        Concurrent callers on the same pair all succeed; exactly one of
        them gets created=True. An existing record is returned untouched,
        whatever its status or score.

        Returns:
            (record, created)
        """
        created = insert_ignore(
            self.session,
            AutoApplication,
            {
                "applicant_id": applicant_id,
                "job_request_id": job_request_id,
                "match_score": score,
                "status": PENDING,
            },
            ("applicant_id", "job_request_id"),
        )
        record = (
            self.session.query(AutoApplication)
            .filter_by(applicant_id=applicant_id, job_request_id=job_request_id)
            .one()
        )
        return record, created

    @_ledger_call
    def get(self, auto_application_id: int) -> Optional[AutoApplication]:
        return self.session.get(AutoApplication, auto_application_id)

    @_ledger_call
    def list_pending_for_applicant(self, applicant_id: int) -> List[AutoApplication]:
        """Pending proposals for an applicant, best match first, then newest."""
        return (
            self.session.query(AutoApplication)
            .filter_by(applicant_id=applicant_id, status=PENDING)
            .order_by(
                AutoApplication.match_score.desc(),
                AutoApplication.created_at.desc(),
                AutoApplication.id.desc(),
            )
            .all()
        )

    @_ledger_call
    def list_all(
        self, applicant_id: Optional[int] = None, status: Optional[str] = None
    ) -> List[AutoApplication]:
        """All proposals, newest first, optionally narrowed by applicant or status."""
        query = self.session.query(AutoApplication)
        if applicant_id is not None:
            query = query.filter_by(applicant_id=applicant_id)
        if status is not None:
            query = query.filter_by(status=status)
        return query.order_by(AutoApplication.created_at.desc(), AutoApplication.id.desc()).all()

    @_ledger_call
    def count_for_pair(self, applicant_id: int, job_request_id: int) -> int:
        return (
            self.session.query(AutoApplication)
            .filter_by(applicant_id=applicant_id, job_request_id=job_request_id)
            .count()
        )


class ShortlistBook:
    """Shortlist records on one session."""

    def __init__(self, session):
        self.session = session

    @_shortlist_call
    def add_if_absent(
        self, job_request_id: int, applicant_id: int, notes: Optional[str] = None
    ) -> Tuple[Shortlist, bool]:
        """Create a pending shortlist entry for the pair unless one exists."""
        created = insert_ignore(
            self.session,
            Shortlist,
            {
                "job_request_id": job_request_id,
                "applicant_id": applicant_id,
                "status": PENDING,
                "notes": notes,
            },
            ("job_request_id", "applicant_id"),
        )
        record = (
            self.session.query(Shortlist)
            .filter_by(job_request_id=job_request_id, applicant_id=applicant_id)
            .one()
        )
        return record, created

    @_shortlist_call
    def list(self, status: Optional[str] = None) -> List[Shortlist]:
        """Shortlist entries, most recently updated first."""
        query = self.session.query(Shortlist)
        if status is not None:
            query = query.filter_by(status=status)
        return query.order_by(Shortlist.updated_at.desc(), Shortlist.id.desc()).all()
