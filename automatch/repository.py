"""
Candidate Repository.

Read-only access to applicants and job requests eligible for matching.
Which statuses count as eligible is always supplied by the caller.

Listings come back most-recent-first; ranking falls back to that order
when two candidates score the same.
"""

import functools
from typing import Iterable, List, Optional

from .database import Applicant, JobRequest
from .retry import exponential_backoff, store_errors


def _store_call(func):
    """Retry transient failures, then report anything left as DependencyError."""
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        retried = exponential_backoff(on_retry=lambda *_: self.session.rollback())(func)
        return retried(self, *args, **kwargs)

    return store_errors("Candidate store unavailable")(wrapper)


class CandidateRepository:
    """Applicant and job-request reads on one session."""

    def __init__(self, session):
        self.session = session

    @_store_call
    def list_eligible_applicants(self, statuses: Optional[Iterable[str]] = None) -> List[Applicant]:
        """Applicants in the given statuses who have not opted out of auto-matching."""
        query = self.session.query(Applicant).filter(Applicant.auto_match_enabled.is_(True))
        if statuses is not None:
            query = query.filter(Applicant.status.in_(list(statuses)))
        return query.order_by(Applicant.created_at.desc(), Applicant.id.desc()).all()

    @_store_call
    def list_eligible_job_requests(self, statuses: Optional[Iterable[str]] = None) -> List[JobRequest]:
        """Job requests in the given statuses; None means every job request."""
        query = self.session.query(JobRequest)
        if statuses is not None:
            query = query.filter(JobRequest.status.in_(list(statuses)))
        return query.order_by(JobRequest.created_at.desc(), JobRequest.id.desc()).all()

    @_store_call
    def get_applicant(self, applicant_id: int) -> Optional[Applicant]:
        return self.session.get(Applicant, applicant_id)

    @_store_call
    def get_job_request(self, job_request_id: int) -> Optional[JobRequest]:
        return self.session.get(JobRequest, job_request_id)
