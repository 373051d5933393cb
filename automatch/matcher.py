"""
Matcher.

Responsibilities:
- Pull eligible applicants / job requests from the Candidate Repository.
- Score every pair with one explicitly chosen policy.
- Apply the threshold and rank by score.
- Persist non-duplicate auto-applications through the ledger.

Invariant:
Re-running a match on unchanged data yields the same candidate set and
never creates a second auto-application for a pair.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from .database import JOB_OPEN, Applicant, AutoApplication, JobRequest
from .errors import DependencyError, NotFoundError
from .ledger import AutoApplicationLedger
from .logger import StructuredLogger, get_logger
from .repository import CandidateRepository
from .scoring import BULK_POLICY, PRIMARY_POLICY, ScoringPolicy


@dataclass
class Match:
    applicant: Applicant
    job_request: JobRequest
    score: int


@dataclass
class MatchResult:
    """Ranked matches for one applicant or job request, plus any records created."""

    target_id: int
    matches: List[Match] = field(default_factory=list)
    created: List[AutoApplication] = field(default_factory=list)


@dataclass
class BulkMatchResult:
    """Outcome of a bulk run folded over every job request."""

    created: int = 0
    processed: int = 0
    failures: List[Tuple[int, Exception]] = field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded(self) -> int:
        return self.processed - len(self.failures)

    @property
    def failed_job_ids(self) -> List[int]:
        return [job_id for job_id, _ in self.failures]


def compute_candidates(
    pool: Iterable,
    target,
    policy: ScoringPolicy,
    threshold: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Tuple[object, int]]:
    """
    Score a target against a pool and rank the survivors.

    The target is either a JobRequest (pool of applicants) or an Applicant
    (pool of job requests). Candidates scoring below the threshold are
    dropped; the rest are sorted by score descending. The sort is stable,
    so equal scores keep the pool's listing order.

    Args:
        pool: Candidates in listing order
        target: The applicant or job request being matched
        policy: Scoring policy to apply
        threshold: Minimum score, defaults to the policy's threshold
        limit: Keep at most this many candidates

    Returns:
        List of (candidate, score) pairs, best first

    Raises:
        TypeError: Target is neither an Applicant nor a JobRequest
    """
    if threshold is None:
        threshold = policy.threshold

    if isinstance(target, Applicant):
        scored = [(candidate, policy.score(target, candidate)) for candidate in pool]
    elif isinstance(target, JobRequest):
        scored = [(candidate, policy.score(candidate, target)) for candidate in pool]
    else:
        raise TypeError(f"Cannot match against {type(target).__name__}")

    ranked = sorted(
        (pair for pair in scored if pair[1] >= threshold),
        key=lambda pair: pair[1],
        reverse=True,
    )
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


class Matcher:
    """
    Entry points for applicant, job and bulk matching.

    Each operation runs on its own session from the factory, so bulk
    workers never share a session.
    """

    def __init__(self, session_factory, logger: Optional[StructuredLogger] = None):
        self.session_factory = session_factory
        self.logger = logger or get_logger()

    def match_for_applicant(
        self,
        applicant_id: int,
        policy: ScoringPolicy = PRIMARY_POLICY,
        create: bool = False,
        job_statuses: Optional[Sequence[str]] = None,
    ) -> MatchResult:
        """
        Rank job requests for one applicant.

        A preview unless create=True, in which case every surviving pair
        without an auto-application gets one.

        Raises:
            NotFoundError: Unknown applicant
            DependencyError: Store failure
        """
        with self.session_factory() as session:
            repo = CandidateRepository(session)
            applicant = repo.get_applicant(applicant_id)
            if applicant is None:
                raise NotFoundError(f"Applicant {applicant_id} not found")

            result = MatchResult(target_id=applicant_id)
            if not applicant.auto_match_enabled:
                self.logger.info("Applicant opted out of auto-matching", applicant_id=applicant_id)
                return result

            jobs = repo.list_eligible_job_requests(job_statuses)
            ranked = compute_candidates(
                jobs, applicant, policy, limit=None if create else policy.preview_limit
            )
            result.matches = [Match(applicant, job, score) for job, score in ranked]

            if create:
                result.created = self._persist(session, result.matches)

            self.logger.info(
                "Matched applicant",
                applicant_id=applicant_id,
                policy=policy.name,
                matches=len(result.matches),
                created=len(result.created),
            )
            return result

    def match_for_job(
        self,
        job_request_id: int,
        policy: ScoringPolicy = BULK_POLICY,
        persist: bool = True,
    ) -> MatchResult:
        """
        Rank eligible applicants for one job request and persist new proposals.

        The applicant pool is the policy's applicant_statuses. With
        persist=False nothing is written and the policy's preview_limit
        applies.

        Raises:
            NotFoundError: Unknown job request
            DependencyError: Store failure
        """
        with self.session_factory() as session:
            repo = CandidateRepository(session)
            job_request = repo.get_job_request(job_request_id)
            if job_request is None:
                raise NotFoundError(f"Job request {job_request_id} not found")

            applicants = repo.list_eligible_applicants(policy.applicant_statuses)
            ranked = compute_candidates(
                applicants, job_request, policy, limit=None if persist else policy.preview_limit
            )

            result = MatchResult(target_id=job_request_id)
            result.matches = [Match(applicant, job_request, score) for applicant, score in ranked]

            if persist:
                result.created = self._persist(session, result.matches)

            self.logger.info(
                "Matched job request",
                job_request_id=job_request_id,
                policy=policy.name,
                matches=len(result.matches),
                created=len(result.created),
            )
            return result

    def match_all(
        self,
        policy: ScoringPolicy = BULK_POLICY,
        job_statuses: Optional[Sequence[str]] = (JOB_OPEN,),
        workers: int = 1,
        cancel_event: Optional[threading.Event] = None,
    ) -> BulkMatchResult:
        """
        Run match_for_job over every eligible job request.

        A failing job request is recorded in the result and the run moves
        on. Setting cancel_event stops the run before the next job request;
        proposals already committed are kept.

        Args:
            policy: Scoring policy for every job
            job_statuses: Job request statuses to include, None for all
            workers: Parallel workers, 1 runs sequentially
            cancel_event: Optional event checked between job requests

        Returns:
            BulkMatchResult with created / processed counts and failures
        """
        with self.session_factory() as session:
            job_ids = [job.id for job in CandidateRepository(session).list_eligible_job_requests(job_statuses)]

        self.logger.info("Bulk matching started", policy=policy.name, job_requests=len(job_ids), workers=workers)
        result = BulkMatchResult()

        if workers <= 1:
            for job_id in job_ids:
                outcome = self._match_job_isolated(job_id, policy, cancel_event)
                if outcome is None:
                    result.cancelled = True
                    break
                self._fold(result, outcome)
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(self._match_job_isolated, job_id, policy, cancel_event)
                    for job_id in job_ids
                ]
                # Fold in submission order so failures are reported in job order.
                for future in futures:
                    outcome = future.result()
                    if outcome is None:
                        result.cancelled = True
                        continue
                    self._fold(result, outcome)

        self.logger.info(
            f"Bulk matching completed. Created {result.created} auto-applications "
            f"for {result.processed} job requests.",
            failed=result.failed_job_ids,
            cancelled=result.cancelled,
        )
        self.logger.log_metrics_summary()
        return result

    def _match_job_isolated(
        self, job_request_id: int, policy: ScoringPolicy, cancel_event: Optional[threading.Event]
    ) -> Optional[Tuple[int, int, Optional[Exception]]]:
        if cancel_event is not None and cancel_event.is_set():
            return None
        try:
            outcome = self.match_for_job(job_request_id, policy)
        except Exception as e:
            return (job_request_id, 0, e)
        return (job_request_id, len(outcome.created), None)

    def _fold(self, result: BulkMatchResult, outcome: Tuple[int, int, Optional[Exception]]) -> None:
        job_request_id, created, error = outcome
        result.processed += 1
        self.logger.record_job_attempt()

        if error is None:
            result.created += created
            self.logger.record_job_success(created)
            return

        result.failures.append((job_request_id, error))
        self.logger.record_job_failure(type(error).__name__)
        self.logger.error(
            f"Error processing job request {job_request_id}: {error}",
            job_request_id=job_request_id,
            error_type=type(error).__name__,
        )

    def _persist(self, session, matches: List[Match]) -> List[AutoApplication]:
        """Upsert every match and commit; returns only the records this call created."""
        ledger = AutoApplicationLedger(session)
        created = []
        try:
            for match in matches:
                record, was_created = ledger.upsert_if_absent(
                    match.applicant.id, match.job_request.id, match.score
                )
                if was_created:
                    created.append(record)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise DependencyError(f"Could not persist auto-applications: {e}") from e
        except Exception:
            session.rollback()
            raise
        return created
