"""
Proposal Reconciler.

Moves a pending auto-application to submitted or declined:

    pending --submit--> submitted   (creates a Shortlist entry)
    pending --decline-> declined

Both target states are terminal. The transition is a single conditional
UPDATE on status = 'pending', so two racing actions on the same proposal
cannot both succeed.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from .database import DECLINED, PENDING, SUBMITTED, AutoApplication
from .errors import ConflictError, DependencyError, NotFoundError
from .ledger import ShortlistBook
from .logger import StructuredLogger, get_logger

DEFAULT_SUBMIT_NOTES = "Auto-submitted application"
DEFAULT_DECLINE_NOTES = "Application declined by applicant"
SHORTLIST_NOTES = "Auto-submitted application pending staff review"


class ProposalReconciler:
    """Applies staff and applicant decisions to auto-applications."""

    def __init__(self, session_factory, logger: Optional[StructuredLogger] = None):
        self.session_factory = session_factory
        self.logger = logger or get_logger()

    def submit(self, auto_application_id: int, notes: Optional[str] = None) -> AutoApplication:
        """
        Submit a pending auto-application and shortlist the applicant.

        An existing shortlist entry for the same pair is left as is.

        Raises:
            NotFoundError: Unknown auto-application
            ConflictError: Already submitted or declined
            DependencyError: Store failure
        """
        return self._transition(
            auto_application_id, SUBMITTED, "submitted_at", notes or DEFAULT_SUBMIT_NOTES
        )

    def decline(self, auto_application_id: int, notes: Optional[str] = None) -> AutoApplication:
        """
        Decline a pending auto-application.

        Raises:
            NotFoundError: Unknown auto-application
            ConflictError: Already submitted or declined
            DependencyError: Store failure
        """
        return self._transition(
            auto_application_id, DECLINED, "declined_at", notes or DEFAULT_DECLINE_NOTES
        )

    def _transition(
        self, auto_application_id: int, status: str, stamp_field: str, notes: str
    ) -> AutoApplication:
        with self.session_factory() as session:
            try:
                now = datetime.now()
                updated = (
                    session.query(AutoApplication)
                    .filter(
                        AutoApplication.id == auto_application_id,
                        AutoApplication.status == PENDING,
                    )
                    .update(
                        {
                            AutoApplication.status: status,
                            AutoApplication.notes: notes,
                            AutoApplication.reviewed_at: now,
                            getattr(AutoApplication, stamp_field): now,
                        },
                        synchronize_session=False,
                    )
                )

                if updated == 0:
                    existing = session.get(AutoApplication, auto_application_id)
                    current = existing.status if existing is not None else None
                    session.rollback()
                    if current is None:
                        raise NotFoundError(f"Auto-application {auto_application_id} not found")
                    raise ConflictError(
                        f"Auto-application {auto_application_id} has already been processed ({current})"
                    )

                record = session.get(AutoApplication, auto_application_id)
                if status == SUBMITTED:
                    _, shortlisted = ShortlistBook(session).add_if_absent(
                        record.job_request_id, record.applicant_id, SHORTLIST_NOTES
                    )
                    if not shortlisted:
                        self.logger.debug(
                            "Shortlist entry already exists",
                            job_request_id=record.job_request_id,
                            applicant_id=record.applicant_id,
                        )
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise DependencyError(f"Could not update auto-application: {e}") from e

        self.logger.record_transition(status)
        self.logger.info(
            f"Auto-application {status}",
            auto_application_id=auto_application_id,
            applicant_id=record.applicant_id,
            job_request_id=record.job_request_id,
        )
        return record
