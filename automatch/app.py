import argparse
import signal
import threading
from pathlib import Path

from . import __version__
from .config import Settings
from .database import get_session_factory, init_database
from .env import load_env
from .errors import AutomatchError, ValidationError
from .ledger import AutoApplicationLedger, ShortlistBook
from .logger import get_logger
from .matcher import Matcher
from .reconciler import ProposalReconciler
from .schema import BulkMatchRequest, MatchApplicantRequest, MatchJobRequest, ProposalAction
from .scoring import POLICIES, get_policy


def _db_path(args: argparse.Namespace, settings: Settings) -> Path:
    return Path(args.db) if args.db else settings.db_path


def _factory(args: argparse.Namespace, settings: Settings):
    db_path = _db_path(args, settings)
    if not db_path.exists():
        raise SystemExit(f"Database not found: {db_path}. Run 'automatch init-db' first.")
    return get_session_factory(db_path, settings.store_timeout)


def _print_match(match) -> None:
    a = match.applicant
    j = match.job_request
    print(
        f"  [{match.score:3d}] applicant {a.id} ({a.category}, {a.nationality}, "
        f"{a.years_of_experience}y) <-> job {j.id} ({j.category}, {j.country})"
    )


def _print_proposal(record) -> None:
    print(
        f"  #{record.id} applicant {record.applicant_id} -> job {record.job_request_id} "
        f"score={record.match_score} status={record.status} created={record.created_at:%Y-%m-%d %H:%M}"
    )


def cmd_init_db(args: argparse.Namespace, settings: Settings) -> None:
    db_path = _db_path(args, settings)
    init_database(db_path, settings.store_timeout)
    print(f"Database ready: {db_path}")


def cmd_match_applicant(args: argparse.Namespace, settings: Settings) -> None:
    req = MatchApplicantRequest.from_dict(
        {"applicant_id": args.applicant_id, "policy": args.policy, "create": args.create}
    )
    matcher = Matcher(_factory(args, settings))
    result = matcher.match_for_applicant(
        req.applicant_id,
        get_policy(req.policy),
        create=req.create,
        job_statuses=args.job_status or None,
    )
    print(f"Found {len(result.matches)} matching job requests")
    for match in result.matches:
        _print_match(match)
    if req.create:
        print(f"Created {len(result.created)} auto-applications for applicant")


def cmd_match_job(args: argparse.Namespace, settings: Settings) -> None:
    req = MatchJobRequest.from_dict(
        {"job_request_id": args.job_id, "policy": args.policy, "persist": not args.preview}
    )
    matcher = Matcher(_factory(args, settings))
    result = matcher.match_for_job(req.job_request_id, get_policy(req.policy), persist=req.persist)
    print(f"Found {len(result.matches)} matching applicants")
    for match in result.matches:
        _print_match(match)
    if req.persist:
        print(f"Created {len(result.created)} auto-applications")


def cmd_match_all(args: argparse.Namespace, settings: Settings) -> None:
    req = BulkMatchRequest.from_dict(
        {"policy": args.policy, "workers": args.workers or settings.bulk_workers}
    )
    matcher = Matcher(_factory(args, settings))

    # Ctrl-C stops the run at the next job boundary instead of mid-job.
    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())
    try:
        result = matcher.match_all(get_policy(req.policy), workers=req.workers, cancel_event=cancel)
    finally:
        signal.signal(signal.SIGINT, previous)

    print(
        f"Bulk auto-matching completed. Created {result.created} auto-applications "
        f"for {result.processed} job requests."
    )
    print(f"Succeeded: {result.succeeded}  Failed: {len(result.failures)}")
    for job_id, error in result.failures:
        print(f"  [error] job {job_id}: {type(error).__name__}: {error}")
    if result.cancelled:
        print("Cancelled before all job requests were processed.")


def _cmd_action(action: str):
    def run(args: argparse.Namespace, settings: Settings) -> None:
        req = ProposalAction.from_dict(
            {"auto_application_id": args.id, "action": action, "notes": args.notes}
        )
        reconciler = ProposalReconciler(_factory(args, settings))
        if req.action == "submit":
            record = reconciler.submit(req.auto_application_id, req.notes)
            print("Application submitted successfully")
        else:
            record = reconciler.decline(req.auto_application_id, req.notes)
            print("Application declined")
        _print_proposal(record)
    return run


def cmd_pending(args: argparse.Namespace, settings: Settings) -> None:
    with _factory(args, settings)() as session:
        records = AutoApplicationLedger(session).list_pending_for_applicant(args.applicant_id)
    if not records:
        print("No pending auto-applications.")
        return
    print(f"{len(records)} pending auto-applications:")
    for record in records:
        _print_proposal(record)


def cmd_proposals(args: argparse.Namespace, settings: Settings) -> None:
    with _factory(args, settings)() as session:
        records = AutoApplicationLedger(session).list_all(args.applicant_id, args.status)
    if not records:
        print("No auto-applications.")
        return
    print(f"{len(records)} auto-applications:")
    for record in records:
        _print_proposal(record)


def cmd_shortlists(args: argparse.Namespace, settings: Settings) -> None:
    with _factory(args, settings)() as session:
        entries = ShortlistBook(session).list(args.status)
    if not entries:
        print("No shortlist entries.")
        return
    print(f"{len(entries)} shortlist entries:")
    for entry in entries:
        print(
            f"  #{entry.id} job {entry.job_request_id} <- applicant {entry.applicant_id} "
            f"status={entry.status} notes={entry.notes!r}"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="automatch", description="Applicant / job-request auto-matching")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", help="Path to SQLite database (default: $AUTOMATCH_DB_PATH or data/automatch.db)")

    subparsers = parser.add_subparsers(dest="command")
    init = subparsers.add_parser("init-db", help="Create the database and tables")
    init.set_defaults(func=cmd_init_db)

    policies = sorted(POLICIES)

    mapp = subparsers.add_parser("match-applicant", help="Match one applicant against job requests")
    mapp.add_argument("--applicant-id", type=int, required=True, help="Applicant id")
    mapp.add_argument("--policy", default="primary", choices=policies, help="Scoring policy (default: primary)")
    mapp.add_argument("--create", action="store_true", help="Persist auto-applications instead of previewing")
    mapp.add_argument("--job-status", action="append", help="Restrict job requests to this status (repeatable)")
    mapp.set_defaults(func=cmd_match_applicant)

    mjob = subparsers.add_parser("match-job", help="Match one job request against applicants and persist proposals")
    mjob.add_argument("--job-id", type=int, required=True, help="Job request id")
    mjob.add_argument("--policy", default="bulk", choices=policies, help="Scoring policy (default: bulk)")
    mjob.add_argument("--preview", action="store_true", help="Rank only, do not persist")
    mjob.set_defaults(func=cmd_match_job)

    mall = subparsers.add_parser("match-all", help="Run bulk matching across all open job requests")
    mall.add_argument("--policy", default="bulk", choices=policies, help="Scoring policy (default: bulk)")
    mall.add_argument("--workers", type=int, help="Parallel workers (default: $AUTOMATCH_BULK_WORKERS or 1)")
    mall.set_defaults(func=cmd_match_all)

    for action in ("submit", "decline"):
        act = subparsers.add_parser(action, help=f"{action.capitalize()} a pending auto-application")
        act.add_argument("--id", type=int, required=True, help="Auto-application id")
        act.add_argument("--notes", help="Optional reviewer notes")
        act.set_defaults(func=_cmd_action(action))

    pend = subparsers.add_parser("pending", help="List an applicant's pending auto-applications, best first")
    pend.add_argument("--applicant-id", type=int, required=True, help="Applicant id")
    pend.set_defaults(func=cmd_pending)

    prop = subparsers.add_parser("proposals", help="List auto-applications, newest first")
    prop.add_argument("--applicant-id", type=int, help="Only this applicant")
    prop.add_argument("--status", choices=["pending", "submitted", "declined"], help="Only this status")
    prop.set_defaults(func=cmd_proposals)

    short = subparsers.add_parser("shortlists", help="List shortlist entries, most recently updated first")
    short.add_argument("--status", help="Only this status")
    short.set_defaults(func=cmd_shortlists)

    return parser


def main(argv=None):
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        settings = Settings.from_env()
        get_logger(level=settings.log_level, log_dir=settings.log_dir)
        args.func(args, settings)
    except ValidationError as e:
        print("Invalid:")
        for err in e.errors or [str(e)]:
            print(f" - {err}")
        raise SystemExit(2)
    except AutomatchError as e:
        raise SystemExit(f"{type(e).__name__}: {e}")


if __name__ == "__main__":
    main()
