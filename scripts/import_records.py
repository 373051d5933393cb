#!/usr/bin/env python3
"""
Import applicants and job requests from a JSON file into the matching database.

Input shape:
    {"applicants": [{...}, ...], "job_requests": [{...}, ...]}

Usage:
    python scripts/import_records.py --json data/records.json --db data/automatch.db
"""

import argparse
import json
import sys
from datetime import date
from pathlib import Path

from automatch.database import Applicant, JobRequest, get_session, init_database
from automatch.schema import validate_applicant_record, validate_job_request_record

APPLICANT_FIELDS = {
    "id", "first_name", "last_name", "email", "category", "nationality",
    "years_of_experience", "gender", "date_of_birth", "passport_number",
    "training_completed", "medical_clearance", "status", "auto_match_enabled",
}
JOB_REQUEST_FIELDS = {
    "id", "employer_id", "category", "country", "required_experience",
    "gender", "age_min", "age_max", "status",
}


def parse_date(value):
    """Parse an ISO date string; anything unparseable becomes None."""
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except (ValueError, TypeError):
        return None


def _load_rows(session, rows, model, fields, validate, label):
    imported = skipped = 0
    for i, row in enumerate(rows, 1):
        errors = validate(row)
        if errors:
            print(f"⚠️  Skipping {label} #{i}: {'; '.join(errors)}")
            skipped += 1
            continue
        values = {k: v for k, v in row.items() if k in fields}
        if "date_of_birth" in values:
            values["date_of_birth"] = parse_date(values["date_of_birth"])
        if values.get("id") is not None and session.get(model, values["id"]) is not None:
            print(f"⚠️  {label} {values['id']} already exists, skipping")
            skipped += 1
            continue
        session.add(model(**values))
        imported += 1
    return imported, skipped


def import_records(json_path: Path, db_path: Path, dry_run: bool = False) -> bool:
    """
    Import records from JSON into the database.

    Args:
        json_path: Path to JSON file
        db_path: Path to SQLite database file
        dry_run: If True, validate only
    """
    print(f"Loading records from {json_path}...")
    with open(json_path, encoding="utf-8") as f:
        data = json.load(f)

    applicants = data.get("applicants", [])
    job_requests = data.get("job_requests", [])
    print(f"Found {len(applicants)} applicants and {len(job_requests)} job requests")

    if dry_run:
        bad = sum(1 for row in applicants if validate_applicant_record(row))
        bad += sum(1 for row in job_requests if validate_job_request_record(row))
        print(f"\n[DRY RUN] {bad} rows would be skipped as invalid")
        return True

    init_database(db_path)
    session = get_session(db_path)
    try:
        a_in, a_skip = _load_rows(
            session, applicants, Applicant, APPLICANT_FIELDS, validate_applicant_record, "applicant"
        )
        j_in, j_skip = _load_rows(
            session, job_requests, JobRequest, JOB_REQUEST_FIELDS, validate_job_request_record, "job request"
        )
        session.commit()
        print("\n✅ Import complete!")
        print(f"   Applicants:   {a_in} imported, {a_skip} skipped")
        print(f"   Job requests: {j_in} imported, {j_skip} skipped")
    except Exception as e:
        session.rollback()
        print(f"❌ Failed to commit: {e}")
        return False
    finally:
        session.close()

    return True


def main():
    parser = argparse.ArgumentParser(description="Import applicants and job requests from JSON")
    parser.add_argument("--json", type=Path, required=True, help="Path to JSON records file")
    parser.add_argument("--db", type=Path, default=Path("data/automatch.db"),
                        help="Path to SQLite database file")
    parser.add_argument("--dry-run", action="store_true",
                        help="Validate without writing")

    args = parser.parse_args()

    if not args.json.exists():
        print(f"❌ JSON file not found: {args.json}")
        sys.exit(1)

    if not import_records(args.json, args.db, dry_run=args.dry_run):
        sys.exit(1)


if __name__ == "__main__":
    main()
