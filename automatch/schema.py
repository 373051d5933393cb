"""
Input structs for the inbound triggers, validated at the boundary.

validate_* functions return a list of error messages; an empty list means
valid. from_dict constructors raise ValidationError carrying that list.
Nothing below this layer re-validates its arguments.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .database import APPLICANT_STATUSES, JOB_CLOSED, JOB_OPEN
from .errors import ValidationError
from .scoring import BULK, POLICIES, PRIMARY

ACTIONS = ("submit", "decline")
MAX_NOTES_LENGTH = 2000


def _is_positive_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool) and v > 0


def _check_id(data: Dict[str, Any], field: str, errors: List[str]) -> None:
    if field not in data or data[field] in (None, ""):
        errors.append(f"Missing required field: {field}")
    elif not _is_positive_int(data[field]):
        errors.append(f"Field '{field}' must be a positive integer")


def _check_policy(data: Dict[str, Any], errors: List[str]) -> None:
    if "policy" in data and data["policy"] not in POLICIES:
        errors.append(f"Field 'policy' must be one of: {', '.join(sorted(POLICIES))}")


def _check_bool(data: Dict[str, Any], field: str, errors: List[str]) -> None:
    if field in data and not isinstance(data[field], bool):
        errors.append(f"Field '{field}' must be a boolean if provided")


def _raise_if(errors: List[str], what: str) -> None:
    if errors:
        raise ValidationError(f"Invalid {what}: {'; '.join(errors)}", errors)


def validate_match_applicant(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    _check_id(data, "applicant_id", errors)
    _check_policy(data, errors)
    _check_bool(data, "create", errors)
    return errors


def validate_match_job(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    _check_id(data, "job_request_id", errors)
    _check_policy(data, errors)
    _check_bool(data, "persist", errors)
    return errors


def validate_bulk_match(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    _check_policy(data, errors)
    if "workers" in data and not _is_positive_int(data["workers"]):
        errors.append("Field 'workers' must be a positive integer")
    return errors


def validate_proposal_action(data: Dict[str, Any]) -> List[str]:
    """Check an action on an auto-application: id, action and optional notes."""
    errors: List[str] = []
    _check_id(data, "auto_application_id", errors)

    action = data.get("action")
    if action not in ACTIONS:
        errors.append('Invalid action. Must be "submit" or "decline"')

    notes = data.get("notes")
    if notes is not None:
        if not isinstance(notes, str):
            errors.append("Field 'notes' must be a string if provided")
        elif len(notes) > MAX_NOTES_LENGTH:
            errors.append(f"Field 'notes' length must be at most {MAX_NOTES_LENGTH}")
    return errors


@dataclass(frozen=True)
class MatchApplicantRequest:
    applicant_id: int
    policy: str = PRIMARY
    create: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchApplicantRequest":
        _raise_if(validate_match_applicant(data), "applicant match request")
        return cls(
            applicant_id=data["applicant_id"],
            policy=data.get("policy", PRIMARY),
            create=data.get("create", False),
        )


@dataclass(frozen=True)
class MatchJobRequest:
    job_request_id: int
    policy: str = BULK
    persist: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchJobRequest":
        _raise_if(validate_match_job(data), "job match request")
        return cls(
            job_request_id=data["job_request_id"],
            policy=data.get("policy", BULK),
            persist=data.get("persist", True),
        )


@dataclass(frozen=True)
class BulkMatchRequest:
    policy: str = BULK
    workers: int = 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BulkMatchRequest":
        _raise_if(validate_bulk_match(data), "bulk match request")
        return cls(policy=data.get("policy", BULK), workers=data.get("workers", 1))


@dataclass(frozen=True)
class ProposalAction:
    auto_application_id: int
    action: str
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProposalAction":
        _raise_if(validate_proposal_action(data), "proposal action")
        return cls(
            auto_application_id=data["auto_application_id"],
            action=data["action"],
            notes=data.get("notes") or None,
        )


def validate_applicant_record(data: Dict[str, Any]) -> List[str]:
    """Check an applicant row before import."""
    errors: List[str] = []
    category = data.get("category")
    if not isinstance(category, str) or not category.strip():
        errors.append("Field 'category' must be a non-empty string")
    years = data.get("years_of_experience", 0)
    if not isinstance(years, int) or isinstance(years, bool) or years < 0:
        errors.append("Field 'years_of_experience' must be a non-negative integer")
    for f in ("nationality", "gender", "passport_number", "email", "status"):
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")
    for f in ("training_completed", "medical_clearance", "auto_match_enabled"):
        _check_bool(data, f, errors)
    if isinstance(data.get("status"), str) and data["status"] not in APPLICANT_STATUSES:
        errors.append(f"Field 'status' must be one of: {', '.join(APPLICANT_STATUSES)}")
    return errors


def validate_job_request_record(data: Dict[str, Any]) -> List[str]:
    """Check a job request row before import."""
    errors: List[str] = []
    for f in ("category", "country"):
        v = data.get(f)
        if not isinstance(v, str) or not v.strip():
            errors.append(f"Field '{f}' must be a non-empty string")
    required = data.get("required_experience", 0)
    if not isinstance(required, int) or isinstance(required, bool) or required < 0:
        errors.append("Field 'required_experience' must be a non-negative integer")
    age_min, age_max = data.get("age_min"), data.get("age_max")
    for f, v in (("age_min", age_min), ("age_max", age_max)):
        if v is not None and not _is_positive_int(v):
            errors.append(f"Field '{f}' must be a positive integer if provided")
    if _is_positive_int(age_min) and _is_positive_int(age_max) and age_min > age_max:
        errors.append("Field 'age_min' must not exceed 'age_max'")
    if data.get("status", JOB_OPEN) not in (JOB_OPEN, JOB_CLOSED):
        errors.append("Field 'status' must be 'open' or 'closed'")
    return errors
