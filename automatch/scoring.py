"""
Compatibility scoring between an applicant and a job request.

Scores are additive: every criterion is an independent signal with a fixed
weight, so a score can always be explained criterion by criterion. Two
policies exist and are used from different call paths; callers pick one
explicitly and the two are never mixed within a run.

Scoring functions are pure and total. A missing optional field contributes
zero to its criterion instead of raising.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .errors import ValidationError

MAX_SCORE = 100

PRIMARY = "primary"
BULK = "bulk"


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _years(value) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _has_gender_filter(job_request) -> bool:
    gender = _text(job_request.gender)
    return gender != "" and gender.lower() != "any"


def score_primary(applicant, job_request) -> int:
    """Interactive matching: category, experience, gender, readiness."""
    score = 0

    category = _text(applicant.category)
    if category and category.lower() == _text(job_request.category).lower():
        score += 40

    years = _years(applicant.years_of_experience)
    required = _years(job_request.required_experience)
    if applicant.years_of_experience is not None:
        if years >= required:
            score += 30
        elif years >= required - 1:
            score += 15

    if not _has_gender_filter(job_request):
        score += 10
    elif _text(applicant.gender) == _text(job_request.gender):
        score += 10

    if applicant.training_completed:
        score += 10
    if applicant.medical_clearance:
        score += 10

    return max(0, min(MAX_SCORE, score))


def score_bulk(applicant, job_request) -> int:
    """Bulk auto-matching: category, nationality, experience, passport."""
    score = 0

    category = _text(applicant.category)
    if category and category == _text(job_request.category):
        score += 25

    nationality = _text(applicant.nationality)
    if nationality and nationality == _text(job_request.country):
        score += 25

    # No partial credit for being short on experience here.
    if applicant.years_of_experience is not None:
        if _years(applicant.years_of_experience) >= _years(job_request.required_experience):
            score += 20

    if _text(applicant.passport_number):
        score += 15

    return score


@dataclass(frozen=True)
class ScoringPolicy:
    """
    A named scoring strategy and the matching context it is used in.

    Attributes:
        name: Registry key
        scorer: (applicant, job_request) -> int in [0, 100]
        threshold: Minimum score a pair needs to count as a match
        applicant_statuses: Applicant statuses forming the eligible pool
        preview_limit: Cap on preview results, None for no cap
    """

    name: str
    scorer: Callable
    threshold: int
    applicant_statuses: Tuple[str, ...]
    preview_limit: Optional[int] = None

    def score(self, applicant, job_request) -> int:
        return self.scorer(applicant, job_request)


PRIMARY_POLICY = ScoringPolicy(
    name=PRIMARY,
    scorer=score_primary,
    threshold=50,
    applicant_statuses=("ready", "shortlisted", "selected"),
    preview_limit=20,
)

BULK_POLICY = ScoringPolicy(
    name=BULK,
    scorer=score_bulk,
    threshold=60,
    applicant_statuses=("new", "ready"),
)

POLICIES: Dict[str, ScoringPolicy] = {
    PRIMARY: PRIMARY_POLICY,
    BULK: BULK_POLICY,
}


def get_policy(name: str) -> ScoringPolicy:
    """Look up a registered policy by name."""
    try:
        return POLICIES[name]
    except KeyError:
        raise ValidationError(
            f"Unknown scoring policy: {name!r}",
            [f"Field 'policy' must be one of: {', '.join(sorted(POLICIES))}"],
        )
