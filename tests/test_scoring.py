"""
Tests for scoring.py - scoring policies and policy registry.
"""

import itertools

import pytest

from automatch.database import Applicant, JobRequest
from automatch.errors import ValidationError
from automatch.scoring import (
    BULK_POLICY,
    PRIMARY_POLICY,
    get_policy,
    score_bulk,
    score_primary,
)


class TestPrimaryPolicy:
    """Test the interactive scoring policy."""

    def test_full_match_scores_100(self, welder, welder_job):
        """Category, experience, gender, training and medical all count."""
        assert score_primary(welder, welder_job) == 100

    def test_one_year_short_gets_partial_experience(self, welder, welder_job):
        """One year short of the requirement earns 15 instead of 30."""
        welder.years_of_experience = 1
        assert score_primary(welder, welder_job) == 85

    def test_two_years_short_gets_no_experience(self, welder, welder_job):
        """More than one year short earns nothing for experience."""
        welder.years_of_experience = 0
        assert score_primary(welder, welder_job) == 70

    def test_no_gender_filter_always_counts(self, welder, welder_job):
        """A job without a gender filter gives the gender points to everyone."""
        welder_job.gender = None
        welder.gender = "F"
        assert score_primary(welder, welder_job) == 100

    def test_any_gender_is_no_filter(self, welder, welder_job):
        """'Any' is treated the same as no gender filter."""
        welder_job.gender = "Any"
        welder.gender = "F"
        assert score_primary(welder, welder_job) == 100

    def test_gender_mismatch(self, welder, welder_job):
        """A gender filter the applicant does not meet loses 10."""
        welder.gender = "F"
        assert score_primary(welder, welder_job) == 90

    def test_category_ignores_case(self, welder, welder_job):
        """Category comparison is case-insensitive for interactive matching."""
        welder_job.category = "welder"
        assert score_primary(welder, welder_job) == 100

    def test_readiness_flags(self, welder, welder_job):
        """Training and medical clearance are worth 10 each."""
        welder.training_completed = False
        welder.medical_clearance = False
        assert score_primary(welder, welder_job) == 80


class TestBulkPolicy:
    """Test the bulk auto-matching policy."""

    def test_welder_scenario(self, welder, welder_job):
        """Category, nationality and experience match, no passport."""
        assert score_bulk(welder, welder_job) == 70

    def test_no_partial_experience_credit(self, welder, welder_job):
        """One year short earns nothing under the bulk policy."""
        welder.years_of_experience = 1
        assert score_bulk(welder, welder_job) == 50

    def test_passport_adds_15(self, welder, welder_job):
        """A non-empty passport number is worth 15."""
        welder.passport_number = "A1234567"
        assert score_bulk(welder, welder_job) == 85

    def test_blank_passport_counts_as_missing(self, welder, welder_job):
        """Whitespace-only passport numbers do not count."""
        welder.passport_number = "   "
        assert score_bulk(welder, welder_job) == 70

    def test_category_is_exact(self, welder, welder_job):
        """Category comparison is exact for bulk matching."""
        welder_job.category = "welder"
        assert score_bulk(welder, welder_job) == 45

    def test_nationality_must_equal_country(self, welder, welder_job):
        """Nationality different from the job country loses 25."""
        welder.nationality = "UG"
        assert score_bulk(welder, welder_job) == 45


class TestScoreProperties:
    """Scores are deterministic, bounded and total."""

    def test_deterministic_and_bounded(self):
        """Every combination scores the same twice and stays in [0, 100]."""
        for (cat, nat, years, gender, flag, passport), (jcat, req, jgender) in itertools.product(
            itertools.product(
                ["Welder", "Nurse", ""], ["KE", "UG"], [0, 1, 5], ["M", "F", None], [True, False], [None, "P1"]
            ),
            itertools.product(["Welder", "Nurse"], [0, 2, 10], [None, "M", "F"]),
        ):
            applicant = Applicant(
                category=cat, nationality=nat, years_of_experience=years, gender=gender,
                training_completed=flag, medical_clearance=flag, passport_number=passport,
            )
            job = JobRequest(category=jcat, country="KE", required_experience=req, gender=jgender)
            for scorer in (score_primary, score_bulk):
                first = scorer(applicant, job)
                assert first == scorer(applicant, job)
                assert 0 <= first <= 100

    def test_missing_fields_score_zero_not_error(self):
        """An applicant with nothing filled in still gets a score."""
        applicant = Applicant()
        job = JobRequest(category="Welder", country="KE", required_experience=2, gender="M")
        assert score_primary(applicant, job) == 0
        assert score_bulk(applicant, job) == 0

    def test_missing_job_fields(self, welder):
        """A job request without requirements is matched on what it has."""
        job = JobRequest()
        assert score_primary(welder, job) == 60
        assert score_bulk(welder, job) == 20


class TestPolicyRegistry:
    """Test named policy lookup."""

    def test_policies_are_distinct(self):
        """Each policy carries its own threshold and applicant pool."""
        assert PRIMARY_POLICY.threshold == 50
        assert BULK_POLICY.threshold == 60
        assert PRIMARY_POLICY.applicant_statuses == ("ready", "shortlisted", "selected")
        assert BULK_POLICY.applicant_statuses == ("new", "ready")
        assert PRIMARY_POLICY.preview_limit == 20
        assert BULK_POLICY.preview_limit is None

    def test_get_policy(self):
        """Policies are found by name."""
        assert get_policy("primary") is PRIMARY_POLICY
        assert get_policy("bulk") is BULK_POLICY

    def test_unknown_policy(self):
        """An unknown policy name is a validation error."""
        with pytest.raises(ValidationError):
            get_policy("fuzzy")

    def test_policy_score_delegates(self, welder, welder_job):
        """ScoringPolicy.score uses its own scorer."""
        assert PRIMARY_POLICY.score(welder, welder_job) == 100
        assert BULK_POLICY.score(welder, welder_job) == 70
