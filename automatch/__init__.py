"""Applicant / job-request matching and auto-application engine."""

__version__ = "0.1.0"
