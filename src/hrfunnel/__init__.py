"""Job screening funnel: quiz-gated applications and recruiter dashboards."""

__version__ = "0.1.0"
