"""Pydantic models for the simulated test-run summary."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class TestResult(BaseModel):
    """Outcome of one detected test."""

    __test__ = False

    id: str
    name: str
    status: str  # "passed" | "failed"
    error: str | None = None
    selectors: list[str] = []


class FailureDetail(BaseModel):
    test_id: str
    test_name: str
    error: str
    recommendation: str = ""


class Certification(BaseModel):
    """Deployment readiness verdict derived from the pass rate."""

    status: str  # certified | conditionally-certified | needs-improvement | not-certified
    message: str


class TestRunSummary(BaseModel):
    """Result of statically analysing generated test code.

    Nothing was executed: ``simulated`` is always True so this is never
    mistaken for the output of a real test runner.
    """

    __test__ = False

    simulated: bool = True
    framework: str = "unknown"
    generated_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    total: int
    passed: int
    failed: int
    skipped: int = 0
    tests: list[TestResult] = []
    missing_selectors: list[str] = []
    failure_details: list[FailureDetail] = []

    @property
    def pass_rate(self) -> float:
        return self.passed / self.total if self.total else 0.0

    def certification(self) -> Certification:
        rate = self.pass_rate
        if rate == 1:
            return Certification(status="certified", message="Ready for deployment!")
        if rate >= 0.9:
            return Certification(
                status="conditionally-certified",
                message="Ready for limited deployment with minor fixes",
            )
        if rate >= 0.7:
            return Certification(status="needs-improvement", message="Needs fixes before deploying")
        return Certification(status="not-certified", message="Significant issues must be addressed")
