"""Tests for the static test analyzer."""

from __future__ import annotations

import pytest

from figqa.schemas.results import TestRunSummary
from figqa.shared.llm_client import _DRY_RUN_APP, _DRY_RUN_TESTS
from figqa.shared.static_analyzer import (
    GENERIC_ERRORS,
    analyze,
    detect_framework,
    extract_selectors,
    is_missing,
    recommendation_for,
    selector_tokens,
)


class TestAnalyze:
    def test_sample_suite(self) -> None:
        summary = analyze(_DRY_RUN_TESTS, _DRY_RUN_APP)

        assert summary.simulated is True
        assert summary.framework == "cypress"
        assert (summary.total, summary.passed, summary.failed) == (5, 4, 1)
        assert summary.missing_selectors == [".error-banner"]

        failed = [t for t in summary.tests if t.status == "failed"]
        assert [t.name for t in failed] == ["rejects an empty form"]
        assert failed[0].error == "Element not found: .error-banner"
        assert summary.failure_details[0].test_id == failed[0].id
        assert "'.error-banner'" in summary.failure_details[0].recommendation

    def test_ids_are_sequential(self) -> None:
        summary = analyze(_DRY_RUN_TESTS, _DRY_RUN_APP)
        assert [t.id for t in summary.tests] == ["T-001", "T-002", "T-003", "T-004", "T-005"]

    @pytest.mark.parametrize("source", ["", "// nothing to see", None])
    def test_no_tests_assumes_one(self, source) -> None:
        summary = analyze(source, "")
        assert summary.total == 1
        assert summary.tests[0].name == "Generated test suite"
        assert summary.passed + summary.failed == 1

    def test_counts_always_add_up(self) -> None:
        source = "\n".join(f"it('case {i}', () => {{}});" for i in range(7))
        summary = analyze(source, "")
        assert summary.total == 7
        assert summary.passed == 6
        assert summary.passed + summary.failed + summary.skipped == summary.total

    def test_generic_errors_rotate_over_last_tests(self) -> None:
        source = "\n".join(f"test('case {i}', async () => {{}});" for i in range(10))
        summary = analyze(source, "")

        assert summary.failed == 2
        failed = [t for t in summary.tests if t.status == "failed"]
        assert [t.name for t in failed] == ["case 8", "case 9"]
        assert [t.error for t in failed] == GENERIC_ERRORS[:2]

    def test_pytest_sources(self) -> None:
        source = "def test_a():\n    assert True\n\n\nasync def test_b(page):\n    pass\n"
        summary = analyze(source, "")
        assert summary.framework == "pytest"
        assert [t.name for t in summary.tests] == ["test_a", "test_b"]

    def test_explicit_framework_wins(self) -> None:
        assert analyze("it('x', () => {});", "", framework="playwright").framework == "playwright"


class TestSelectors:
    def test_extract_in_order_without_duplicates(self) -> None:
        source = "cy.get('#a'); page.locator(\".b\"); cy.get('#a'); document.querySelector(`[name='q']`)"
        assert extract_selectors(source) == ["#a", ".b", "[name='q']"]

    def test_selenium_locators(self) -> None:
        source = (
            'driver.find_element(By.ID, "submit")\n'
            'driver.findElement(By.cssSelector(".card > h2"))\n'
            'driver.findElement(By.className("banner"))\n'
        )
        assert extract_selectors(source) == ["#submit", ".card > h2", ".banner"]

    @pytest.mark.parametrize(
        "selector, tokens",
        [
            ("#email", ["email"]),
            ("form.login-form > .login-button", ["login-form", "login-button"]),
            ("button[data-test='save']", ["save"]),
            ("button", ["button"]),
        ],
    )
    def test_selector_tokens(self, selector: str, tokens: list[str]) -> None:
        assert selector_tokens(selector) == tokens

    def test_is_missing(self) -> None:
        app = '<input id="email" /><div className="card" />'
        assert not is_missing("#email", app)
        assert not is_missing(".card", app)
        assert is_missing("#email.hidden", app)


class TestDetectFramework:
    @pytest.mark.parametrize(
        "source, framework",
        [
            ("cy.visit('/')", "cypress"),
            ("import { test } from '@playwright/test';", "playwright"),
            ("from selenium import webdriver", "selenium"),
            ("def test_home():\n    pass", "pytest"),
            ("console.log('hi')", "unknown"),
        ],
    )
    def test_detect(self, source: str, framework: str) -> None:
        assert detect_framework(source) == framework


class TestRecommendations:
    @pytest.mark.parametrize(
        "error, fragment",
        [
            ("Element not found: #go", "'#go'"),
            ("Assertion failed: Expected element to be visible", "Verify expected behavior"),
            ("Timed out waiting for element", "loading states"),
            ("Navigation failed: timeout exceeded", "loading states"),
            ("Something odd", "Investigate the error"),
        ],
    )
    def test_keyed_on_error_kind(self, error: str, fragment: str) -> None:
        assert fragment in recommendation_for(error, "a test")


class TestCertification:
    @pytest.mark.parametrize(
        "passed, total, status",
        [
            (5, 5, "certified"),
            (9, 10, "conditionally-certified"),
            (4, 5, "needs-improvement"),
            (7, 10, "needs-improvement"),
            (1, 2, "not-certified"),
            (0, 0, "not-certified"),
        ],
    )
    def test_thresholds(self, passed: int, total: int, status: str) -> None:
        summary = TestRunSummary(total=total, passed=passed, failed=total - passed)
        assert summary.certification().status == status
