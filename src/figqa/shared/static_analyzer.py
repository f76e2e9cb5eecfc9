"""Lexical analysis of generated test code, standing in for a real test run.

Nothing is executed. Test declarations and selector literals are pulled out
with regexes, selectors are checked against the application source by
substring containment, and a pass/fail split is simulated from a fixed
ratio. The summary is always marked ``simulated``.
"""

from __future__ import annotations

import logging
import re

from figqa.schemas.results import FailureDetail, TestResult, TestRunSummary

logger = logging.getLogger(__name__)

PASS_RATIO = 0.8

GENERIC_ERRORS = [
    "Assertion failed: Expected element to be visible",
    "Timed out waiting for element",
    "Assertion failed: Text content does not match expected value",
    "Navigation failed: timeout exceeded",
]

# it('name', ...), test("name", ...), specify(`name`, ...), plus .only/.skip
_JS_TEST = re.compile(r"\b(?:it|test|specify)(?:\.only|\.skip)?\s*\(\s*(['\"`])(.+?)\1\s*,", re.DOTALL)
_PY_TEST = re.compile(r"^[ \t]*(?:async[ \t]+)?def[ \t]+(test_\w+)[ \t]*\(", re.MULTILINE)

_SELECTOR_CALL = re.compile(
    r"(?:\bcy\.get|\bpage\.locator|\bpage\.click|\bpage\.fill|\bpage\.waitForSelector"
    r"|\bquerySelector(?:All)?|(?<![\w.$])\$\$?)"
    r"\s*\(\s*(['\"`])(.+?)\1"
)
_BY_CALL = re.compile(r"\bBy\.(css|cssSelector|id|className|CSS_SELECTOR|ID|CLASS_NAME)\s*(?:\(\s*|,\s*)(['\"`])(.+?)\2")

_ID_TOKEN = re.compile(r"#([A-Za-z_][\w-]*)")
_CLASS_TOKEN = re.compile(r"\.([A-Za-z_][\w-]*)")
_ATTR_VALUE = re.compile(r"\[[^\]=]+[~|^$*]?=\s*['\"]?([^'\"\]]+)['\"]?\s*\]")
_TAG = re.compile(r"^\s*([A-Za-z][\w-]*)")


def detect_framework(source: str) -> str:
    if "cy." in source:
        return "cypress"
    if "@playwright/test" in source or "page.goto" in source or "page.locator" in source:
        return "playwright"
    if "selenium" in source or "webdriver" in source or "By." in source:
        return "selenium"
    if _PY_TEST.search(source):
        return "pytest"
    return "unknown"


def extract_selectors(source: str) -> list[str]:
    """Selector literals referenced in ``source``, in order, without duplicates."""
    found: list[tuple[int, str]] = [(m.start(), m.group(2).strip()) for m in _SELECTOR_CALL.finditer(source)]
    for m in _BY_CALL.finditer(source):
        kind, value = m.group(1).lower(), m.group(3).strip()
        if kind == "id":
            value = f"#{value}"
        elif kind in ("classname", "class_name"):
            value = f".{value}"
        found.append((m.start(), value))

    ordered: list[str] = []
    for _, selector in sorted(found):
        if selector and selector not in ordered:
            ordered.append(selector)
    return ordered


def selector_tokens(selector: str) -> list[str]:
    """The identifiers a selector needs the application to define.

    ``#id`` and ``.class`` names and attribute values; a bare tag selector
    contributes its tag name.
    """
    tokens = _ID_TOKEN.findall(selector) + _CLASS_TOKEN.findall(selector) + _ATTR_VALUE.findall(selector)
    if not tokens and (m := _TAG.match(selector)):
        tokens.append(m.group(1))
    return [t.strip() for t in tokens if t.strip()]


def is_missing(selector: str, application_source: str) -> bool:
    return any(token not in application_source for token in selector_tokens(selector))


def _declarations(source: str) -> list[tuple[int, int, str]]:
    """(start, end-of-header, name) for every test declaration, in source order."""
    found = [(m.start(), m.end(), m.group(2).strip()) for m in _JS_TEST.finditer(source)]
    found += [(m.start(), m.end(), m.group(1)) for m in _PY_TEST.finditer(source)]
    return sorted(found)


def recommendation_for(error: str, test_name: str) -> str:
    """Suggested fix for a simulated failure, keyed on the kind of error."""
    if "Element not found" in error:
        selector = error.split(": ", 1)[1] if ": " in error else ""
        return (
            f"Check if the selector '{selector}' exists in the HTML. "
            "The element might be missing or have a different ID/class."
        )
    if "Assertion failed" in error:
        return f"Verify expected behavior for the '{test_name}' test. The condition being tested is not being met."
    if "Timed out" in error or "timeout" in error:
        return (
            "Check if the tested functionality has proper loading states or if there are "
            f"performance issues causing timeout in '{test_name}'."
        )
    return (
        f"Investigate the error in '{test_name}' by reviewing both the test implementation "
        "and application code."
    )


def analyze(test_source: str, application_source: str, framework: str | None = None) -> TestRunSummary:
    """Simulate a run of ``test_source`` against ``application_source``.

    Never raises on malformed input. With no detectable tests a single
    placeholder test is assumed so rates are always defined.
    """
    test_source = test_source or ""
    application_source = application_source or ""
    framework = framework or detect_framework(test_source)

    decls = _declarations(test_source)
    if decls:
        names = [name for _, _, name in decls]
        bodies = [test_source[end:nxt] for (_, end, _), nxt in zip(decls, [d[0] for d in decls[1:]] + [len(test_source)])]
    else:
        names, bodies = ["Generated test suite"], [test_source]

    missing = [s for s in extract_selectors(test_source) if is_missing(s, application_source)]
    per_test_missing = [[s for s in extract_selectors(body) if s in missing] for body in bodies]

    total = len(names)
    passed = min(total, int(total * PASS_RATIO + 0.5))
    failed = total - passed

    # Failures land on tests with missing selectors first, then on the last tests.
    failing = [i for i in range(total) if per_test_missing[i]][:failed]
    for i in reversed(range(total)):
        if len(failing) >= failed:
            break
        if i not in failing:
            failing.append(i)

    tests: list[TestResult] = []
    details: list[FailureDetail] = []
    generic = 0
    for i, name in enumerate(names):
        test_id = f"T-{i + 1:03d}"
        selectors = extract_selectors(bodies[i])
        if i not in failing:
            tests.append(TestResult(id=test_id, name=name, status="passed", selectors=selectors))
            continue
        if per_test_missing[i]:
            error = f"Element not found: {per_test_missing[i][0]}"
        else:
            error = GENERIC_ERRORS[generic % len(GENERIC_ERRORS)]
            generic += 1
        tests.append(TestResult(id=test_id, name=name, status="failed", error=error, selectors=selectors))
        details.append(
            FailureDetail(test_id=test_id, test_name=name, error=error, recommendation=recommendation_for(error, name))
        )

    logger.info(
        "Static analysis (%s): %d tests, %d passed, %d failed, %d missing selectors",
        framework, total, passed, failed, len(missing),
    )
    return TestRunSummary(
        framework=framework,
        total=total,
        passed=passed,
        failed=failed,
        tests=tests,
        missing_selectors=missing,
        failure_details=details,
    )
