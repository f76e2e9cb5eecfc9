"""Async text-generation client for the stage prompts.

Talks to any OpenAI-compatible chat-completions endpoint; the default is
Gemini's compatibility endpoint. Each call is single-shot: one prompt in,
one text out. Failures are classified into the pipeline's error taxonomy
and surfaced immediately. There is no retry or backoff here, a re-run is
always an explicit caller decision.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError,
)

from figqa.shared.errors import RateLimited, TransportError, UnexpectedResponseShape

logger = logging.getLogger(__name__)

MODEL = "gemini-1.5-pro"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_TIMEOUT = 120.0  # seconds
TOP_P = 0.95


TokensCallback = Callable[[int, int], None]
"""Called with (input_tokens, output_tokens) when a completion finishes."""


def _parse_retry_after(exc: APIStatusError) -> float | None:
    """Extract the suggested retry delay from a rate limit error.

    Checks the ``Retry-After`` header first, then falls back to parsing
    the "Please try again in Xs / Xms" substring from the error message.
    Returns seconds as a float, or None if not found.
    """
    try:
        headers = exc.response.headers  # type: ignore[union-attr]
        if retry_after := headers.get("retry-after"):
            return float(retry_after)
    except (AttributeError, TypeError, ValueError):
        pass

    m = re.search(r"try again in (\d+(?:\.\d+)?)\s*(ms|s)\b", str(exc), re.IGNORECASE)
    if m:
        value = float(m.group(1))
        return value / 1000 if m.group(2).lower() == "ms" else value

    return None


def _extract_text(response: Any) -> str:
    """Pull the generated text out of the response envelope.

    The only accepted path is ``choices[0].message.content``; anything else
    is an upstream contract violation, not an empty answer.
    """
    choices = getattr(response, "choices", None)
    if not choices:
        raise UnexpectedResponseShape("Generation response has no choices")
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if not isinstance(content, str):
        finish = getattr(choices[0], "finish_reason", None)
        raise UnexpectedResponseShape(
            f"Generation response has no text content (finish_reason={finish!r})"
        )
    return content


class GenerationClient:
    """Thin async wrapper around the OpenAI SDK, one prompt per call."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str = MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        # max_retries=0: the SDK would otherwise retry 429s behind our back.
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)
        self.model = model

    async def generate(
        self,
        prompt: str,
        *,
        creativity: float = 0.7,
        max_output_length: int = 1024,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        """Send ``prompt`` and return the raw generated text.

        Raises ``RateLimited``, ``TransportError`` or ``UnexpectedResponseShape``.
        """
        if not 0.0 <= creativity <= 1.0:
            raise ValueError(f"creativity must be within [0, 1], got {creativity}")
        if max_output_length <= 0:
            raise ValueError(f"max_output_length must be positive, got {max_output_length}")

        logger.info(
            "Calling %s with prompt length %d chars (creativity=%.2f, max_output_length=%d)",
            self.model, len(prompt), creativity, max_output_length,
        )
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": creativity,
            "max_tokens": max_output_length,
            "top_p": TOP_P,
        }
        response = await self._call(**kwargs)

        usage = getattr(response, "usage", None)
        if on_tokens and usage:
            on_tokens(getattr(usage, "prompt_tokens", 0) or 0, getattr(usage, "completion_tokens", 0) or 0)

        return _extract_text(response)

    async def _call(self, **kwargs: Any) -> Any:
        """Issue the request and translate SDK exceptions into the pipeline taxonomy."""
        try:
            return await self._client.chat.completions.create(**kwargs)
        except RateLimitError as exc:
            retry_after = _parse_retry_after(exc)
            logger.warning("Rate limited (429), not retrying: %s", exc)
            raise RateLimited(
                f"Rate limit reached for the generation endpoint. Please try again later. ({exc})",
                retry_after=retry_after,
            ) from exc
        except APITimeoutError as exc:
            logger.warning("Generation call timed out: %s", exc)
            raise TransportError(f"Generation call timed out: {exc}", timeout=True) from exc
        except APIConnectionError as exc:
            logger.warning("Connection error calling generation endpoint: %s", exc)
            raise TransportError(f"Could not reach the generation endpoint: {exc}") from exc
        except APIStatusError as exc:
            if exc.status_code == 429:
                raise RateLimited(
                    f"Rate limit reached for the generation endpoint. ({exc})",
                    retry_after=_parse_retry_after(exc),
                ) from exc
            logger.error("Generation endpoint returned HTTP %s: %s", exc.status_code, exc)
            raise TransportError(
                f"Generation endpoint returned HTTP {exc.status_code}: {exc}",
                status_code=exc.status_code,
            ) from exc


# ======================================================================
# Dry-run mock client (zero API calls)
# ======================================================================

DRY_RUN_DESIGN: dict[str, Any] = {
    "name": "Login Page",
    "type": "CANVAS",
    "children": [
        {
            "name": "Login Form",
            "type": "FRAME",
            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 400, "height": 320},
            "children": [
                {"name": "Title", "type": "TEXT", "characters": "Welcome back"},
                {"name": "Email", "type": "RECTANGLE", "absoluteBoundingBox": {"x": 20, "y": 80, "width": 360, "height": 40}},
                {"name": "Password", "type": "RECTANGLE", "absoluteBoundingBox": {"x": 20, "y": 140, "width": 360, "height": 40}},
                {"name": "Log in", "type": "TEXT", "characters": "Log in"},
            ],
        },
        {"name": "Dashboard", "type": "FRAME", "absoluteBoundingBox": {"x": 500, "y": 0, "width": 1280, "height": 800}},
    ],
}

_DRY_RUN_APP = """\
```jsx
import React, { useState } from 'react';
import './App.css';

export default function App() {
  const [email, setEmail] = useState('');
  const [password, setPassword] = useState('');
  const [loggedIn, setLoggedIn] = useState(false);

  const submit = (e) => {
    e.preventDefault();
    if (email && password) setLoggedIn(true);
  };

  if (loggedIn) {
    return (
      <main className="dashboard">
        <h1 className="dashboard-title">Dashboard</h1>
        <section className="stats-card">Active users: 42</section>
      </main>
    );
  }

  return (
    <form className="login-form" onSubmit={submit}>
      <input id="email" type="email" value={email} onChange={(e) => setEmail(e.target.value)} />
      <input id="password" type="password" value={password} onChange={(e) => setPassword(e.target.value)} />
      <button type="submit" className="login-button">Log in</button>
    </form>
  );
}
```"""

_DRY_RUN_TESTS = """\
```javascript
describe('Login flow', () => {
  beforeEach(() => {
    cy.visit('http://localhost:5173/');
  });

  it('logs in with valid credentials', () => {
    cy.get('#email').type('user@example.com');
    cy.get('#password').type('secret');
    cy.get('.login-button').click();
    cy.get('.dashboard-title').should('contain', 'Dashboard');
  });

  it('shows summary statistics', () => {
    cy.get('#email').type('user@example.com');
    cy.get('#password').type('secret');
    cy.get('.login-button').click();
    cy.get('.stats-card').should('be.visible');
  });

  it('rejects an empty form', () => {
    cy.get('.login-button').click();
    cy.get('.error-banner').should('be.visible');
  });

  it('keeps the form visible before login', () => {
    cy.get('.login-form').should('be.visible');
  });

  it('navigates to the dashboard', () => {
    cy.get('#email').type('user@example.com');
    cy.get('#password').type('secret');
    cy.get('.login-button').click();
    cy.get('.dashboard').should('exist');
  });
});
```"""

_DRY_RUN_TEXT: dict[str, str] = {
    "requirements": (
        "Here are the functional requirements:\n\n"
        "REQ-1: The system shall allow users to log in using their email and password.\n"
        "REQ-2: The system shall display a dashboard showing summary statistics of user activity.\n"
        "REQ-3: The system shall validate all form inputs before submission.\n"
    ),
    "application": _DRY_RUN_APP,
    "test_cases": json.dumps([
        {
            "id": "TC-001",
            "title": "Successful login",
            "steps": ["Navigate to login page", "Enter valid credentials", "Click login button"],
            "expected_result": "User is logged in and redirected to the dashboard",
            "priority": "High",
        },
        {
            "id": "TC-002",
            "title": "Dashboard statistics",
            "steps": ["Log in", "Inspect the dashboard"],
            "expected_result": "Summary statistics are visible",
            "priority": "Medium",
        },
        {
            "id": "TC-003",
            "title": "Empty form validation",
            "steps": ["Navigate to login page", "Submit the form without data"],
            "expected_result": "Validation messages are shown",
            "priority": "High",
        },
    ], indent=2) + "\n\nThese cover the happy path and validation.",
    "test_scenarios": "```json\n" + json.dumps([
        {
            "id": "TS-001",
            "name": "Login to dashboard",
            "description": "A returning user signs in and reviews statistics",
            "preconditions": "User account exists",
            "steps": ["Open the app", "Enter credentials", "Submit", "Review statistics"],
            "expected_outcome": "Dashboard shows the user's statistics",
            "test_data": "user@example.com / secret",
        },
        {
            "id": "TS-002",
            "name": "Validation on empty submit",
            "description": "A user submits the login form without data",
            "steps": ["Open the app", "Submit the empty form"],
            "expected_outcome": "The form is not submitted and errors are shown",
        },
    ], indent=2) + "\n```",
    "automated_testing": _DRY_RUN_TESTS,
    "report": (
        "# Test Report\n\n"
        "## Executive Summary\n\nMost simulated tests passed; one selector is missing from the application.\n\n"
        "## Readiness\n\nNeeds fixes before deploying.\n"
    ),
}


class DryRunClient:
    """Drop-in replacement for GenerationClient that makes zero API calls.

    Returns canned text per stage so the full pipeline, parsers included,
    can run offline.
    """

    model = "dry-run"

    async def generate(
        self,
        prompt: str,
        *,
        creativity: float = 0.7,
        max_output_length: int = 1024,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        key = self._detect_stage(prompt)
        logger.info("[dry-run] Returning canned %s response", key)
        if on_tokens:
            on_tokens(len(prompt) // 4, 0)
        return _DRY_RUN_TEXT[key]

    @staticmethod
    def _detect_stage(prompt: str) -> str:
        """Guess the stage from the role line at the top of the prompt."""
        head = prompt.lstrip().split("\n", 1)[0].lower()
        if "product manager" in head:
            return "requirements"
        if "full-stack developer" in head:
            return "application"
        if "test scenario design" in head:
            return "test_scenarios"
        if "test automation engineer" in head:
            return "automated_testing"
        if "qa manager" in head:
            return "report"
        return "test_cases"
