"""Error taxonomy shared by the generation client and the orchestrator."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every error the pipeline raises on purpose."""


class GenerationError(PipelineError):
    """The text-generation call failed. Never retried automatically."""

    retryable = True


class RateLimited(GenerationError):
    """The endpoint reported a quota / HTTP 429 condition."""

    def __init__(self, message: str, *, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class TransportError(GenerationError):
    """Network failure, timeout, or an HTTP error other than 429."""

    def __init__(
        self,
        message: str,
        *,
        timeout: bool = False,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout = timeout
        self.status_code = status_code


class UnexpectedResponseShape(GenerationError):
    """The endpoint answered, but without the generated-text field."""

    retryable = False


class InputPreconditionUnmet(PipelineError):
    """A stage was started before the artifacts it consumes exist."""

    def __init__(self, stage: object, missing: list[str]) -> None:
        self.stage = stage
        self.missing = missing
        name = getattr(stage, "value", stage)
        super().__init__(f"Cannot start stage '{name}': missing {', '.join(missing)}")
