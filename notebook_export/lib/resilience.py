"""Retry support for export service calls.

Exporting a notebook talks to an external application and can fail
transiently. Retry is opt-in per run through :class:`RetryConfig`; the
default is a single attempt. The export state file is never retried.

Implementation: tenacity.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple, Type, TypeVar

import tenacity
from tenacity.wait import wait_base

logger = logging.getLogger(__name__)

__all__ = ["RetryConfig", "retry_operation"]

T = TypeVar("T")


class RetryConfig:
    """Retry behaviour for a single operation."""

    def __init__(
        self,
        max_attempts: int = 1,
        backoff_seconds: float = 1.0,
        exponential: bool = True,
        jitter: bool = True,
        retry_exceptions: Optional[Tuple[Type[BaseException], ...]] = None,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if backoff_seconds < 0:
            raise ValueError(f"backoff_seconds must be >= 0, got {backoff_seconds}")
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.exponential = exponential
        self.jitter = jitter
        self.retry_exceptions = retry_exceptions or (Exception,)

    @classmethod
    def none(cls) -> "RetryConfig":
        """No retry - fail on the first error."""
        return cls(max_attempts=1)

    @classmethod
    def default(cls) -> "RetryConfig":
        """3 attempts with exponential backoff."""
        return cls(max_attempts=3)

    def __repr__(self) -> str:
        return (
            f"RetryConfig(max_attempts={self.max_attempts}, "
            f"backoff_seconds={self.backoff_seconds}, "
            f"exponential={self.exponential}, jitter={self.jitter})"
        )

    def _wait_strategy(self) -> wait_base:
        wait_strategy: wait_base
        if self.exponential:
            wait_strategy = tenacity.wait_exponential(
                multiplier=self.backoff_seconds, min=self.backoff_seconds
            )
        else:
            wait_strategy = tenacity.wait_fixed(self.backoff_seconds)

        if self.jitter and self.backoff_seconds > 0:
            wait_strategy = wait_strategy + tenacity.wait_random(0, self.backoff_seconds * 0.5)

        return wait_strategy


def retry_operation(
    operation: Callable[[], T],
    config: Optional[RetryConfig] = None,
    operation_name: str = "operation",
) -> T:
    """Execute ``operation`` with retry.

    The last exception is re-raised once attempts are exhausted.

    Example:
        result = retry_operation(
            lambda: service.export_notebook(notebook),
            RetryConfig.default(),
            f"export {notebook.id}",
        )
    """
    config = config or RetryConfig.none()

    def before_sleep_handler(retry_state: tenacity.RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "%s attempt %d/%d failed: %s. Retrying in %.1fs...",
            operation_name,
            retry_state.attempt_number,
            config.max_attempts,
            exception,
            retry_state.next_action.sleep if retry_state.next_action else 0,
        )

    retryer = tenacity.Retrying(
        stop=tenacity.stop_after_attempt(config.max_attempts),
        wait=config._wait_strategy(),
        retry=tenacity.retry_if_exception_type(config.retry_exceptions),
        before_sleep=before_sleep_handler,
        reraise=True,
    )

    try:
        return retryer(operation)
    except Exception:
        if config.max_attempts > 1:
            logger.error(
                "%s failed after %d attempts",
                operation_name,
                config.max_attempts,
            )
        raise
