"""
Retry and polling helpers

Provides bounded polling used by faucet funding and inclusion waits.
Includes structured logging with correlation IDs for transaction tracing.
"""

import logging
import threading
import time
import uuid
import contextvars
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Context variable for correlation ID (thread-safe)
_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'correlation_id', default=None
)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for transaction tracing."""
    return uuid.uuid4().hex[:12]


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: Optional[str]) -> contextvars.Token:
    """Set the correlation ID in context. Returns token for reset."""
    return _correlation_id.set(correlation_id)


class CorrelationContext:
    """
    Context manager for correlation ID scoping.

    Usage:
        with CorrelationContext("broadcast") as cid:
            logger.info(f"[{cid}] Starting operation")
            response = client.broadcast_tx("alice", msg)
    """

    def __init__(self, prefix: Optional[str] = None):
        """
        Initialize correlation context.

        Args:
            prefix: Optional prefix for the correlation ID (e.g., "broadcast", "faucet")
        """
        self.correlation_id = generate_correlation_id()
        if prefix:
            self.correlation_id = f"{prefix}_{self.correlation_id}"
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = set_correlation_id(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            _correlation_id.reset(self._token)


def log_with_correlation(
    level: int,
    message: str,
    operation_name: str,
    attempt: Optional[int] = None,
    max_attempts: Optional[int] = None,
    **extra
):
    """
    Log message with correlation ID and structured context.

    Args:
        level: Logging level (logging.INFO, logging.WARNING, etc.)
        message: Log message
        operation_name: Name of the operation being executed
        attempt: Current attempt number (1-indexed)
        max_attempts: Maximum number of attempts, if bounded
        **extra: Additional context fields
    """
    cid = get_correlation_id()

    parts = []
    if cid:
        parts.append(f"[{cid}]")
    parts.append(f"[{operation_name}]")
    if attempt is not None:
        parts.append(f"[{attempt}/{max_attempts}]" if max_attempts else f"[{attempt}]")
    parts.append(message)

    log_message = " ".join(parts)

    extra_context = {
        "correlation_id": cid,
        "operation": operation_name,
        "attempt": attempt,
        "max_attempts": max_attempts,
        **extra
    }

    logger.log(level, log_message, extra=extra_context)


class PollOutcome(Enum):
    """Result of a bounded poll"""
    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


def poll_until(
    check: Callable[[], bool],
    operation_name: str,
    interval: float,
    timeout: float,
    cancel: Optional[threading.Event] = None,
) -> PollOutcome:
    """
    Run check() at a constant interval until it returns True.

    Exceptions raised by check() propagate; only a False result is retried.
    The deadline is measured from the first call, so the poll returns no
    later than timeout + one interval.

    Args:
        check: Callable returning True once the awaited condition holds
        operation_name: Name for logging purposes
        interval: Seconds between attempts
        timeout: Seconds after which polling gives up
        cancel: Optional event that aborts the wait when set

    Returns:
        PollOutcome
    """
    deadline = time.monotonic() + timeout
    attempt = 0

    while True:
        attempt += 1
        if cancel is not None and cancel.is_set():
            return PollOutcome.CANCELLED

        if check():
            if attempt > 1:
                log_with_correlation(
                    logging.INFO,
                    f"Condition met after {attempt} attempts",
                    operation_name,
                    attempt,
                )
            return PollOutcome.SUCCEEDED

        if time.monotonic() >= deadline:
            log_with_correlation(
                logging.WARNING,
                f"Gave up after {timeout}s",
                operation_name,
                attempt,
            )
            return PollOutcome.TIMED_OUT

        log_with_correlation(
            logging.DEBUG,
            f"Condition not met, next check in {interval}s",
            operation_name,
            attempt,
        )
        if cancel is not None:
            if cancel.wait(interval):
                return PollOutcome.CANCELLED
        else:
            time.sleep(interval)
