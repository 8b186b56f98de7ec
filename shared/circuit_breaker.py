"""
Circuit Breaker Pattern Implementation.

This module provides circuit breaker protection for booking API calls
so a downed backend fails fast instead of stalling every wizard step.

Circuit breaker states:
- CLOSED: Normal operation, requests pass through
- OPEN: Service is down, requests fail fast without calling the service
- HALF_OPEN: Testing if service recovered, one request allowed through

Usage:
    from shared.circuit_breaker import booking_api_breaker, call_with_breaker
    import pybreaker

    try:
        result = await call_with_breaker(booking_api_breaker, my_async_function, *args)
    except pybreaker.CircuitBreakerError:
        # Circuit is OPEN - service is down
        ...

Configuration:
    - fail_max: Number of consecutive failures before opening circuit
    - reset_timeout: Seconds to wait before trying again (half-open state)
"""

import logging
import time
from typing import Any, Callable

import pybreaker

logger = logging.getLogger(__name__)


class CircuitBreakerLogger(pybreaker.CircuitBreakerListener):
    """Log circuit breaker state changes."""

    def state_change(self, cb: pybreaker.CircuitBreaker, old_state, new_state) -> None:
        """Log state transitions."""
        if new_state.name == "open":
            logger.warning(
                f"Circuit breaker '{cb.name}' OPENED - "
                f"service appears down, failing fast for {cb.reset_timeout}s"
            )
        elif new_state.name == "half-open":
            logger.info(
                f"Circuit breaker '{cb.name}' HALF-OPEN - "
                f"testing if service recovered"
            )
        elif new_state.name == "closed":
            logger.info(
                f"Circuit breaker '{cb.name}' CLOSED - "
                f"service recovered, resuming normal operation"
            )


# Registry of circuit breakers and their asyncio-side bookkeeping
_breakers: dict[str, pybreaker.CircuitBreaker] = {}
_failure_counts: dict[str, int] = {}
_opened_at: dict[str, float] = {}
_logger_instance = CircuitBreakerLogger()


def get_circuit_breaker(
    name: str,
    fail_max: int = 5,
    reset_timeout: int = 30,
    exclude: list[type] | None = None,
) -> pybreaker.CircuitBreaker:
    """
    Get or create a circuit breaker for a service.

    Args:
        name: Unique identifier for the circuit breaker
        fail_max: Number of consecutive failures before opening circuit
        reset_timeout: Seconds before attempting recovery (half-open)
        exclude: Exception types that should NOT count as failures

    Returns:
        CircuitBreaker instance (singleton per name)
    """
    if name not in _breakers:
        _breakers[name] = pybreaker.CircuitBreaker(
            name=name,
            fail_max=fail_max,
            reset_timeout=reset_timeout,
            exclude=exclude or [],
            listeners=[_logger_instance],
        )
        _failure_counts[name] = 0
        logger.info(
            f"Created circuit breaker '{name}' | "
            f"fail_max={fail_max} | reset_timeout={reset_timeout}s"
        )
    return _breakers[name]


def reset_circuit_breaker(breaker: pybreaker.CircuitBreaker) -> None:
    """Force a breaker back to CLOSED and forget its failures."""
    breaker.close()
    _failure_counts[breaker.name] = 0
    _opened_at.pop(breaker.name, None)


def _trip(breaker: pybreaker.CircuitBreaker) -> None:
    breaker.open()
    _opened_at[breaker.name] = time.monotonic()


async def call_with_breaker(
    breaker: pybreaker.CircuitBreaker,
    func: Callable,
    *args,
    **kwargs,
) -> Any:
    """
    Call async function with circuit breaker protection (native asyncio).

    pybreaker's call_async() requires Tornado, and its own fail_counter and
    opened-at time only advance inside the synchronous call(). Consecutive
    failures and the reset timeout are therefore tracked in this module, and
    the breaker is driven through its public open()/half_open()/close()
    methods. pybreaker still owns the state and the exclude list.

    Args:
        breaker: CircuitBreaker instance to use
        func: Async function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result from func

    Raises:
        pybreaker.CircuitBreakerError: If circuit is open
        Exception: Any exception raised by func
    """
    if breaker.current_state == pybreaker.STATE_OPEN:
        opened_at = _opened_at.get(breaker.name)
        if opened_at is not None and time.monotonic() - opened_at >= breaker.reset_timeout:
            breaker.half_open()
        else:
            logger.warning(f"Circuit breaker '{breaker.name}' is OPEN, failing fast")
            raise pybreaker.CircuitBreakerError(breaker)

    try:
        result = await func(*args, **kwargs)

    except Exception as e:
        if breaker.is_system_error(e):
            _failure_counts[breaker.name] = _failure_counts.get(breaker.name, 0) + 1
            logger.warning(
                f"Circuit breaker '{breaker.name}' recorded failure "
                f"{_failure_counts[breaker.name]}/{breaker.fail_max}: "
                f"{type(e).__name__}: {e}"
            )

            if (
                breaker.current_state == pybreaker.STATE_HALF_OPEN
                or _failure_counts[breaker.name] >= breaker.fail_max
            ):
                _trip(breaker)

        raise

    _failure_counts[breaker.name] = 0
    if breaker.current_state == pybreaker.STATE_HALF_OPEN:
        breaker.close()
        _opened_at.pop(breaker.name, None)

    return result


def get_breaker_status() -> dict[str, dict[str, Any]]:
    """
    Get status of all circuit breakers for monitoring/health checks.

    ``fail_counter`` is the count kept by call_with_breaker(), since
    ``breaker.fail_counter`` stays at zero for calls made outside call().

    Returns:
        Dict of {name: {state, fail_counter, reset_timeout}}
    """
    return {
        name: {
            "state": breaker.current_state,
            "fail_counter": _failure_counts.get(name, 0),
            "reset_timeout": breaker.reset_timeout,
        }
        for name, breaker in _breakers.items()
    }


def _is_client_error(exc: Exception) -> bool:
    """4xx responses are caller mistakes, not an outage."""
    status_code = getattr(exc, "status_code", None)
    return status_code is not None and 400 <= status_code < 500


# Booking API - every wizard step depends on it
# - 5 failures before opening
# - 30 second reset
# - 4xx responses never count as failures
booking_api_breaker = get_circuit_breaker(
    name="booking_api",
    fail_max=5,
    reset_timeout=30,
    exclude=[_is_client_error],
)
