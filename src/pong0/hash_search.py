"""
SHA-256 prefix proof-of-work search.

ping0.cc expects the smallest counter whose sha256(x1 + counter) hex digest
starts with the difficulty string, so the search is strictly sequential from
zero.
"""

import hashlib
import threading
from typing import Optional

from .enums import ErrorCode
from .exceptions import NotFoundError, SolveCancelledError

DEFAULT_MAX_ITERATIONS = 100_000

# How often the cancel event is polled
_CANCEL_CHECK_INTERVAL = 1024


def hash_prefix(data: str, length: int) -> str:
    """Return the first `length` lowercase hex characters of sha256(data)."""
    return hashlib.sha256(data.encode("utf-8")).hexdigest()[:length]


def solve_proof_of_work(
    nonce: str,
    difficulty_prefix: str,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    cancel_event: Optional[threading.Event] = None,
) -> int:
    """
    Find the smallest counter whose digest starts with the difficulty prefix.

    Args:
        nonce: Challenge nonce, hashed as-is
        difficulty_prefix: Required hex prefix; compared case-insensitively
        max_iterations: Counters 0..max_iterations-1 are tried
        cancel_event: Optional event; when set the search stops

    Returns:
        The first matching counter

    Raises:
        NotFoundError: If no counter below max_iterations matches
        SolveCancelledError: If cancel_event was set during the search
    """
    target = difficulty_prefix.lower()
    length = len(target)

    for counter in range(max_iterations):
        if cancel_event is not None and counter % _CANCEL_CHECK_INTERVAL == 0:
            if cancel_event.is_set():
                raise SolveCancelledError(
                    code=ErrorCode.CANCELLED.value,
                    message="Proof-of-work search cancelled",
                    details={"nonce": nonce, "counter": counter},
                )
        if hash_prefix(f"{nonce}{counter}", length) == target:
            return counter

    raise NotFoundError(
        code=ErrorCode.NOT_FOUND.value,
        message=(
            f"Exceeded maximum iterations ({max_iterations}) "
            f"without finding a POW value for difficulty {difficulty_prefix!r}"
        ),
        details={
            "nonce": nonce,
            "difficulty": difficulty_prefix,
            "max_iterations": max_iterations,
        },
    )
