"""
Challenge solver for ping0.cc.

Combines the js1key derivation and the proof-of-work search into the two
cookie values the service checks on the follow-up request. The two
computations are independent; solve_async runs them side by side.
"""

import asyncio
import re
import threading
from typing import Optional

from .audit_logger import AuditLogger
from .config import SolverConfig
from .enums import ErrorCode, LogLevel
from .exceptions import InvalidInputError
from .hash_search import solve_proof_of_work
from .key_derivation import derive_key, validate_nonce
from .models import Credentials

DEFAULT_DIFFICULTY_LENGTH = 3
MAX_DIFFICULTY_LENGTH = 64  # full sha256 hex digest

_DIFFICULTY_PATTERN = re.compile(r"[0-9a-fA-F]*")


def default_difficulty(nonce: str) -> str:
    """Difficulty used when the page or the operator does not provide one."""
    return nonce[:DEFAULT_DIFFICULTY_LENGTH]


def validate_difficulty(difficulty: str) -> str:
    """
    Check that a difficulty is a hex string no longer than a sha256 digest.

    Raises:
        InvalidInputError: If the difficulty has the wrong shape
    """
    if len(difficulty) > MAX_DIFFICULTY_LENGTH:
        raise InvalidInputError(
            code=ErrorCode.INVALID_INPUT.value,
            message=(
                f"Invalid difficulty length: at most {MAX_DIFFICULTY_LENGTH}, "
                f"got {len(difficulty)}"
            ),
            details={"difficulty": difficulty},
        )
    if not _DIFFICULTY_PATTERN.fullmatch(difficulty):
        raise InvalidInputError(
            code=ErrorCode.INVALID_INPUT.value,
            message="Invalid difficulty: expected hexadecimal characters only",
            details={"difficulty": difficulty},
        )
    return difficulty


class ChallengeSolver:
    """
    Computes js1key and pow credentials for one (nonce, difficulty) pair.

    Stateless apart from its configuration, so one instance can serve
    concurrent solves.
    """

    def __init__(
        self,
        config: Optional[SolverConfig] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the solver.

        Args:
            config: Solver configuration (iteration ceiling, animation flag)
            logger: Optional audit logger
        """
        self._config = config or SolverConfig()
        self._logger = logger

    def _prepare(self, nonce: str, difficulty: Optional[str]) -> str:
        validate_nonce(nonce)
        if not difficulty:
            difficulty = default_difficulty(nonce)
        validate_difficulty(difficulty)
        self._log(
            LogLevel.DEBUG,
            "Generating credentials",
            {"x1": nonce, "difficulty": difficulty},
        )
        return difficulty

    def _credentials(self, js1key: int, pow_value: int) -> Credentials:
        self._log(
            LogLevel.DEBUG,
            "Generated credentials",
            {"js1key": js1key, "pow": pow_value},
        )
        return Credentials(js1key=str(js1key), pow=str(pow_value))

    def solve(
        self,
        nonce: str,
        difficulty: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Credentials:
        """
        Solve a challenge.

        Args:
            nonce: 32-character hex nonce
            difficulty: Required hash prefix; defaults to the nonce's first 3 chars
            cancel_event: Optional event that aborts the proof-of-work search

        Returns:
            Credentials with decimal-string js1key and pow

        Raises:
            InvalidInputError: If nonce or difficulty is malformed
            NotFoundError: If the iteration ceiling is exceeded
            SolveCancelledError: If cancel_event is set during the search
        """
        difficulty = self._prepare(nonce, difficulty)
        js1key = derive_key(nonce, animated=self._config.animated)
        pow_value = solve_proof_of_work(
            nonce,
            difficulty,
            max_iterations=self._config.max_iterations,
            cancel_event=cancel_event,
        )
        return self._credentials(js1key, pow_value)

    async def solve_async(
        self,
        nonce: str,
        difficulty: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Credentials:
        """Like solve(), with key derivation and search run concurrently in threads."""
        difficulty = self._prepare(nonce, difficulty)
        js1key, pow_value = await asyncio.gather(
            asyncio.to_thread(derive_key, nonce, self._config.animated),
            asyncio.to_thread(
                solve_proof_of_work,
                nonce,
                difficulty,
                self._config.max_iterations,
                cancel_event,
            ),
        )
        return self._credentials(js1key, pow_value)

    def _log(self, level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.log(level, "ChallengeSolver", message, data)
