"""
Query orchestrator for pong0.

Runs one complete lookup against ping0.cc:
1. Fetch the initial page and read the challenge (or take a manual override)
2. Solve the challenge and fetch the result page with the credentials
3. Extract the IP record from the result page

Each query uses its own client session and its own challenge; nothing is
retried here, since a failed solve or extraction is tied to one challenge.
"""

import time
from dataclasses import dataclass, field
from typing import Optional

import httpx

from .audit_logger import AuditLogger
from .challenge_page import parse_challenge
from .config import ManualChallenge, SystemConfig
from .enums import LogLevel
from .exceptions import Pong0Error
from .models import InfoRecord
from .pattern_cache import PatternCache
from .ping0_client import Ping0Client
from .pipeline import ExtractionPipeline
from .solver import ChallengeSolver


@dataclass
class QueryResult:
    """Result of an orchestrated query."""

    record: InfoRecord
    timings_ms: dict[str, float] = field(default_factory=dict)

    @property
    def total_duration_ms(self) -> float:
        return sum(self.timings_ms.values())


class QueryOrchestrator:
    """
    Coordinates transport, solver and extraction for one IP lookup.

    Safe to share between concurrent queries: every query opens its own
    Ping0Client, and the solver and pipeline are stateless.
    """

    def __init__(
        self,
        config: Optional[SystemConfig] = None,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            config: System configuration
            logger: Optional audit logger
            transport: Optional httpx transport override for every client
        """
        self._config = config or SystemConfig()
        self._logger = logger
        self._transport = transport
        self._patterns = PatternCache()
        self._solver = ChallengeSolver(self._config.solver, logger=logger)
        self._pipeline = ExtractionPipeline(pattern_cache=self._patterns, logger=logger)

    async def __aenter__(self) -> "QueryOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        pass

    async def query(
        self,
        query_ip: Optional[str] = None,
        manual: Optional[ManualChallenge] = None,
    ) -> QueryResult:
        """
        Look up one IP address.

        Args:
            query_ip: Address to look up; None queries the caller's own address
            manual: Optional challenge override (x1/difficulty)

        Returns:
            QueryResult with the record and per-step timings

        Raises:
            Pong0Error: Any failure, with the failing step in details['step']
        """
        timings: dict[str, float] = {}
        self._log(LogLevel.INFO, "Starting query", {"query_ip": query_ip or "current"})

        async with Ping0Client(self._config.transport, self._logger, self._transport) as client:
            step_start = time.perf_counter()
            try:
                initial_page = await client.fetch_initial_page()
                challenge = parse_challenge(
                    initial_page,
                    manual=manual,
                    pattern_cache=self._patterns,
                    logger=self._logger,
                )
            except Pong0Error as e:
                raise self._step_failed(1, e)
            timings["challenge"] = self._elapsed_ms(step_start)

            step_start = time.perf_counter()
            try:
                credentials = await self._solver.solve_async(
                    challenge.nonce, challenge.difficulty
                )
                final_page = await client.fetch_final_page(credentials, query_ip)
            except Pong0Error as e:
                raise self._step_failed(2, e)
            timings["solve_and_fetch"] = self._elapsed_ms(step_start)

        step_start = time.perf_counter()
        try:
            record = self._pipeline.extract(final_page)
        except Pong0Error as e:
            raise self._step_failed(3, e)
        timings["extract"] = self._elapsed_ms(step_start)

        result = QueryResult(record=record, timings_ms=timings)
        self._log(LogLevel.INFO, "Query complete", {
            "ip": record.ip,
            "timings_ms": timings,
            "total_ms": result.total_duration_ms,
        })
        return result

    def _step_failed(self, step: int, error: Pong0Error) -> Pong0Error:
        error.details.setdefault("step", step)
        if self._logger:
            self._logger.log_error(
                "QueryOrchestrator",
                f"Step {step} failed: {error.message}",
                error=error,
            )
        return error

    def _elapsed_ms(self, start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000

    def _log(self, level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.log(level, "QueryOrchestrator", message, data)
