"""
pong0 - IP information lookups via ping0.cc.

This package solves the ping0.cc access challenge (js1key derivation and
SHA-256 proof of work) and extracts the IP information record from the
result page.
"""

__version__ = "1.0.0"

from pong0.exceptions import (
    Pong0Error,
    InvalidInputError,
    NotFoundError,
    SolveCancelledError,
    ErrorPageError,
    MissingAddressError,
    ParseFailureError,
    NetworkError,
)
from pong0.enums import (
    ErrorCode,
    ExtractionSource,
    LogLevel,
)
from pong0.config import (
    SolverConfig,
    TransportConfig,
    ServerConfig,
    LoggingConfig,
    ManualChallenge,
    SystemConfig,
    load_config_from_env,
)
from pong0.models import (
    ATTRIBUTION,
    Challenge,
    Credentials,
    InfoRecord,
)
from pong0.audit_logger import (
    AuditLogger,
    LogEntry,
)
from pong0.key_derivation import (
    derive_key,
    validate_nonce,
)
from pong0.hash_search import (
    solve_proof_of_work,
)
from pong0.solver import (
    ChallengeSolver,
)
from pong0.pattern_cache import (
    PatternCache,
)
from pong0.text_normalizer import (
    normalize_text,
)
from pong0.field_extractor import (
    FieldExtractor,
    FieldValue,
    ParsedDocument,
)
from pong0.pipeline import (
    ExtractionPipeline,
)
from pong0.challenge_page import (
    parse_challenge,
)
from pong0.ping0_client import (
    Ping0Client,
)
from pong0.orchestrator import (
    QueryOrchestrator,
    QueryResult,
)
from pong0.cli import (
    main as cli_main,
    create_parser,
)

__all__ = [
    # Exceptions
    "Pong0Error",
    "InvalidInputError",
    "NotFoundError",
    "SolveCancelledError",
    "ErrorPageError",
    "MissingAddressError",
    "ParseFailureError",
    "NetworkError",
    # Enums
    "ErrorCode",
    "ExtractionSource",
    "LogLevel",
    # Configuration
    "SolverConfig",
    "TransportConfig",
    "ServerConfig",
    "LoggingConfig",
    "ManualChallenge",
    "SystemConfig",
    "load_config_from_env",
    # Models
    "ATTRIBUTION",
    "Challenge",
    "Credentials",
    "InfoRecord",
    # Logging
    "AuditLogger",
    "LogEntry",
    # Challenge solver
    "derive_key",
    "validate_nonce",
    "solve_proof_of_work",
    "ChallengeSolver",
    # Extraction
    "PatternCache",
    "normalize_text",
    "FieldExtractor",
    "FieldValue",
    "ParsedDocument",
    "ExtractionPipeline",
    "parse_challenge",
    # Transport and orchestration
    "Ping0Client",
    "QueryOrchestrator",
    "QueryResult",
    # CLI
    "cli_main",
    "create_parser",
]
