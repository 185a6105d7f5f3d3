"""
Challenge extraction from the initial ping0.cc page.

The landing page assigns the challenge as inline globals:

    window.x1 = '3ef12496741412ab807c60c346ded5e7';
    window.difficulty = '3ef';

and loads the script that solves it in the browser (/js/main.js?v=...).
"""

from typing import Optional, Union

from .audit_logger import AuditLogger
from .config import ManualChallenge
from .enums import ErrorCode, LogLevel
from .exceptions import ParseFailureError
from .field_extractor import ParsedDocument, find_script_variable
from .key_derivation import validate_nonce
from .models import Challenge
from .pattern_cache import PatternCache
from .pipeline import decode_document, parse_document
from .solver import default_difficulty, validate_difficulty

NONCE_VARIABLE = "window.x1"
DIFFICULTY_VARIABLE = "window.difficulty"
DEFAULT_JS_PATH = "/js/main.js"
JS_MARKER = "main.js"


def challenge_from_manual(manual: ManualChallenge) -> Challenge:
    """
    Build a challenge from operator-supplied values.

    Raises:
        InvalidInputError: If x1 or difficulty is malformed
    """
    nonce = validate_nonce(manual.x1)
    difficulty = manual.difficulty or default_difficulty(nonce)
    validate_difficulty(difficulty)
    return Challenge(nonce=nonce, difficulty=difficulty, js_path=DEFAULT_JS_PATH)


def parse_challenge(
    document: Union[str, bytes],
    manual: Optional[ManualChallenge] = None,
    pattern_cache: Optional[PatternCache] = None,
    logger: Optional[AuditLogger] = None,
) -> Challenge:
    """
    Read the challenge from the initial page.

    Args:
        document: Initial page HTML
        manual: Optional override; when given the page is not inspected
        pattern_cache: Optional compiled-pattern cache
        logger: Optional audit logger

    Returns:
        Challenge with nonce, difficulty and solver script path

    Raises:
        ParseFailureError: If the page is unparseable or carries no x1
        InvalidInputError: If x1 or difficulty is malformed
    """
    if manual is not None:
        challenge = challenge_from_manual(manual)
        _log(logger, "Using manual challenge values", {
            "x1": challenge.nonce, "difficulty": challenge.difficulty,
        })
        return challenge

    text = decode_document(document)
    parsed = ParsedDocument.from_soup(parse_document(text))

    nonce = find_script_variable(parsed.scripts, NONCE_VARIABLE, pattern_cache)
    if not nonce:
        _log(logger, "x1 not found", {"preview": text[:200]})
        raise ParseFailureError(
            code=ErrorCode.PARSE_FAILURE.value,
            message="x1 value not found in initial page",
        )
    validate_nonce(nonce)

    difficulty = find_script_variable(parsed.scripts, DIFFICULTY_VARIABLE, pattern_cache)
    if not difficulty:
        difficulty = default_difficulty(nonce)
        _log(logger, "difficulty not found, using first 3 characters of x1", {
            "difficulty": difficulty,
        })
    validate_difficulty(difficulty)

    js_path = DEFAULT_JS_PATH
    for script in parsed.soup.select("script[src]"):
        src = script.get("src", "")
        if JS_MARKER in src:
            js_path = src
            break

    challenge = Challenge(nonce=nonce, difficulty=difficulty, js_path=js_path)
    _log(logger, "Found challenge", {
        "x1": challenge.nonce, "difficulty": challenge.difficulty, "js_path": js_path,
    })
    return challenge


def _log(logger: Optional[AuditLogger], message: str, data: dict) -> None:
    if logger:
        logger.log(LogLevel.DEBUG, "ChallengePage", message, data)
