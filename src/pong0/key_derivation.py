"""
js1key derivation for the ping0.cc challenge.

The service's page script turns the nonce (window.x1) into a 24-bit access
key. The transform has no meaning beyond matching that script bit for bit,
so it is kept as a flat step table: auditing a change means diffing the
table against the page script and re-running the golden vectors.

Arithmetic is modulo 2**24. Masking after every step is equivalent to the
page script's sparser masking because every operand is below 2**24.
"""

import re

from .enums import ErrorCode
from .exceptions import InvalidInputError

MASK_24 = 0xFFFFFF
NONCE_LENGTH = 32
CHUNK_SIZE = 4
CHUNK_OFFSET = 12

ADD = "add"
SUB = "sub"
XOR = "xor"

_NONCE_PATTERN = re.compile(r"[0-9a-fA-F]{32}")

# (operation, operand, animated_only), applied in order after each chunk
STEPS: tuple[tuple[str, int, bool], ...] = (
    (XOR, 9592, False),
    (ADD, 4856, False),
    (XOR, 40996, True),
    (XOR, 5007, False),
    (SUB, 83957, True),
    (SUB, 8842, False),
    (XOR, 4621, False),
    (XOR, 5497, False),
    (ADD, 26924, True),
    (ADD, 5961, False),
    (SUB, 12005, True),
    (SUB, 6533, False),
    (ADD, 1149, False),
    (XOR, 4784, False),
    (SUB, 3624, False),
    (XOR, 1855, False),
    (SUB, 2903, False),
    (XOR, 9651, False),
    (XOR, 9740, False),
    (SUB, 7250, False),
    (ADD, 8334, False),
    (SUB, 5332, False),
    (ADD, 8264, False),
    (SUB, 1840, False),
    (XOR, 7994, False),
    (SUB, 6564, False),
    (SUB, 9319, False),
    (XOR, 9276, False),
    (SUB, 8188, False),
    (SUB, 6630, False),
    (XOR, 4756, False),
    (SUB, 8429, False),
    (SUB, 5819, False),
    (SUB, 84724, True),
    (SUB, 3288, False),
    (ADD, 3350, False),
    (SUB, 7509, False),
    (XOR, 8297, False),
    (XOR, 5024, False),
    (XOR, 2855, False),
    (SUB, 3995, False),
    (XOR, 3949, False),
    (ADD, 5215, False),
    (ADD, 1856, False),
    (SUB, 6845, False),
    (XOR, 8122, False),
    (XOR, 4941, False),
    (ADD, 2276, False),
    (SUB, 5399, False),
    (SUB, 1237, False),
    (XOR, 4935, False),
)


def apply_step(value: int, operation: str, operand: int) -> int:
    """Apply one table step and mask the result to 24 bits."""
    if operation == ADD:
        value += operand
    elif operation == SUB:
        value -= operand
    elif operation == XOR:
        value ^= operand
    else:
        raise ValueError(f"Unknown derivation step: {operation}")
    return value & MASK_24


def validate_nonce(nonce: str) -> str:
    """
    Check that a nonce is exactly 32 hexadecimal characters.

    Returns:
        The nonce unchanged

    Raises:
        InvalidInputError: If the nonce has the wrong length or alphabet
    """
    if not isinstance(nonce, str) or len(nonce) != NONCE_LENGTH:
        length = len(nonce) if isinstance(nonce, str) else None
        raise InvalidInputError(
            code=ErrorCode.INVALID_INPUT.value,
            message=f"Invalid x1 length: expected {NONCE_LENGTH}, got {length}",
            details={"nonce": nonce, "length": length},
        )
    if not _NONCE_PATTERN.fullmatch(nonce):
        raise InvalidInputError(
            code=ErrorCode.INVALID_INPUT.value,
            message="Invalid x1: expected hexadecimal characters only",
            details={"nonce": nonce},
        )
    return nonce


def derive_key(nonce: str, animated: bool = False) -> int:
    """
    Derive the js1key value for a nonce.

    Args:
        nonce: 32-character hex nonce (window.x1)
        animated: Page animation state; ping0.cc serves it switched off

    Returns:
        Integer in [0, 2**24)

    Raises:
        InvalidInputError: If the nonce is not 32 hex characters
    """
    validate_nonce(nonce)

    steps = [(op, operand) for op, operand, animated_only in STEPS
             if animated or not animated_only]

    result = 0
    for start in range(0, NONCE_LENGTH, CHUNK_SIZE):
        chunk = int(nonce[start:start + CHUNK_SIZE], 16)
        result = (result + chunk + CHUNK_OFFSET) & MASK_24
        for operation, operand in steps:
            result = apply_step(result, operation, operand)

    return result
