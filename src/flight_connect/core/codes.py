"""
Short Code Generation

Produces the 3-letter codes used for session codes, participant personal
codes and validation keys, and resolves collisions by querying a
caller-supplied availability check.

The check is only a pre-filter: callers re-check at insert time (a
storage-level constraint or a locked lookup) and treat a conflict there as
authoritative.
"""

import logging
import secrets
import string
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase
DEFAULT_CODE_LENGTH = 3
DEFAULT_MAX_ATTEMPTS = 1000

AvailabilityCheck = Callable[[str], Awaitable[bool]]


def generate_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    """Draw ``length`` letters uniformly from A-Z."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


async def generate_unique_code(
    is_available: AvailabilityCheck,
    length: int = DEFAULT_CODE_LENGTH,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """
    Generate a code that the availability check accepts.

    Draws candidates until ``is_available(candidate)`` returns True. After
    ``max_attempts`` rejected candidates a fresh candidate with one random digit
    appended is returned WITHOUT re-checking; the residual collision chance
    is left to the caller's insert-time check.

    Args:
        is_available: Async predicate, True when the candidate is free
        length: Number of letters per code
        max_attempts: Number of checks before falling back

    Returns:
        ``length`` uppercase letters, or ``length`` letters plus one digit
        on fallback
    """
    for _ in range(max_attempts):
        candidate = generate_code(length)
        if await is_available(candidate):
            return candidate

    fallback = f"{generate_code(length)}{secrets.randbelow(10)}"
    logger.warning(
        f"No free {length}-letter code after {max_attempts} attempts, "
        f"falling back to unchecked code {fallback}"
    )
    return fallback
