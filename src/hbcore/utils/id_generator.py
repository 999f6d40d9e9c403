"""
ID generation utilities for auctions.

Provides functions to generate unique identifiers for auctions and
S2S transactions when the caller does not supply one.
"""

import secrets
import string

# Character set for alphanumeric IDs (letters and numbers)
ALPHANUMERIC_CHARS = string.ascii_lowercase + string.digits


def generate_alphanumeric_id(length: int = 16) -> str:
    """
    Generate a random alphanumeric ID without prefix.

    Args:
        length: Length of the ID (default 16)

    Returns:
        A random alphanumeric string
        Example: "a7b3x9k2m4n1p5q8"
    """
    return "".join(secrets.choice(ALPHANUMERIC_CHARS) for _ in range(length))


def generate_transaction_id(length: int = 16, prefix: str = "tid_") -> str:
    """
    Generate a transaction ID for an aggregated S2S request.

    Args:
        length: Length of the random portion (default 16)
        prefix: Prefix for the ID (default "tid_")

    Returns:
        A transaction ID in format: {prefix}{random_alphanumeric}
        Example: "tid_a7b3x9k2m4n1p5q8"
    """
    return f"{prefix}{generate_alphanumeric_id(length)}"
