"""Orchestration core utilities."""

from .id_generator import (
    ALPHANUMERIC_CHARS,
    generate_alphanumeric_id,
    generate_transaction_id,
)

__all__ = [
    'ALPHANUMERIC_CHARS',
    'generate_alphanumeric_id',
    'generate_transaction_id',
]
