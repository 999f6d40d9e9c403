"""Ad server plugin point."""

from .namespace import (
    AdServerNamespace,
    EmptyNamespace,
    MultiNamespace,
    NamespaceState,
    SingleNamespace,
    VideoSupport,
    next_state,
)

__all__ = [
    "AdServerNamespace",
    "EmptyNamespace",
    "SingleNamespace",
    "MultiNamespace",
    "NamespaceState",
    "VideoSupport",
    "next_state",
]
