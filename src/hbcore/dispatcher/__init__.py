"""Concurrent adapter dispatch."""

from .dispatcher import Dispatcher, LateResponseHook

__all__ = ["Dispatcher", "LateResponseHook"]
