"""
Ad server namespace attacher.

Ad server modules call register_video_support to expose their video URL
builder. With a single ad server bundled, its handlers live directly at
``ad_server``. Once a second distinct name registers, every ad server is
reached through ``ad_servers[name]`` and the earlier single entry moves
there too.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Optional, Union

VideoAdUrlBuilder = Callable[..., str]


@dataclass
class VideoSupport:
    """Functions an ad server module provides for video."""

    build_video_ad_url: VideoAdUrlBuilder


@dataclass(frozen=True)
class EmptyNamespace:
    """No ad server registered yet."""


@dataclass(frozen=True)
class SingleNamespace:
    """Exactly one ad server name seen."""

    name: str
    handlers: VideoSupport


@dataclass(frozen=True)
class MultiNamespace:
    """Two or more distinct ad server names seen."""

    servers: Mapping[str, VideoSupport]


NamespaceState = Union[EmptyNamespace, SingleNamespace, MultiNamespace]


def _as_video_support(video_support: Any) -> VideoSupport:
    if isinstance(video_support, VideoSupport):
        return video_support
    if isinstance(video_support, Mapping):
        builder = video_support.get("build_video_ad_url") or video_support.get(
            "buildVideoAdUrl"
        )
    else:
        builder = getattr(video_support, "build_video_ad_url", None)
    if not callable(builder):
        raise TypeError("video support must provide a callable build_video_ad_url")
    return VideoSupport(build_video_ad_url=builder)


def next_state(
    state: NamespaceState, name: str, handlers: VideoSupport
) -> NamespaceState:
    """Transition for one register_video_support call."""
    if isinstance(state, EmptyNamespace):
        return SingleNamespace(name, handlers)
    if isinstance(state, SingleNamespace):
        if state.name == name:
            return SingleNamespace(name, handlers)
        return MultiNamespace({state.name: state.handlers, name: handlers})
    servers = dict(state.servers)
    servers[name] = handlers
    return MultiNamespace(servers)


class AdServerNamespace:
    """Mount point where ad server video helpers become reachable by name."""

    def __init__(self):
        self._state: NamespaceState = EmptyNamespace()

    @property
    def state(self) -> NamespaceState:
        return self._state

    def register_video_support(self, name: str, video_support: Any) -> None:
        """
        Enable video support for an ad server.

        Args:
            name: Identifying name of the ad server (e.g. 'dfp')
            video_support: VideoSupport, or any object / mapping with a
                build_video_ad_url callable
        """
        if not name:
            raise ValueError("Ad server name must be a non-empty string")
        self._state = next_state(self._state, name, _as_video_support(video_support))

    @property
    def ad_server(self) -> Optional[VideoSupport]:
        """Handlers of the only registered ad server, if exactly one."""
        if isinstance(self._state, SingleNamespace):
            return self._state.handlers
        return None

    @property
    def ad_servers(self) -> Optional[Mapping[str, VideoSupport]]:
        """Handlers by ad server name, once more than one is registered."""
        if isinstance(self._state, MultiNamespace):
            return MappingProxyType(dict(self._state.servers))
        return None

    def get(self, name: str) -> Optional[VideoSupport]:
        """Handlers for an ad server name in either shape."""
        if isinstance(self._state, SingleNamespace):
            return self._state.handlers if self._state.name == name else None
        if isinstance(self._state, MultiNamespace):
            return self._state.servers.get(name)
        return None

    def build_video_ad_url(self, name: str, bid: Any, options: Any = None) -> str:
        """
        Build a video ad URL through the named ad server.

        Raises:
            KeyError: If no ad server with that name is registered
        """
        handlers = self.get(name)
        if handlers is None:
            raise KeyError(f"No video support registered for ad server: {name}")
        return handlers.build_video_ad_url(bid, options or {})
