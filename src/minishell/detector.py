from __future__ import annotations

import shutil
from typing import Callable, List, Optional, Sequence, Tuple

from .backends import BACKENDS, Backend, Platform, current_platform
from .logger import setup_logger

_logger = setup_logger()

Which = Callable[[str], Optional[str]]


def candidates(platform: Optional[Platform], backends: Sequence[Backend] = BACKENDS) -> Tuple[Backend, ...]:
    """Descriptors that apply to `platform`, in declaration order."""
    return tuple(b for b in backends if b.available_on(platform))


def apply_preferences(
    backends: Sequence[Backend], prefer: Sequence[str] = (), disable: Sequence[str] = ()
) -> Tuple[Backend, ...]:
    """Drop disabled backends and move preferred ones to the front, keeping relative order otherwise."""
    kept = [b for b in backends if b.name not in disable and b.executable_name not in disable]

    def rank(backend: Backend) -> int:
        for i, name in enumerate(prefer):
            if name in (backend.name, backend.executable_name):
                return i
        return len(prefer)

    # sorted() is stable, so declaration order breaks ties
    return tuple(sorted(kept, key=rank))


def detect(
    platform: Optional[Platform],
    which: Which = shutil.which,
    backends: Sequence[Backend] = BACKENDS,
    prefer: Sequence[str] = (),
    disable: Sequence[str] = (),
) -> Tuple[Backend, ...]:
    """
    Probe the search path for each backend applicable to `platform`.

    Only an existence check is made, nothing is executed. Backends for
    other platforms are never looked up, so a stray binary of the same name
    cannot make them appear. An empty result is not an error here.
    """
    found: List[Backend] = []
    for backend in candidates(platform, backends):
        path = which(backend.executable_name)
        if path:
            _logger.debug("Found %s at %s", backend.label, path)
            found.append(backend)
        else:
            _logger.debug("%s not found (%s)", backend.label, backend.executable_name)
    return apply_preferences(found, prefer, disable)


class BackendContext:
    """
    Explicit holder for the detected backends of one shell process.

    Detection runs lazily on first access and is cached for the lifetime
    of the context; `refresh()` looks again on demand.
    """

    def __init__(
        self,
        platform: Optional[Platform] = None,
        which: Which = shutil.which,
        backends: Sequence[Backend] = BACKENDS,
        prefer: Sequence[str] = (),
        disable: Sequence[str] = (),
    ) -> None:
        self.platform = platform if platform is not None else current_platform()
        self.which = which
        self.backends = tuple(backends)
        self.prefer = tuple(prefer)
        self.disable = tuple(disable)
        self._available: Optional[Tuple[Backend, ...]] = None

    @classmethod
    def from_config(cls, config, **kwargs) -> "BackendContext":
        return cls(prefer=config.prefer, disable=config.disable, **kwargs)

    @property
    def available(self) -> Tuple[Backend, ...]:
        if self._available is None:
            self._available = detect(self.platform, self.which, self.backends, self.prefer, self.disable)
            _logger.debug(
                "Detected package managers: %s", ", ".join(b.name for b in self._available) or "none"
            )
        return self._available

    @property
    def candidates(self) -> Tuple[Backend, ...]:
        return apply_preferences(candidates(self.platform, self.backends), self.prefer, self.disable)

    def refresh(self) -> Tuple[Backend, ...]:
        self._available = None
        return self.available

    def status(self) -> List[Tuple[Backend, bool]]:
        """Every platform candidate paired with whether it was detected."""
        available = self.available
        return [(b, b in available) for b in self.candidates]
