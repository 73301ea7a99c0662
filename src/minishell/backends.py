"""
Static descriptors for the package managers minishell knows how to drive.

Every descriptor covers all four verbs. A verb a tool cannot perform is
declared UNSUPPORTED rather than left out, so the translator can report it.
Templates carry the non-interactive flags each tool needs, since output is
captured rather than shown live.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Mapping, Optional, Tuple, Union

from .errors import UnknownBackend


class Platform(Enum):
    WINDOWS = "Windows"
    MACOS = "MacOS"
    LINUX = "Linux"


class Verb(Enum):
    INSTALL = "install"
    SEARCH = "search"
    UPDATE = "update"
    LIST = "list"

    @property
    def mutating(self) -> bool:
        return self in (Verb.INSTALL, Verb.UPDATE)


@dataclass(frozen=True)
class Slot:
    """Placeholder for the package/query inside an argument template."""

    required: bool = True
    fallback: Tuple[str, ...] = ()


PACKAGE = Slot()


def optional_package(*fallback: str) -> Slot:
    """Slot that may stay empty; `fallback` replaces it when no package is given."""
    return Slot(required=False, fallback=tuple(fallback))


UNSUPPORTED = None

Template = Optional[Tuple[Union[str, Slot], ...]]

ALL_PLATFORMS = frozenset(Platform)


# Compared by identity: verb_templates is a dict
@dataclass(frozen=True, eq=False)
class Backend:
    name: str
    label: str
    executable_name: str
    supported_platforms: FrozenSet[Platform]
    verb_templates: Mapping[Verb, Template]
    needs_root: bool = False
    # Lines a search prints even when nothing matched
    search_noise: Tuple[str, ...] = ()

    def supports(self, verb: Verb) -> bool:
        return self.verb_templates.get(verb, UNSUPPORTED) is not UNSUPPORTED

    def available_on(self, platform: Optional[Platform]) -> bool:
        return platform in self.supported_platforms

    def __str__(self) -> str:
        return self.label


def _templates(install: Template, search: Template, update: Template, list_: Template) -> Mapping[Verb, Template]:
    return {Verb.INSTALL: install, Verb.SEARCH: search, Verb.UPDATE: update, Verb.LIST: list_}


# Declaration order is priority order: the platform's canonical manager
# comes first, cross-platform ones last.
BACKENDS: Tuple[Backend, ...] = (
    # Windows
    Backend(
        name="chocolatey",
        label="Chocolatey",
        executable_name="choco",
        supported_platforms=frozenset({Platform.WINDOWS}),
        verb_templates=_templates(
            ("install", PACKAGE, "-y"),
            ("search", PACKAGE),
            ("upgrade", optional_package("all"), "-y"),
            ("list",),
        ),
    ),
    Backend(
        name="winget",
        label="WinGet",
        executable_name="winget",
        supported_platforms=frozenset({Platform.WINDOWS}),
        verb_templates=_templates(
            ("install", PACKAGE, "--accept-package-agreements", "--accept-source-agreements"),
            ("search", PACKAGE, "--accept-source-agreements"),
            ("upgrade", optional_package("--all"), "--accept-package-agreements", "--accept-source-agreements"),
            ("list", "--accept-source-agreements"),
        ),
    ),
    Backend(
        name="scoop",
        label="Scoop",
        executable_name="scoop",
        supported_platforms=frozenset({Platform.WINDOWS}),
        verb_templates=_templates(
            ("install", PACKAGE),
            ("search", PACKAGE),
            ("update", optional_package("*")),
            ("list",),
        ),
    ),
    # macOS
    Backend(
        name="homebrew",
        label="Homebrew",
        executable_name="brew",
        supported_platforms=frozenset({Platform.MACOS}),
        verb_templates=_templates(
            ("install", PACKAGE),
            ("search", PACKAGE),
            ("upgrade", optional_package()),
            ("list",),
        ),
    ),
    Backend(
        name="macports",
        label="MacPorts",
        executable_name="port",
        supported_platforms=frozenset({Platform.MACOS}),
        verb_templates=_templates(
            ("-N", "install", PACKAGE),
            ("search", PACKAGE),
            ("-N", "upgrade", optional_package("outdated")),
            ("installed",),
        ),
        needs_root=True,
    ),
    # Linux
    Backend(
        name="apt",
        label="APT",
        executable_name="apt",
        supported_platforms=frozenset({Platform.LINUX}),
        verb_templates=_templates(
            ("install", "-y", PACKAGE),
            ("search", PACKAGE),
            ("upgrade", "-y", optional_package()),
            ("list", "--installed"),
        ),
        needs_root=True,
        search_noise=(r"^Sorting\.\.\.", r"^Full Text Search\.\.\.", r"^WARNING: apt does not have a stable CLI"),
    ),
    Backend(
        name="dnf",
        label="DNF",
        executable_name="dnf",
        supported_platforms=frozenset({Platform.LINUX}),
        verb_templates=_templates(
            ("install", "-y", PACKAGE),
            ("search", PACKAGE),
            ("upgrade", "-y", optional_package()),
            ("list", "--installed"),
        ),
        needs_root=True,
        search_noise=(r"^Last metadata expiration check", r"^Updating and loading repositories", r"^Repositories loaded"),
    ),
    Backend(
        name="pacman",
        label="Pacman",
        executable_name="pacman",
        supported_platforms=frozenset({Platform.LINUX}),
        verb_templates=_templates(
            ("-S", "--noconfirm", PACKAGE),
            ("-Ss", PACKAGE),
            ("-Syu", "--noconfirm", optional_package()),
            ("-Q",),
        ),
        needs_root=True,
    ),
    Backend(
        name="zypper",
        label="Zypper",
        executable_name="zypper",
        supported_platforms=frozenset({Platform.LINUX}),
        verb_templates=_templates(
            ("--non-interactive", "install", PACKAGE),
            ("search", PACKAGE),
            ("--non-interactive", "update", optional_package()),
            ("search", "--installed-only"),
        ),
        needs_root=True,
        search_noise=(r"^Loading repository data\.\.\.", r"^Reading installed packages\.\.\."),
    ),
    # Cross-platform
    Backend(
        name="snap",
        label="Snap",
        executable_name="snap",
        supported_platforms=ALL_PLATFORMS,
        verb_templates=_templates(
            ("install", PACKAGE),
            ("find", PACKAGE),
            ("refresh", optional_package()),
            ("list",),
        ),
        needs_root=True,
    ),
    Backend(
        name="flatpak",
        label="Flatpak",
        executable_name="flatpak",
        supported_platforms=ALL_PLATFORMS,
        verb_templates=_templates(
            ("install", "-y", PACKAGE),
            ("search", PACKAGE),
            ("update", "-y", optional_package()),
            ("list", "--app"),
        ),
    ),
)


def current_platform() -> Optional[Platform]:
    if sys.platform.startswith("win"):
        return Platform.WINDOWS
    if sys.platform == "darwin":
        return Platform.MACOS
    if sys.platform.startswith("linux"):
        return Platform.LINUX
    return None


def get_backend(name: str, backends: Tuple[Backend, ...] = BACKENDS) -> Backend:
    """Look a backend up by name, label or executable (`brew`, `choco`, `port`)."""
    needle = name.strip().lower()
    for backend in backends:
        if needle in (backend.name, backend.label.lower(), backend.executable_name):
            return backend
    raise UnknownBackend(name)
