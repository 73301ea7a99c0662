"""
minishell - An interactive shell with one package-management interface
over whichever native package managers the host has.

Modules:
- cli: Command-line entry point and interactive loop.
- shell: Line interpreter, built-in routing and the `pkg` command.
- builtins: File-system built-ins (cd, ls, mkdir, rm, cat, ...).
- backends: Package manager descriptors.
- detector: Backend detection and the per-process backend context.
- translator: Generic request to concrete argv.
- dispatcher: Backend selection and invocation.
- runner: Child process execution.
- reporter: Result formatting and exit codes.
- config: Configuration management.
"""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main", "__version__"]
