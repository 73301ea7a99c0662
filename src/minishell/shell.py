from __future__ import annotations

import argparse
import functools
import os
import subprocess
import sys
from typing import Callable, Dict, List, Optional, TextIO

from .backends import Verb
from .builtins import BUILTINS
from .dispatcher import Dispatcher
from .errors import MinishellError, UsageError
from .logger import setup_logger
from .models import GenericRequest
from .reporter import exit_code, render, render_status

_logger = setup_logger()

HELP_TEXT = """\
Available commands:
  cd <dir>       - Change directory
  pwd            - Print working directory
  ls [dir]       - List directory contents
  mkdir <dir>    - Create directory
  rm <file/dir>  - Remove file or directory (-r, -f)
  cat <file>     - Display file contents
  echo <text>    - Display text
  touch <file>   - Create empty file
  clear          - Clear screen
  pkg            - Package management commands:
     pkg install <package>  - Install a package
     pkg search <query>     - Search for packages
     pkg update [package]   - Update one package, or everything
     pkg list               - List installed packages from every package manager
     pkg managers           - Show which package managers were found
     (add --backend NAME to use one package manager explicitly)
  help           - Display this help
  exit           - Exit the shell

You can also execute any system command"""

PKG_USAGE = """\
Usage: pkg <command> [arguments] [--backend NAME]
Commands: install, search, update, list, managers"""


class _PkgArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports errors instead of exiting the shell."""

    def error(self, message):
        raise UsageError(f"{self.prog}: {message}")


def build_pkg_parser() -> argparse.ArgumentParser:
    parser = _PkgArgumentParser(prog="pkg", add_help=False)
    subparsers = parser.add_subparsers(dest="command", required=True, parser_class=_PkgArgumentParser)

    def add_backend_option(p):
        p.add_argument("--backend", "-b", help="Package manager to use")

    # install / i
    p_install = subparsers.add_parser("install", aliases=["i"], add_help=False)
    p_install.add_argument("package")
    add_backend_option(p_install)
    p_install.set_defaults(verb=Verb.INSTALL)

    # search / s
    p_search = subparsers.add_parser("search", aliases=["s"], add_help=False)
    p_search.add_argument("package", metavar="query")
    add_backend_option(p_search)
    p_search.set_defaults(verb=Verb.SEARCH)

    # update / u / upgrade
    p_update = subparsers.add_parser("update", aliases=["u", "upgrade"], add_help=False)
    p_update.add_argument("package", nargs="?")
    add_backend_option(p_update)
    p_update.set_defaults(verb=Verb.UPDATE)

    # list / ls
    p_list = subparsers.add_parser("list", aliases=["ls"], add_help=False)
    add_backend_option(p_list)
    p_list.set_defaults(verb=Verb.LIST, package=None)

    # managers / pm
    p_managers = subparsers.add_parser("managers", aliases=["pm"], add_help=False)
    p_managers.add_argument("--refresh", action="store_true", help="Probe the search path again")
    p_managers.set_defaults(verb=None)

    return parser


class Shell:
    """
    Line-oriented command interpreter.

    A line is split on whitespace into a command and its arguments.
    Built-ins are looked up in a dispatch table, `pkg` goes to the package
    dispatcher and anything else is handed to the system shell.
    """

    def __init__(self, dispatcher: Dispatcher, stdout: Optional[TextIO] = None) -> None:
        self.dispatcher = dispatcher
        self.stdout = stdout or sys.stdout
        self.last_status = 0
        self.running = True
        self.pkg_parser = build_pkg_parser()

        self.commands: Dict[str, Callable[[List[str]], int]] = {
            name: functools.partial(handler, self) for name, handler in BUILTINS.items()
        }
        self.commands.update(
            {
                "help": self.cmd_help,
                "exit": self.cmd_exit,
                "quit": self.cmd_exit,
                "pkg": self.cmd_pkg,
                "package": self.cmd_pkg,
            }
        )

    def write(self, text: str) -> None:
        print(text, file=self.stdout)

    def execute(self, line: str) -> int:
        parts = line.split()
        if not parts:
            return self.last_status

        name, args = parts[0], parts[1:]
        handler = self.commands.get(name)
        try:
            status = handler(args) if handler else self.run_external(line)
        except UsageError as e:
            _logger.error(str(e))
            status = 2
        except MinishellError as e:
            _logger.error(str(e))
            status = 1

        self.last_status = status
        return status

    # --------------------------------------------------------
    # Shell-level commands
    # --------------------------------------------------------

    def cmd_help(self, args: List[str]) -> int:
        self.write(HELP_TEXT)
        return 0

    def cmd_exit(self, args: List[str]) -> int:
        status = self.last_status
        if args:
            try:
                status = int(args[0])
            except ValueError:
                raise UsageError(f"exit: {args[0]}: numeric argument required")
        self.running = False
        return status

    def cmd_pkg(self, args: List[str]) -> int:
        if not args or args[0] in ("help", "-h", "--help"):
            self.write(PKG_USAGE)
            return 0 if args else 2

        ns = self.pkg_parser.parse_args(args)
        if ns.verb is None:
            context = self.dispatcher.context
            if ns.refresh:
                context.refresh()
            self.write(render_status(context.status(), context.platform, self.stdout))
            return 0

        request = GenericRequest(verb=ns.verb, query=ns.package, backend=ns.backend)
        outcome = self.dispatcher.dispatch(request)
        text = render(outcome, self.stdout)
        if text:
            self.write(text)
        return exit_code(outcome)

    # --------------------------------------------------------
    # Anything else goes to the system shell
    # --------------------------------------------------------

    def run_external(self, line: str) -> int:
        argv = ["cmd", "/C", line] if os.name == "nt" else ["sh", "-c", line]
        try:
            completed = subprocess.run(argv)
        except OSError as e:
            self.write(f"Failed to execute command: {e}")
            return 127
        if completed.returncode < 0:
            self.write("Command terminated by signal")
            return 128 - completed.returncode
        if completed.returncode != 0:
            self.write(f"Command exited with non-zero status code: {completed.returncode}")
        return completed.returncode
