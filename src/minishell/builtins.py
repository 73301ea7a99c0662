"""
Built-in file-system commands.

Each handler takes the shell and the argument list, writes to
`shell.stdout` and returns an exit status. Errors are printed, never
raised, so a failing command leaves the shell running.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, List

from .logger import Colors, paint

if TYPE_CHECKING:
    from .shell import Shell

Handler = Callable[["Shell", List[str]], int]


def resolve_path(arg: str) -> Path:
    """Expand `~` and anchor relative paths at the current directory."""
    path = Path(arg).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


def _say(shell: "Shell", text: str = "", end: str = "\n") -> None:
    print(text, end=end, file=shell.stdout)


def cmd_cd(shell: "Shell", args: List[str]) -> int:
    target = resolve_path(args[0]) if args else Path.home()
    try:
        os.chdir(target)
    except OSError as e:
        _say(shell, f"cd: {args[0] if args else target}: {e.strerror or e}")
        return 1
    return 0


def cmd_pwd(shell: "Shell", args: List[str]) -> int:
    _say(shell, str(Path.cwd()))
    return 0


def cmd_ls(shell: "Shell", args: List[str]) -> int:
    target = resolve_path(args[0]) if args else Path.cwd()
    try:
        entries = sorted(target.iterdir(), key=lambda p: p.name.lower())
    except OSError as e:
        _say(shell, f"ls: cannot access '{target}': {e.strerror or e}")
        return 1

    for entry in entries:
        if entry.is_dir():
            _say(shell, paint(entry.name + "/", Colors.BRIGHT_BLUE, shell.stdout))
        elif os.access(entry, os.X_OK):
            _say(shell, paint(entry.name, Colors.BRIGHT_GREEN, shell.stdout))
        else:
            _say(shell, entry.name)
    return 0


def cmd_mkdir(shell: "Shell", args: List[str]) -> int:
    if not args:
        _say(shell, "mkdir: missing operand")
        return 1
    status = 0
    for name in args:
        try:
            resolve_path(name).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            _say(shell, f"mkdir: cannot create directory '{name}': {e.strerror or e}")
            status = 1
    return status


def cmd_rm(shell: "Shell", args: List[str]) -> int:
    recursive = force = False
    targets: List[str] = []
    for arg in args:
        if arg == "--recursive":
            recursive = True
        elif arg == "--force":
            force = True
        elif arg.startswith("-") and len(arg) > 1:
            # Combined short flags such as -rf
            recursive = recursive or "r" in arg or "R" in arg
            force = force or "f" in arg
        else:
            targets.append(arg)

    if not targets:
        _say(shell, "rm: missing operand")
        return 1

    status = 0
    for name in targets:
        path = resolve_path(name)
        if not path.exists() and not path.is_symlink():
            if not force:
                _say(shell, f"rm: cannot remove '{name}': No such file or directory")
                status = 1
            continue
        try:
            if path.is_dir() and not path.is_symlink():
                if not recursive:
                    _say(shell, f"rm: cannot remove '{name}': Is a directory")
                    status = 1
                    continue
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as e:
            if not force:
                _say(shell, f"rm: cannot remove '{name}': {e.strerror or e}")
                status = 1
    return status


def cmd_cat(shell: "Shell", args: List[str]) -> int:
    if not args:
        _say(shell, "cat: missing operand")
        return 1
    status = 0
    for name in args:
        try:
            _say(shell, resolve_path(name).read_text(errors="replace"), end="")
        except OSError as e:
            _say(shell, f"cat: {name}: {e.strerror or e}")
            status = 1
    return status


def cmd_echo(shell: "Shell", args: List[str]) -> int:
    _say(shell, " ".join(args))
    return 0


def cmd_touch(shell: "Shell", args: List[str]) -> int:
    if not args:
        _say(shell, "touch: missing operand")
        return 1
    status = 0
    for name in args:
        try:
            resolve_path(name).touch(exist_ok=True)
        except OSError as e:
            _say(shell, f"touch: cannot touch '{name}': {e.strerror or e}")
            status = 1
    return status


def cmd_clear(shell: "Shell", args: List[str]) -> int:
    if os.name == "nt":
        subprocess.run(["cmd", "/C", "cls"])
    else:
        _say(shell, "\033[2J\033[1;1H", end="")
        shell.stdout.flush()
    return 0


BUILTINS: Dict[str, Handler] = {
    "cd": cmd_cd,
    "pwd": cmd_pwd,
    "ls": cmd_ls,
    "mkdir": cmd_mkdir,
    "rm": cmd_rm,
    "cat": cmd_cat,
    "echo": cmd_echo,
    "touch": cmd_touch,
    "clear": cmd_clear,
}
