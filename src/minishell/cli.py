# cli.py
import argparse
import os
import sys
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.history import FileHistory

from . import __version__
from .config import Config
from .detector import BackendContext
from .dispatcher import Dispatcher
from .logger import Colors, setup_logger
from .shell import Shell

SHELL_NAME = "mini-shell"

_logger = setup_logger()


def build_shell(config: Config) -> Shell:
    context = BackendContext.from_config(config)
    dispatcher = Dispatcher.from_config(context, config)
    return Shell(dispatcher)


def _prompt() -> ANSI:
    return ANSI(f"{Colors.CYAN}{os.getcwd()}{Colors.YELLOW}>{Colors.RESET} ")


def repl(shell: Shell, history_file: Path) -> int:
    history_file.parent.mkdir(parents=True, exist_ok=True)
    session: PromptSession = PromptSession(history=FileHistory(str(history_file)))

    print(f"{Colors.GREEN}{SHELL_NAME}{Colors.RESET} {Colors.BRIGHT_BLUE}v{__version__}{Colors.RESET}")
    platform = shell.dispatcher.context.platform
    print(f"{Colors.BRIGHT_CYAN}Platform:{Colors.RESET} {Colors.CYAN}{platform.value if platform else 'unknown'}{Colors.RESET}")
    print(f"{Colors.BRIGHT_WHITE}Type 'help' for available commands, 'exit' to quit{Colors.RESET}\n")

    while shell.running:
        try:
            line = session.prompt(_prompt())
        except KeyboardInterrupt:
            # Ctrl-C drops the current line
            continue
        except EOFError:
            break
        try:
            shell.execute(line)
        except KeyboardInterrupt:
            print()
            shell.last_status = 130
    return shell.last_status


def main(argv=None):
    parser = argparse.ArgumentParser(prog="minishell", description="Interactive shell with a unified package manager")
    parser.add_argument("-c", "--command", help="Run a single command line and exit with its status")
    parser.add_argument("--log-level", help="Override the configured log level (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Same as --log-level DEBUG")
    parser.add_argument("--config-dir", type=Path, help="Directory holding minishell.conf")
    parser.add_argument("--version", action="version", version=f"{SHELL_NAME} {__version__}")
    args = parser.parse_args(argv)

    # ------------------------
    # Initialize config + logging
    # ------------------------
    config = Config(args.config_dir)
    level = "DEBUG" if args.verbose else (args.log_level or config.log_level)
    try:
        setup_logger(level=level)
    except ValueError as e:
        parser.error(str(e))

    shell = build_shell(config)

    if args.command is not None:
        try:
            status = shell.execute(args.command)
        except KeyboardInterrupt:
            print()
            status = 130
        sys.exit(status)

    sys.exit(repl(shell, config.history_file))


if __name__ == "__main__":
    main()
