import logging
import sys


class Colors:
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_CYAN = "\033[96m"
    BRIGHT_WHITE = "\033[97m"
    BOLD = "\033[1m"


def paint(text: str, color: str, stream=None) -> str:
    """Wrap text in an ANSI color, or return it untouched when the stream is not a TTY."""
    stream = stream or sys.stdout
    if not getattr(stream, "isatty", lambda: False)():
        return text
    return f"{color}{text}{Colors.RESET}"


class ColorFormatter(logging.Formatter):
    COLOR_MAP = {
        logging.DEBUG: Colors.CYAN,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.RED + Colors.BOLD,
    }

    def __init__(self, fmt=None, use_color=True):
        super().__init__(fmt)
        self.use_color = use_color

    def format(self, record):
        message = super().format(record)
        if not self.use_color:
            return message
        color = self.COLOR_MAP.get(record.levelno, Colors.RESET)
        return f"{color}{message}{Colors.RESET}"


def setup_logger(name="minishell", level=None):
    logger = logging.getLogger(name)
    # Only attach one handler; later calls just adjust the level
    if not logger.handlers:
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(ColorFormatter("%(message)s", use_color=sys.stderr.isatty()))
        logger.addHandler(ch)
        logger.setLevel(logging.INFO)
    if level is not None:
        if isinstance(level, str):
            resolved = logging.getLevelName(level.upper())
            if not isinstance(resolved, int):
                raise ValueError(f"Unknown log level: {level}")
            level = resolved
        logger.setLevel(level)
    return logger
