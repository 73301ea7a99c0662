import configparser
from pathlib import Path
from typing import List, Optional

from .logger import setup_logger

_logger = setup_logger()


def _split_names(value: str) -> List[str]:
    return [v.strip().lower() for v in value.split(",") if v.strip()]


class Config:
    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self.config_dir = Path(config_dir) if config_dir else Path.home() / ".config" / "minishell"
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_path = self.config_dir / "minishell.conf"

        # Default values
        self.log_level: str = "INFO"
        self.history_file: Path = self.config_dir / "history"

        # Package manager defaults
        self.use_sudo: bool = True
        self.timeout: Optional[float] = 3600.0
        self.parallel_list: bool = False
        self.max_workers: int = 4
        self.prefer: List[str] = []
        self.disable: List[str] = []

        self.load()

    def load(self) -> None:
        parser = configparser.ConfigParser()
        if not self.config_path.exists():
            _logger.debug(f"Config file {self.config_path} not found. Creating default config.")
            self._write_default_config()

        parser.read(self.config_path)

        # [general]
        self.log_level = parser.get("general", "log_level", fallback=self.log_level).upper()
        hf = parser.get("general", "history_file", fallback="")
        if hf:
            self.history_file = Path(hf).expanduser()

        # [packages]
        if parser.has_section("packages"):
            self.use_sudo = parser.getboolean("packages", "use_sudo", fallback=True)
            self.parallel_list = parser.getboolean("packages", "parallel_list", fallback=False)
            self.max_workers = max(1, parser.getint("packages", "max_workers", fallback=4))

            # 0 disables the bound
            timeout = parser.getfloat("packages", "timeout", fallback=3600.0)
            self.timeout = timeout if timeout > 0 else None

            self.prefer = _split_names(parser.get("packages", "prefer", fallback=""))
            self.disable = _split_names(parser.get("packages", "disable", fallback=""))

    def _write_default_config(self) -> None:
        parser = configparser.ConfigParser()
        parser["general"] = {
            "log_level": self.log_level,
            "history_file": str(self.history_file),
        }
        parser["packages"] = {
            "use_sudo": str(self.use_sudo).lower(),
            "timeout": str(int(self.timeout or 0)),
            "parallel_list": str(self.parallel_list).lower(),
            "max_workers": str(self.max_workers),
            "prefer": ",".join(self.prefer),
            "disable": ",".join(self.disable),
        }
        with self.config_path.open("w") as f:
            parser.write(f)
        _logger.info(f"Default config written to {self.config_path}")
