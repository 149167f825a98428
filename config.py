from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from gettile.assembler import LEGACY_COMMENT_SUFFIX

DEFAULT_INI = "gettile.ini"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class TileConfig:
    legacy_comments: bool = True
    comment_suffix: str = LEGACY_COMMENT_SUFFIX
    log_level: str = "INFO"
    ini_path: Path | None = None

    @classmethod
    def load(cls, ini_path: str | Path | None = None) -> "TileConfig":
        cfg = cls()
        path = Path(ini_path or DEFAULT_INI)
        if path.exists():
            import configparser

            parser = configparser.ConfigParser()
            parser.read(path)
            comments_section = parser["comments"] if "comments" in parser else None
            if comments_section:
                cfg.legacy_comments = comments_section.getboolean(
                    "legacy_enabled", fallback=cfg.legacy_comments
                )
                suffix = comments_section.get("suffix", fallback=cfg.comment_suffix).strip()
                if suffix:
                    cfg.comment_suffix = suffix

            logging_section = parser["logging"] if "logging" in parser else None
            if logging_section:
                level = logging_section.get("level", fallback=cfg.log_level).strip().upper()
                if level in LOG_LEVELS:
                    cfg.log_level = level
        cfg.ini_path = path
        return cfg

    def save(self) -> None:
        if self.ini_path is None:
            return
        import configparser

        parser = configparser.ConfigParser()
        parser["comments"] = {
            "legacy_enabled": "true" if self.legacy_comments else "false",
            "suffix": self.comment_suffix,
        }
        parser["logging"] = {
            "level": self.log_level,
        }
        with self.ini_path.open("w") as fh:
            parser.write(fh)
