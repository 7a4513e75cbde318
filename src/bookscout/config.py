# ABOUTME: Runtime configuration for scraping and the entity catalog.
# ABOUTME: Settings are read once from the environment and passed into collaborators.

import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DB_PATH = Path.home() / ".bookscout" / "catalog.db"
DEFAULT_SCRAPERS_DIR = Path("scrapers")
DEFAULT_TIMEOUT = 30.0
DEFAULT_FANDOM_COMMAND = ("node", "scraper.js")
DEFAULT_INSTALL_COMMAND = ("npm", "install")


def _command(raw: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if raw is None:
        return default
    return tuple(shlex.split(raw))


@dataclass(frozen=True)
class ScoutSettings:
    """Validated settings for building extractors and opening the catalog.

    An empty ``install_command`` disables the dependency-install step of
    the external scrapers. A non-empty ``goodreads_command`` scrapes
    Goodreads with an external scraper in ``goodreads_dir`` instead of
    in-process. ``user_agent`` None keeps the HTTP client's browser default.
    """

    db_path: Path = DEFAULT_DB_PATH
    timeout: float = DEFAULT_TIMEOUT
    scrapers_dir: Path = DEFAULT_SCRAPERS_DIR
    fandom_command: tuple[str, ...] = DEFAULT_FANDOM_COMMAND
    install_command: tuple[str, ...] = DEFAULT_INSTALL_COMMAND
    user_agent: str | None = None
    goodreads_command: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if not self.fandom_command:
            raise ValueError("fandom_command must not be empty")

    @property
    def fandom_dir(self) -> Path:
        return self.scrapers_dir / "Fandom-Scraper"

    @property
    def goodreads_dir(self) -> Path:
        return self.scrapers_dir / "Goodreads-Scraper"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ScoutSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        timeout_raw = source.get("BOOKSCOUT_TIMEOUT", "").strip()
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
        except ValueError as exc:
            raise ValueError(f"BOOKSCOUT_TIMEOUT must be a number, got {timeout_raw!r}") from exc

        db_raw = source.get("BOOKSCOUT_DB", "").strip()
        scrapers_raw = source.get("BOOKSCOUT_SCRAPERS_DIR", "").strip()

        return cls(
            db_path=Path(db_raw).expanduser() if db_raw else DEFAULT_DB_PATH,
            timeout=timeout,
            scrapers_dir=Path(scrapers_raw).expanduser() if scrapers_raw else DEFAULT_SCRAPERS_DIR,
            fandom_command=_command(
                source.get("BOOKSCOUT_FANDOM_COMMAND"), DEFAULT_FANDOM_COMMAND
            ),
            install_command=_command(
                source.get("BOOKSCOUT_INSTALL_COMMAND"), DEFAULT_INSTALL_COMMAND
            ),
            user_agent=source.get("BOOKSCOUT_USER_AGENT", "").strip() or None,
            goodreads_command=_command(source.get("BOOKSCOUT_GOODREADS_COMMAND"), ()),
        )
