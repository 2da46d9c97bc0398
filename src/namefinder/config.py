"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from namefinder.embedding.encoder import DEFAULT_MODEL
from namefinder.index.search import DEFAULT_TOP_K

LOCAL_DB = Path("data/namefinder.db")


def _get_default_db_path() -> Path:
    """Prefer a local data/ database when running from a checkout, else the home folder."""
    if LOCAL_DB.exists():
        return LOCAL_DB
    return Path.home() / ".namefinder" / "namefinder.db"


@dataclass(slots=True)
class AppConfig:
    db_path: Path | None = None
    vectors_path: Path | None = None
    model_name: str = DEFAULT_MODEL
    top_k: int = DEFAULT_TOP_K

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path
