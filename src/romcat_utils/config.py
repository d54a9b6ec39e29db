"""Configuration helpers for romcat."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppConfig(BaseModel):
    """Application level configuration."""

    model_config = ConfigDict(validate_default=True)

    search_location: Optional[str] = None
    data_dir: Path = Field(default=Path("~/.romcat"))
    key_dir: Optional[Path] = None
    workers: int = Field(default=1, ge=1)
    exclude_dirs: List[str] = Field(default_factory=lambda: [".git", "__pycache__"])
    follow_symlinks: bool = False
    log_level: str = "INFO"

    @field_validator("data_dir", "key_dir")
    @classmethod
    def expand_user(cls, value: Optional[Path]) -> Optional[Path]:
        return value.expanduser() if value is not None else None

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, value: str) -> str:
        return value.upper()

    def with_overrides(self, **updates: Any) -> "AppConfig":
        """Return a validated copy with ``updates`` applied; ``None`` values are ignored."""

        values = self.model_dump()
        values.update({key: value for key, value in updates.items() if value is not None})
        return AppConfig.model_validate(values)

    @property
    def key_material_path(self) -> Path:
        return self.key_dir if self.key_dir is not None else self.data_dir


def load_config(path: Path) -> AppConfig:
    """Load configuration from a YAML file."""

    data: Dict[str, Any] = {}
    if path.exists():
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return AppConfig(**data)
