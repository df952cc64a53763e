"""
Persisted user preferences.

Holds the credential, the target list and the default overrides between
sessions. A missing preferences file is a valid, empty state.
"""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError

from pickllm.core.errors import PreferencesError
from pickllm.core.models import RunOverrides, Target

logger = structlog.get_logger()


class Preferences(BaseModel):
    """User preferences as stored on disk."""

    credential: str | None = None
    targets: list[Target] | None = None
    overrides: RunOverrides = Field(default_factory=RunOverrides)


class PreferencesStore:
    """YAML-backed preferences file."""

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def load(self) -> Preferences:
        """Read preferences, returning defaults when the file does not exist."""
        if not self.path.exists():
            logger.debug("No preferences file, using defaults", path=str(self.path))
            return Preferences()

        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            return Preferences.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            raise PreferencesError(f"Cannot read preferences from {self.path}: {e}") from e

    def save(self, preferences: Preferences, remember_credential: bool = True) -> None:
        """
        Write preferences to disk.

        Args:
            preferences: Preferences to persist
            remember_credential: Drop the credential from the file when False
        """
        exclude = None if remember_credential else {"credential"}
        data = preferences.model_dump(mode="json", exclude=exclude, exclude_none=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False)
        logger.debug("Preferences saved", path=str(self.path))
