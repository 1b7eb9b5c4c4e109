"""Level configuration store (the configuration provider)."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from note_tutor.errors import ConfigurationError, ConfigurationNotFound
from note_tutor.models.level import (
    ClefDistribution,
    DifficultyLevel,
    LevelConfiguration,
    NoteRange,
    ProgressionCriteria,
)
from note_tutor.models.note import Clef, make_note_id

logger = structlog.get_logger()

DEFAULT_LEVELS_PATH = Path(__file__).parent.parent / "levels.yaml"


def generate_base_weights(note_range: NoteRange, base_weight: float) -> dict[str, float]:
    """Assign ``base_weight`` to every natural note id in the range."""
    weights: dict[str, float] = {}
    for clef in (Clef.TREBLE, Clef.BASS):
        for octave in note_range.for_clef(clef).octaves():
            for name in note_range.allowed_notes:
                weights[make_note_id(name, octave, clef)] = base_weight
    return weights


def _parse_level(level: DifficultyLevel, data: Mapping[str, Any]) -> LevelConfiguration:
    note_range = NoteRange.model_validate(data["note_range"])
    base_weights = generate_base_weights(note_range, float(data.get("base_weight", 1.0)))
    base_weights.update({k: float(v) for k, v in (data.get("priorities") or {}).items()})
    return LevelConfiguration(
        level=level,
        note_range=note_range,
        clef_distribution=ClefDistribution.model_validate(data["clef_distribution"]),
        base_weights=base_weights,
        progression_criteria=ProgressionCriteria.model_validate(data["progression_criteria"]),
    )


class LevelConfigStore:
    """Read-mostly table of level configurations in progression order.

    Args:
        configurations: Level configurations, in progression order.
    """

    def __init__(self, configurations: list[LevelConfiguration]) -> None:
        if not configurations:
            raise ConfigurationError("At least one level must be configured")
        seen = [config.level for config in configurations]
        if len(set(seen)) != len(seen):
            raise ConfigurationError(f"Duplicate levels in configuration: {seen}")
        self._order: tuple[DifficultyLevel, ...] = tuple(seen)
        self._configs: dict[DifficultyLevel, LevelConfiguration] = {
            config.level: config for config in configurations
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LevelConfigStore":
        """Build a store from the parsed ``levels.yaml`` structure.

        Raises:
            ConfigurationError: On unknown level names, missing entries or
                values that fail validation.
        """
        levels = data.get("levels") or {}
        order = data.get("order") or list(levels)
        configurations = []
        for name in order:
            try:
                level = DifficultyLevel(name)
            except ValueError as e:
                raise ConfigurationError(f"Unknown difficulty level: {name!r}") from e
            if name not in levels:
                raise ConfigurationError(f"Level {name!r} is ordered but not configured")
            try:
                configurations.append(_parse_level(level, levels[name]))
            except (KeyError, TypeError, ValidationError) as e:
                raise ConfigurationError(f"Invalid configuration for level {name!r}: {e}") from e

        unordered = set(levels) - set(order)
        if unordered:
            raise ConfigurationError(f"Levels missing from order: {sorted(unordered)}")
        return cls(configurations)

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "LevelConfigStore":
        """Load the level table from YAML (the packaged table by default)."""
        path = path or DEFAULT_LEVELS_PATH
        if not path.exists():
            raise ConfigurationError(f"Level configuration file not found: {path}")
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        store = cls.from_mapping(data)
        logger.debug("levels_loaded", path=str(path), levels=[lv.value for lv in store.levels])
        return store

    @property
    def levels(self) -> tuple[DifficultyLevel, ...]:
        return self._order

    @property
    def first_level(self) -> DifficultyLevel:
        return self._order[0]

    def get(self, level: DifficultyLevel | str) -> LevelConfiguration:
        """Get the configuration for ``level``.

        Raises:
            ConfigurationNotFound: If the level is unknown or not configured.
        """
        try:
            key = DifficultyLevel(level)
        except ValueError:
            raise ConfigurationNotFound(str(level)) from None
        config = self._configs.get(key)
        if config is None:
            raise ConfigurationNotFound(key.value)
        return config

    def next_level(self, level: DifficultyLevel) -> DifficultyLevel | None:
        """The level after ``level``, or None at the last level."""
        index = self._order.index(self.get(level).level)
        if index + 1 < len(self._order):
            return self._order[index + 1]
        return None

    def base_weights(self, level: DifficultyLevel) -> dict[str, float]:
        return dict(self.get(level).base_weights)

    def update_base_weights(self, level: DifficultyLevel, weights: Mapping[str, float]) -> None:
        """Replace a level's base weight table.

        The stored configuration is swapped for a new one, so configurations
        handed out earlier keep their old table.
        """
        config = self.get(level)
        try:
            updated = LevelConfiguration.model_validate(
                {**config.model_dump(), "base_weights": dict(weights)}
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid base weights for level {level}: {e}") from e
        self._configs[config.level] = updated
        logger.info("base_weights_updated", level=config.level.value, notes=len(weights))
