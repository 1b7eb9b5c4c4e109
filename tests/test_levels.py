"""Tests for the level configuration store."""

import pytest

from note_tutor.engine.levels import LevelConfigStore
from note_tutor.errors import ConfigurationError, ConfigurationNotFound
from note_tutor.models.level import DifficultyLevel


@pytest.fixture
def default_levels():
    return LevelConfigStore.from_yaml()


def _level_data(**overrides):
    data = {
        "note_range": {"treble": {"min": 4, "max": 4}, "bass": {"min": 3, "max": 3}},
        "clef_distribution": {"treble": 0.5, "bass": 0.5},
        "progression_criteria": {"min_accuracy": 0.8, "min_questions": 10,
                                 "consecutive_correct": 3},
    }
    data.update(overrides)
    return data


class TestDefaultLevels:
    def test_order(self, default_levels):
        assert default_levels.levels == (
            DifficultyLevel.EASY, DifficultyLevel.HARD, DifficultyLevel.MIXED,
        )
        assert default_levels.first_level == DifficultyLevel.EASY

    def test_easy_criteria(self, default_levels):
        criteria = default_levels.get(DifficultyLevel.EASY).progression_criteria
        assert criteria.min_accuracy == 0.78
        assert criteria.min_questions == 35
        assert criteria.consecutive_correct == 7

    def test_clef_distribution(self, default_levels):
        easy = default_levels.get("easy")
        assert easy.clef_distribution.treble == 0.7
        assert easy.clef_distribution.bass == 0.3

    def test_priorities_override_base_weights(self, default_levels):
        weights = default_levels.base_weights(DifficultyLevel.EASY)
        assert weights["C4-treble"] == 1.4
        assert weights["G6-treble"] == 1.0

    def test_next_level(self, default_levels):
        assert default_levels.next_level(DifficultyLevel.EASY) == DifficultyLevel.HARD
        assert default_levels.next_level(DifficultyLevel.HARD) == DifficultyLevel.MIXED
        assert default_levels.next_level(DifficultyLevel.MIXED) is None

    @pytest.mark.parametrize("level", ["expert", "", "EASY"])
    def test_unknown_level(self, default_levels, level):
        with pytest.raises(ConfigurationNotFound):
            default_levels.get(level)


class TestUpdateBaseWeights:
    def test_copy_on_write(self, default_levels):
        before = default_levels.get(DifficultyLevel.HARD)
        default_levels.update_base_weights(DifficultyLevel.HARD, {"C4-treble": 3.0})
        after = default_levels.get(DifficultyLevel.HARD)
        assert after.base_weights == {"C4-treble": 3.0}
        assert before.base_weights["C6-treble"] == 1.1
        assert before is not after

    def test_rejects_non_positive(self, default_levels):
        with pytest.raises(ConfigurationError):
            default_levels.update_base_weights(DifficultyLevel.HARD, {"C4-treble": 0.0})

    def test_returned_weights_are_a_copy(self, default_levels):
        weights = default_levels.base_weights(DifficultyLevel.EASY)
        weights["C4-treble"] = 99.0
        assert default_levels.base_weights(DifficultyLevel.EASY)["C4-treble"] == 1.4


class TestFromMapping:
    def test_unknown_level_name(self):
        with pytest.raises(ConfigurationError, match="Unknown difficulty level"):
            LevelConfigStore.from_mapping({"order": ["expert"], "levels": {"expert": _level_data()}})

    def test_missing_level_entry(self):
        with pytest.raises(ConfigurationError):
            LevelConfigStore.from_mapping({"order": ["easy", "hard"], "levels": {"easy": _level_data()}})

    def test_unordered_level(self):
        with pytest.raises(ConfigurationError):
            LevelConfigStore.from_mapping(
                {"order": ["easy"], "levels": {"easy": _level_data(), "hard": _level_data()}}
            )

    def test_invalid_values(self):
        bad = _level_data(clef_distribution={"treble": 0.0, "bass": 1.0})
        with pytest.raises(ConfigurationError):
            LevelConfigStore.from_mapping({"levels": {"easy": bad}})

    def test_inverted_range(self):
        bad = _level_data(note_range={"treble": {"min": 5, "max": 4}, "bass": {"min": 3, "max": 3}})
        with pytest.raises(ConfigurationError):
            LevelConfigStore.from_mapping({"levels": {"easy": bad}})

    def test_order_defaults_to_mapping_order(self):
        store = LevelConfigStore.from_mapping(
            {"levels": {"hard": _level_data(), "easy": _level_data()}}
        )
        assert store.levels == (DifficultyLevel.HARD, DifficultyLevel.EASY)

    def test_empty(self):
        with pytest.raises(ConfigurationError):
            LevelConfigStore.from_mapping({})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            LevelConfigStore.from_yaml(tmp_path / "missing.yaml")

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "levels.yaml"
        path.write_text(
            "order: [easy]\n"
            "levels:\n"
            "  easy:\n"
            "    note_range: {treble: {min: 4, max: 5}, bass: {min: 2, max: 3}}\n"
            "    clef_distribution: {treble: 1.0, bass: 1.0}\n"
            "    progression_criteria: {min_accuracy: 0.5, min_questions: 1, consecutive_correct: 1}\n"
            "    base_weight: 2.0\n"
        )
        store = LevelConfigStore.from_yaml(path)
        assert store.base_weights(DifficultyLevel.EASY)["C5-treble"] == 2.0
