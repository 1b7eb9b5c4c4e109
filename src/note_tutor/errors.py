"""Exception hierarchy for the note tutor."""

from note_tutor.models.progress import PracticeFilters


class NoteTutorError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(NoteTutorError):
    """The level table could not be loaded or failed validation."""


class ConfigurationNotFound(NoteTutorError):
    """No configuration exists for the requested difficulty level."""

    def __init__(self, level: str):
        super().__init__(f"No configuration found for level: {level}")
        self.level = level


class EmptyCandidatePool(NoteTutorError):
    """Filtering removed every note, so there is nothing to select."""

    def __init__(
        self,
        filters: PracticeFilters | None = None,
        detail: str = "No notes available for the selected filters",
    ):
        super().__init__(detail)
        self.filters = filters


class InvalidAttempt(NoteTutorError):
    """An attempt carried data the ledger cannot record."""


class NoActiveQuestion(NoteTutorError):
    """An answer was submitted while no question was awaiting one."""
