class SurveyAppError(Exception):
    """Base class for errors surfaced to the user."""


class ValidationError(SurveyAppError):
    """Missing title, question text, options or required answers. Nothing was persisted."""


class NotFoundOrUnavailable(SurveyAppError):
    """Survey absent or not open to respondents. Kept generic so drafts stay hidden."""

    def __init__(self, message: str = "Survey not found or unavailable"):
        super().__init__(message)


class StoreError(SurveyAppError):
    """An underlying query or insert failed."""


class GenerationError(SurveyAppError):
    """The AI question generator failed or returned something unusable."""
