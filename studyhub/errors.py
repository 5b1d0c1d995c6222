"""Domain errors surfaced to the UI as inline messages."""


class StudyHubError(Exception):
    """Base class for errors the app shows to the user."""


class NoQuestionsError(StudyHubError):
    """No questions match the selected criteria."""


class SessionMismatchError(StudyHubError):
    """Stored test state belongs to a different course."""
