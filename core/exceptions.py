"""
Domain errors shared by the matching and chat apps.

Each error carries the HTTP status it maps to; core.api.ApiView renders
them as JSON. Socket handlers log and drop them instead.
"""


class MentorshipError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400
    code = 'error'

    def __init__(self, message: str = ''):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or self.__class__.__doc__ or self.code


class ValidationError(MentorshipError):
    """Invalid input."""

    status_code = 400
    code = 'validation_error'


class ProfileMissing(ValidationError):
    """Complete onboarding/profile first."""

    code = 'profile_missing'


class AuthorizationError(MentorshipError):
    """Action not allowed for this user."""

    status_code = 403
    code = 'forbidden'


class NotFoundError(MentorshipError):
    """Resource not found."""

    status_code = 404
    code = 'not_found'


class PersistenceError(MentorshipError):
    """Could not save the change, please retry."""

    status_code = 500
    code = 'persistence_error'


class DependencyDegraded(Exception):
    """A lookup failed and was replaced by a neutral default. Never surfaced."""

    def __init__(self, dependency: str, cause: Exception):
        super().__init__(f"{dependency} lookup failed: {cause}")
        self.dependency = dependency
        self.cause = cause
