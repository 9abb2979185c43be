"""Custom exceptions for the Smart Contact Manager.

Services raise these instead of HTTP errors so that the same rule can
be reported as a rendered page, a redirect or a JSON body depending on
which route hit it.
"""


class ContactManagerError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, user_message: str | None = None):
        """
        Initialize application error.

        Args:
            message: Internal error message for logging/debugging
            user_message: Safe message to show to users (defaults to the internal message)
        """
        super().__init__(message)
        self.user_message = user_message or message


class NotFoundError(ContactManagerError):
    """Entity absent for an id based lookup."""


class DuplicateEmailError(ContactManagerError):
    """A user with the given email is already registered."""

    def __init__(self, email: str):
        super().__init__(
            f"User already exists: {email}",
            "An account with this email already exists.",
        )
        self.email = email


class InvalidQueryError(ContactManagerError):
    """Paging or search parameters the contact store cannot serve."""


class InvalidSortFieldError(InvalidQueryError):
    """Requested sort field is not a contact attribute."""

    def __init__(self, field: str):
        super().__init__(f"Cannot sort contacts by '{field}'")
        self.field = field


class ImageUploadError(ContactManagerError):
    """Image store is unavailable or rejected the upload."""


class AuthenticationError(ContactManagerError):
    """Credential based login failed."""


class BadCredentialsError(AuthenticationError):
    """Unknown email or wrong password."""

    def __init__(self, message: str = "Bad credentials"):
        super().__init__(message)


class AccountDisabledError(AuthenticationError):
    """Account exists but its email has not been verified yet."""

    def __init__(self, email: str):
        super().__init__(f"User is disabled: {email}")
        self.email = email


class UnsupportedProviderError(ContactManagerError):
    """OAuth2 registration id without an attribute extractor."""

    def __init__(self, registration_id: str):
        super().__init__(
            f"Unsupported OAuth2 provider: {registration_id}",
            "This login provider is not supported.",
        )
        self.registration_id = registration_id


class OAuthError(ContactManagerError):
    """OAuth2 handshake with a provider failed."""
