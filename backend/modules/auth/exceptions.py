"""
Authentication module exceptions.

Form errors carry the short message shown next to the sign-in/sign-up
form. They are expected outcomes, not failures of the client.
"""

from shared.exceptions import AuthenticationError, ValidationError


class AuthFormError(AuthenticationError):
    """Base class for errors shown on the sign-in/sign-up form."""

    user_message = "Authentication failed. Please try again."

    def __init__(self, message: str = "", code: str = "AUTH_FAILED"):
        super().__init__(message or self.user_message, code=code)
        self.user_message = message or self.user_message


class InvalidCredentialsError(AuthFormError):
    """Raised when the email/password pair is wrong."""

    def __init__(self):
        super().__init__("Invalid email or password", code="INVALID_CREDENTIALS")


class AlreadyRegisteredError(AuthFormError):
    """Raised when signing up with an email that already has an account."""

    def __init__(self):
        super().__init__(
            "This email is already registered. Try signing in instead.",
            code="ALREADY_REGISTERED",
        )


class WeakPasswordError(AuthFormError):
    """Raised when the password does not meet the minimum length."""

    def __init__(self):
        super().__init__(
            "Password must be at least 6 characters long", code="WEAK_PASSWORD"
        )


class InvalidEmailError(AuthFormError):
    """Raised when the email address is rejected."""

    def __init__(self):
        super().__init__("Please enter a valid email address", code="INVALID_EMAIL")


class SignUpDisabledError(AuthFormError):
    """Raised when registrations are turned off on the backend."""

    def __init__(self):
        super().__init__(
            "New registrations are currently disabled", code="SIGNUP_DISABLED"
        )


class MissingCredentialsError(ValidationError):
    """Raised before any remote call when email or password is blank."""

    def __init__(self):
        super().__init__("Email and password are required", code="MISSING_CREDENTIALS")


_MESSAGE_PATTERNS: list[tuple[str, type[AuthFormError]]] = [
    ("Invalid login credentials", InvalidCredentialsError),
    ("User already registered", AlreadyRegisteredError),
    ("Password should be at least", WeakPasswordError),
    ("Invalid email", InvalidEmailError),
    ("signup is disabled", SignUpDisabledError),
]


def map_auth_error(message: str) -> AuthFormError:
    """Translate a backend auth error message into a form error."""
    for pattern, error_class in _MESSAGE_PATTERNS:
        if pattern.lower() in (message or "").lower():
            return error_class()
    return AuthFormError(message)
