"""Errors raised by the account model and its collaborators."""


class ProxyUserError(Exception):
    """Base class for proxyusers errors."""


class ValidationError(ProxyUserError):
    """One or more account fields failed validation.

    ``errors`` maps field name to a user-facing message.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        summary = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(summary or "Validation failed")


class UniquenessConflictError(ProxyUserError):
    """Username or email already belongs to another account."""


class InvalidInputError(ProxyUserError):
    """Hashing was asked for an empty password with a salt present."""


class AccountNotFoundError(ProxyUserError):
    """No account exists for the given username."""
