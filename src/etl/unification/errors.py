"""Exceptions raised by the unification pipeline."""

from pydantic import ValidationError


class UnificationError(Exception):
    """Base exception for unification errors."""

    pass


class InvalidSourceDataError(UnificationError):
    """Raised when a provider record fails validation.

    Attributes:
        provider: Provider the record came from.
        errors: Validation error details.
    """

    def __init__(self, provider: str, error: ValidationError) -> None:
        self.provider = provider
        self.errors = error.errors()
        fields = ", ".join(".".join(str(p) for p in e["loc"]) or "record" for e in self.errors)
        super().__init__(f"Invalid {provider} record ({fields})")
