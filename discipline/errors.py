from dataclasses import dataclass


@dataclass
class DomainError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


class InvalidInput(DomainError):
    """A required field is missing or malformed."""


class DuplicateKey(DomainError):
    """A natural key (username, student assignment) already exists."""


class RecordNotFound(DomainError):
    pass


class InvalidCredentials(DomainError):
    pass


class MalformedState(DomainError):
    """Persisted local state could not be decoded; callers fall back to defaults."""
