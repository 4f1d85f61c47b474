"""Result types for a form submission request."""

from dataclasses import dataclass, field
from typing import List, Union


@dataclass(frozen=True)
class Accepted:
    """Submission validated and delivered."""
    remaining: int


@dataclass(frozen=True)
class MethodNotAllowed:
    pass


@dataclass(frozen=True)
class InvalidOrigin:
    pass


@dataclass(frozen=True)
class RateLimited:
    retry_after: int  # seconds


@dataclass(frozen=True)
class ValidationFailed:
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class InternalError:
    """Anything unexpected. The cause is logged, never sent to the client."""
    cause: BaseException


Outcome = Union[Accepted, MethodNotAllowed, InvalidOrigin, RateLimited, ValidationFailed, InternalError]
