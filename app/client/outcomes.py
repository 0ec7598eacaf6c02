"""
Tagged failure outcomes returned by the client instead of raising.

``NotFound`` is an expected result (an empty state, not an error banner).
``TransientFailure`` is retryable. ``Unauthorized`` covers both missing
authentication and ownership violations. ``ValidationFailure`` carries the
server's field errors when there are any.
"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel


class NotFound(BaseModel):
    kind: Literal["not_found"] = "not_found"
    message: str = "No encontrado"


class Unauthorized(BaseModel):
    kind: Literal["unauthorized"] = "unauthorized"
    message: str = "No autorizado"


class TransientFailure(BaseModel):
    kind: Literal["transient"] = "transient"
    message: str = "Error al cargar"
    status_code: Optional[int] = None


class ValidationFailure(BaseModel):
    kind: Literal["validation"] = "validation"
    message: str = "Datos inválidos"
    errors: Any = None


Failure = Union[NotFound, Unauthorized, TransientFailure, ValidationFailure]
FAILURE_TYPES = (NotFound, Unauthorized, TransientFailure, ValidationFailure)


def is_failure(value) -> bool:
    return isinstance(value, FAILURE_TYPES)
