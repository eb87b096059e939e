"""Success/error envelope of resource responses.

Questrade does not tag its responses: a body is either the resource shape
or `{"code": ..., "message": ...}`. `ApiResponse.decode` resolves the variant
structurally:

1. try the success shape,
2. try the error shape,
3. exactly one must match; none or both is a decode failure.

Both attempts validate the same immutable bytes with pydantic, so a failed
first attempt cannot affect the second.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from questrade.core.domain.models import ApiErrorBody
from questrade.core.errors import ApiError, InternalError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ERROR_ADAPTER: TypeAdapter[ApiErrorBody] = TypeAdapter(ApiErrorBody)


@lru_cache(maxsize=None)
def _adapter_for(model: Any) -> TypeAdapter[Any]:
    return TypeAdapter(model)


@dataclass(frozen=True)
class ApiResponse(Generic[T]):
    """Decoded envelope: exactly one of `data` / `error` is set."""

    data: T | None = None
    error: ApiErrorBody | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def decode(cls, body: bytes | str, model: type[T] | Any) -> "ApiResponse[T]":
        """Decode a raw JSON body as `ApiResponse[model]`.

        Raises:
            InternalError: the body is not JSON, or matches neither or both
                variants.
        """

        success: T | None = None
        success_error: ValidationError | None = None
        try:
            success = _adapter_for(model).validate_json(body)
        except ValidationError as exc:
            success_error = exc

        failure: ApiErrorBody | None = None
        try:
            failure = _ERROR_ADAPTER.validate_json(body)
        except ValidationError:
            failure = None

        if success_error is None and failure is not None:
            raise InternalError(
                f"ambiguous response: body matches both {_name(model)} and the error shape"
            )
        if success_error is None:
            return cls(data=success)
        if failure is not None:
            return cls(error=failure)

        logger.debug("Undecodable body for %s: %s", _name(model), success_error)
        raise InternalError(
            f"response matches neither {_name(model)} nor the error shape: "
            f"{success_error.error_count()} validation error(s); first: {_first_error(success_error)}"
        ) from success_error

    def unwrap(self, *, status_code: int | None = None) -> T:
        """Return the payload or raise the API error carried by the envelope."""

        if self.error is not None:
            raise ApiError(self.error.code, self.error.message, status_code=status_code)
        return self.data  # type: ignore[return-value]


def _name(model: Any) -> str:
    return getattr(model, "__name__", None) or repr(model)


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors(include_url=False)
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{location}: {first.get('msg', '')}"
