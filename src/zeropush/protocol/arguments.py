"""Pydantic-backed mutation arguments.

Handlers declare their arguments as a :class:`MutationArgs` subclass using
snake_case fields; clients send camelCase keys, which the alias generator maps.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from zeropush.domain.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pydantic_core import ErrorDetails


class MutationArgs(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


def validate_arguments[TArgs: MutationArgs](model: type[TArgs], raw: Mapping[str, object]) -> TArgs:
    """Coerce raw client arguments, collecting every problem into one ``ValidationError``."""

    try:
        return model.model_validate(dict(raw))
    except PydanticValidationError as exc:
        raise ValidationError([_format_error(error) for error in exc.errors()]) from exc


def _format_error(error: ErrorDetails) -> str:
    field = ".".join(str(part) for part in error["loc"]) or "args"
    if error["type"] == "missing":
        return f"{field} is required"
    return f"{field}: {error['msg']}"
