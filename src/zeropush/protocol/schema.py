"""Pydantic models describing the push request payload, and the envelope parser."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, cast

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from zeropush.domain.errors import ParseError, UnsupportedPushVersionError
from zeropush.domain.model import MutationRequest, PushEnvelope

if TYPE_CHECKING:
    from zeropush.config import PushConfig

REQUIRED_FIELDS: tuple[str, ...] = (
    "clientGroupID",
    "mutations",
    "pushVersion",
    "timestamp",
    "requestID",
)


def _unwrap_args(value: object) -> object:
    # Clients send args as a one-element array; the first element is the argument object.
    if value is None:
        return {}
    if isinstance(value, list):
        items = cast(list[object], value)
        return items[0] if items else {}
    return value


class PushBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class MutationPayload(PushBaseModel):
    id: StrictInt = Field(ge=1)
    client_id: StrictStr = Field(alias="clientID")
    name: StrictStr
    args: dict[str, object] = Field(default_factory=dict)

    _normalize_args = field_validator("args", mode="before")(_unwrap_args)

    def to_request(self) -> MutationRequest:
        return MutationRequest(id=self.id, client_id=self.client_id, name=self.name, args=self.args)


class PushHeaderPayload(PushBaseModel):
    client_group_id: StrictStr = Field(alias="clientGroupID")
    request_id: StrictStr = Field(alias="requestID")
    timestamp: int


def decode_push_body(raw: str | bytes) -> object:
    """Decode a raw JSON request body; undecodable input is a parse failure."""

    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ParseError(f"Invalid JSON: {exc}") from exc


def parse_push(payload: object, config: PushConfig) -> PushEnvelope:
    """Validate an incoming push payload and build the envelope.

    Raises :class:`ParseError` for structural problems, in which case no mutation id
    can be trusted, and :class:`UnsupportedPushVersionError` (carrying every mutation
    identity of the batch) for a version mismatch.
    """

    if not isinstance(payload, Mapping):
        raise ParseError("Push data must be a hash")
    data = cast(Mapping[str, object], payload)

    for name in REQUIRED_FIELDS:
        if name not in data:
            raise ParseError(f"Missing required field: {name}")

    raw_mutations = data["mutations"]
    if not isinstance(raw_mutations, list):
        raise ParseError("Field 'mutations' must be an array")

    mutations = tuple(
        _parse_mutation(index, entry)
        for index, entry in enumerate(cast(Sequence[object], raw_mutations))
    )
    header = _parse_header(data)

    push_version = data["pushVersion"]
    if not _is_supported_version(push_version, config.supported_push_version):
        raise UnsupportedPushVersionError(
            push_version,
            supported_version=config.supported_push_version,
            mutation_ids=tuple(mutation.identity for mutation in mutations),
        )

    return PushEnvelope(
        push_version=config.supported_push_version,
        client_group_id=header.client_group_id,
        request_id=header.request_id,
        timestamp=header.timestamp,
        mutations=mutations,
    )


def _is_supported_version(value: object, supported: int) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return value == supported


def _parse_mutation(index: int, entry: object) -> MutationRequest:
    try:
        return MutationPayload.model_validate(entry).to_request()
    except PydanticValidationError as exc:
        raise ParseError(f"Invalid mutation at index {index}: {_describe(exc)}") from exc


def _parse_header(data: Mapping[str, object]) -> PushHeaderPayload:
    try:
        return PushHeaderPayload.model_validate(data)
    except PydanticValidationError as exc:
        raise ParseError(f"Invalid push data: {_describe(exc)}") from exc


def _describe(exc: PydanticValidationError) -> str:
    parts: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return ", ".join(parts)
