"""Annotated argument types for common client payload shapes."""

from __future__ import annotations

from typing import Annotated

from pydantic import BeforeValidator, StringConstraints


def _id_from_number(value: object) -> object:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


def _reject_float(value: object) -> object:
    if isinstance(value, float):
        raise ValueError("floats are not valid big integers")  # noqa: TRY004
    return value


# Non-empty identifier; integer ids are accepted and kept as strings.
ID = Annotated[str, StringConstraints(min_length=1), BeforeValidator(_id_from_number)]

# Arbitrary-precision integer; numeric strings are accepted, floats are not.
BigInt = Annotated[int, BeforeValidator(_reject_float)]
