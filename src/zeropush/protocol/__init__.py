"""Wire-level parsing, argument models and response formatting."""

from __future__ import annotations

from zeropush.protocol.arguments import MutationArgs, validate_arguments
from zeropush.protocol.responses import error_result, push_failure
from zeropush.protocol.schema import decode_push_body, parse_push
from zeropush.protocol.types import ID, BigInt

__all__ = [
    "ID",
    "BigInt",
    "MutationArgs",
    "decode_push_body",
    "error_result",
    "parse_push",
    "push_failure",
    "validate_arguments",
]
