from __future__ import annotations

import pytest

from zeropush.domain.errors import ValidationError
from zeropush.protocol import ID, BigInt, MutationArgs, validate_arguments


class PostArgs(MutationArgs):
    post_id: ID
    title: str
    view_count: BigInt = 0


def test_camel_case_keys_map_to_fields() -> None:
    args = validate_arguments(PostArgs, {"postId": "p1", "title": "Hello", "viewCount": 3})

    assert args.post_id == "p1"
    assert args.view_count == 3


def test_field_names_are_accepted_too() -> None:
    assert validate_arguments(PostArgs, {"post_id": "p1", "title": "Hi"}).post_id == "p1"


def test_unknown_keys_are_ignored() -> None:
    assert validate_arguments(PostArgs, {"postId": "p", "title": "t", "extra": 1}).title == "t"


def test_integer_ids_become_strings() -> None:
    assert validate_arguments(PostArgs, {"postId": 42, "title": "t"}).post_id == "42"


def test_big_integers_keep_precision() -> None:
    big = 2**70

    assert validate_arguments(PostArgs, {"postId": "p", "title": "t", "viewCount": big}).view_count == big


def test_all_problems_are_reported() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_arguments(PostArgs, {"postId": "", "viewCount": 1.5})

    errors = excinfo.value.errors
    assert len(errors) == 3
    assert errors[0].startswith("postId: ")
    assert errors[1] == "title is required"
    assert errors[2].startswith("viewCount: ")
