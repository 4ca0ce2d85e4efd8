"""Table-driven and exhaustive tests for wildcard permission matching."""

import itertools

import pytest

from shiftly_access.domain.permission import (
    has_permission,
    missing_permissions,
    require_all,
    require_any,
    resource_of,
)


@pytest.mark.parametrize(
    "granted,required,expected",
    [
        ({"users:read"}, "users:read", True),
        ({"users:read"}, "users:create", False),
        ({"users:*"}, "users:create", True),
        ({"users:*"}, "users:*", True),
        ({"users:*"}, "teams:read", False),
        ({"*"}, "anything:whatsoever", True),
        ({"*"}, "", True),
        (set(), "users:read", False),
        ({"own-schedule:*"}, "own-schedule:view", True),
        ({"reports:view"}, "reports:export", False),
        # only the text before the first ':' is the resource
        ({"a:*"}, "a:b:c", True),
        ({"a:b:*"}, "a:b:c", False),
        # without ':' the resource is empty
        ({"reports:*"}, "reports", False),
        ({"reports"}, "reports", True),
        ({":*"}, "reports", True),
        ({":*"}, ":view", True),
        ({"users:*"}, ":view", False),
        ({"users:read"}, "", False),
    ],
)
def test_has_permission_table(granted, required, expected):
    assert has_permission(frozenset(granted), required) is expected


def test_resource_of():
    assert resource_of("users:read") == "users"
    assert resource_of("a:b:c") == "a"
    assert resource_of("users") == ""
    assert resource_of(":read") == ""
    assert resource_of("") == ""


ALPHABET = ["*", "a:*", "a:x", "a:y", "b:*", "b:x", ":*", "a"]
REQUIRED = ["a:x", "a:y", "b:x", "b:y", "a", "", ":x", "c:x", "a:*"]


def _reference(granted, required):
    sep = ":" in required
    resource = required.split(":", 1)[0] if sep else ""
    return required in granted or "*" in granted or f"{resource}:*" in granted


def test_has_permission_exhaustive_small_alphabet():
    for size in range(len(ALPHABET) + 1):
        for combo in itertools.combinations(ALPHABET, size):
            granted = frozenset(combo)
            for required in REQUIRED:
                assert has_permission(granted, required) == _reference(granted, required), (
                    granted,
                    required,
                )


@pytest.mark.parametrize(
    "required", ["", ":", "::", "no-separator", "x:", ":y", "ü:ñ", " ", "a:b:c:d", "*"]
)
def test_has_permission_is_total(required):
    assert isinstance(has_permission(frozenset({"users:*"}), required), bool)


def test_require_all_and_any_match_per_item_checks():
    required = ["a:x", "b:x", "a:y"]
    for size in range(len(ALPHABET) + 1):
        for combo in itertools.combinations(ALPHABET, size):
            granted = frozenset(combo)
            checks = [has_permission(granted, r) for r in required]
            assert require_all(granted, required) == all(checks)
            assert require_any(granted, required) == any(checks)


def test_require_all_and_any_on_empty_requirements():
    assert require_all(frozenset(), []) is True
    assert require_any(frozenset({"*"}), []) is False


def test_missing_permissions_keeps_order_and_drops_repeats():
    granted = frozenset({"users:*", "teams:read"})
    required = ["settings:update", "users:create", "reports:view", "settings:update"]
    assert missing_permissions(granted, required) == ["settings:update", "reports:view"]
    assert missing_permissions(frozenset({"*"}), required) == []
