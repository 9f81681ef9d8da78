"""Unit tests for API key secrets and assigned user naming."""

from disaster_tracking.core.auth.api_keys import (
    ASSIGNED_USER_SUFFIX,
    assigned_user_id,
    generate_secret,
    name_with_assigned_user,
    strip_assigned_user,
)


def test_generate_secret_is_64_hex_chars():
    secret = generate_secret()
    assert len(secret) == 64
    int(secret, 16)
    assert generate_secret() != secret


def test_name_with_assigned_user_round_trip():
    name = name_with_assigned_user("Import script", "user-1")
    assert name == f"Import script{ASSIGNED_USER_SUFFIX}user-1"
    assert assigned_user_id(name) == "user-1"
    assert strip_assigned_user(name) == "Import script"


def test_reassigning_replaces_previous_user():
    name = name_with_assigned_user(name_with_assigned_user("Key", "user-1"), "user-2")
    assert assigned_user_id(name) == "user-2"


def test_no_assigned_user():
    assert name_with_assigned_user("Key", None) == "Key"
    assert assigned_user_id("Key") is None
    assert strip_assigned_user("Key") == "Key"
