"""Tests for bcrypt password hashing."""

from nexora_auth.security.passwords import hash_password, verify_password


def test_hash_and_verify():
    hashed = hash_password("correct horse battery")
    assert hashed != "correct horse battery"
    assert verify_password("correct horse battery", hashed) is True
    assert verify_password("wrong horse", hashed) is False


def test_long_passwords_are_truncated_consistently():
    base = "x" * 72
    hashed = hash_password(base + "tail-one")
    assert verify_password(base + "tail-two", hashed) is True


def test_malformed_hash_is_rejected():
    assert verify_password("anything", "not-a-bcrypt-hash") is False
