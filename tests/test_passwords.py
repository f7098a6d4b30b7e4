import pytest

from distlab.payments.passwords import MAX_PASSWORD_BYTES, compare_passwords, encrypt_password


def test_round_trip_matches():
    hashed = encrypt_password("password")
    assert compare_passwords(hashed, "password") is True


def test_wrong_password_rejected():
    hashed = encrypt_password("password")
    assert compare_passwords(hashed, "secret") is False


def test_hash_is_salted():
    first = encrypt_password("password")
    second = encrypt_password("password")
    assert first != second
    assert compare_passwords(first, "password") and compare_passwords(second, "password")


def test_hash_uses_default_cost():
    hashed = encrypt_password("password")
    assert hashed.startswith(b"$2b$10$")


def test_string_hash_accepted():
    hashed = encrypt_password("secret").decode("ascii")
    assert compare_passwords(hashed, "secret") is True


def test_garbage_hash_is_no_match():
    assert compare_passwords(b"not a hash", "password") is False


def test_too_long_password_rejected():
    with pytest.raises(ValueError):
        encrypt_password("x" * (MAX_PASSWORD_BYTES + 1))


def test_too_long_password_does_not_match():
    hashed = encrypt_password("password")
    assert compare_passwords(hashed, "x" * (MAX_PASSWORD_BYTES + 1)) is False