import time

import pytest

from brigade.services import passwords
from brigade.services.passwords import PasswordHashTimeout, hash_password, verify_password


@pytest.mark.parametrize("plain", ["secret123", "ção-ñ-ü", "x" * 6, " spaced password "])
def test_hash_round_trip_accepts_original_and_rejects_others(plain):
    hashed = hash_password(plain)

    assert hashed != plain
    assert hashed.startswith("$2b$")
    assert verify_password(plain, hashed) is True
    assert verify_password(plain + "!", hashed) is False
    assert verify_password("", hashed) is False


def test_same_password_gets_distinct_salts():
    assert hash_password("secret123") != hash_password("secret123")


def test_cost_factor_is_configurable():
    hashed = hash_password("secret123", rounds=5)

    assert hashed.startswith("$2b$05$")


def test_passwords_longer_than_72_bytes_do_not_crash():
    long_password = "a" * 100
    hashed = hash_password(long_password)

    assert verify_password(long_password, hashed) is True


@pytest.mark.parametrize("stored", ["", "plaintext", "pbkdf2$1$aa$bb"])
def test_verify_raises_on_malformed_hash(stored):
    with pytest.raises(ValueError):
        verify_password("secret123", stored)


def test_hashing_step_times_out(monkeypatch):
    def slow_hashpw(_pw, _salt):
        time.sleep(0.5)
        return b"$2b$04$never"

    monkeypatch.setattr(passwords, "PASSWORD_HASH_TIMEOUT_SECONDS", 0.05)
    monkeypatch.setattr(passwords.bcrypt, "hashpw", slow_hashpw)

    with pytest.raises(PasswordHashTimeout):
        hash_password("secret123")
