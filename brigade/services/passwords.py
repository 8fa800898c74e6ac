from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

import bcrypt

from brigade.core.config import BCRYPT_ROUNDS, PASSWORD_HASH_TIMEOUT_SECONDS

BCRYPT_MAX_BYTES = 72
BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

_hash_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="bcrypt")


class PasswordHashTimeout(RuntimeError):
    pass


def _normalize_password_for_bcrypt(password: str) -> bytes:
    # bcrypt only considers the first 72 bytes and newer releases reject longer input.
    pw = (password or "").encode("utf-8")
    return pw[:BCRYPT_MAX_BYTES]


def looks_hashed(value: str) -> bool:
    return value.startswith(BCRYPT_PREFIXES)


def _run_with_timeout(fn, *args):
    future = _hash_executor.submit(fn, *args)
    try:
        return future.result(timeout=PASSWORD_HASH_TIMEOUT_SECONDS)
    except FutureTimeoutError as exc:
        future.cancel()
        raise PasswordHashTimeout("Password hashing timed out") from exc


def hash_password(password: str, *, rounds: int = BCRYPT_ROUNDS) -> str:
    pw = _normalize_password_for_bcrypt(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = _run_with_timeout(bcrypt.hashpw, pw, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Constant-time check through bcrypt.

    Returns False on mismatch; a malformed stored hash raises ValueError.
    """
    if not password_hash or not looks_hashed(password_hash):
        raise ValueError("Stored password hash is malformed")
    pw = _normalize_password_for_bcrypt(plain_password)
    return _run_with_timeout(bcrypt.checkpw, pw, password_hash.encode("utf-8"))
