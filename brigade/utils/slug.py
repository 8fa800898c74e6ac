import re
import unicodedata
from typing import Callable

_APOSTROPHES = re.compile(r"['’`]")
_NON_ALNUM = re.compile(r"[^a-z0-9]")
_DASH_RUN = re.compile(r"-+")

MAX_SLUG_SUFFIX = 9999


def slugify(value: str) -> str:
    """Lowercase URL key for a restaurant name: "Joe's Pizza" -> "joes-pizza"."""
    if not value:
        return ""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = _APOSTROPHES.sub("", value.lower())
    value = _NON_ALNUM.sub("-", value)
    value = _DASH_RUN.sub("-", value)

    return value.strip("-")


def unique_slug(base: str, exists: Callable[[str], bool]) -> str:
    """Append ``-1``, ``-2``, ... to ``base`` until ``exists`` reports it free."""
    if not exists(base):
        return base

    suffix = 1
    while suffix <= MAX_SLUG_SUFFIX:
        candidate = f"{base}-{suffix}"
        if not exists(candidate):
            return candidate
        suffix += 1

    raise RuntimeError(f"Could not generate a unique slug for {base!r}")
