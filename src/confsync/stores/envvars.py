"""
Helpers shared by key/value stores that keep one remote key per env var.

Ownership: a remote key belongs to a catalog file only if the file's
``data`` carries ``ENV_<key>``. Other keys at the same remote location
are never read or deleted through that file.
"""

from __future__ import annotations

import io
import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, Mapping

from dotenv import dotenv_values

from ..errors import ConfsyncError

ENV_PREFIX = "ENV_"

# Remote sentinel stamped on every push; pull reads it back as last_modified.
MODIFIED_KEY = "CONFSYNC_MODIFIED"

ENV_TYPE_BASIC = "basic"
ENV_TYPE_DISCOVER = "discover"
ENV_TYPE_HIDDEN = "hidden"

CLASSIFICATIONS = frozenset({ENV_TYPE_BASIC, ENV_TYPE_DISCOVER, ENV_TYPE_HIDDEN})

# Written by stores that do not classify keys.
ENV_VAR_MARKER = "env"

_MODIFIED_RE = re.compile(
    r"^(?P<stamp>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d{1,9}))?"
    r" (?P<offset>[+-]\d{4})"
    r" (?P<zone>\S+)$"
)


def parse_env(contents: bytes, source: str = ".env") -> dict[str, str]:
    """Parse .env contents into an ordered key/value mapping.

    Raises:
        ConfsyncError: If the contents are not UTF-8 text.
    """
    try:
        text = contents.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ConfsyncError(f"{source} is not valid UTF-8: {exc.reason}") from exc
    values = dotenv_values(stream=io.StringIO(text), interpolate=False)
    return {key: "" if value is None else value for key, value in values.items()}


def render_env(pairs: Iterable[tuple[str, str]]) -> bytes:
    return "".join(f"{key}={value}\n" for key, value in pairs).encode("utf-8")


def add_env_prefix(key: str) -> str:
    return ENV_PREFIX + key


def strip_env_prefix(key: str) -> str:
    return key[len(ENV_PREFIX):] if key.startswith(ENV_PREFIX) else key


def is_owned(key: str, data: Mapping[str, str]) -> bool:
    """Whether remote ``key`` is claimed by a file with metadata ``data``."""
    return add_env_prefix(key) in data


def is_classification(value: str) -> bool:
    return value in CLASSIFICATIONS


def is_env_var_type(value: str) -> bool:
    """True for any value a store records against an owned key."""
    return value in CLASSIFICATIONS or value == ENV_VAR_MARKER


def format_modified(moment: datetime) -> str:
    """Render a timestamp as ``2024-01-01 00:00:00.5 +0000 UTC``."""
    moment = moment.astimezone(timezone.utc)
    stamp = moment.strftime("%Y-%m-%d %H:%M:%S")
    if moment.microsecond:
        frac = f"{moment.microsecond * 1000:09d}".rstrip("0")
        stamp = f"{stamp}.{frac}"
    return f"{stamp} +0000 UTC"


def parse_modified(text: str) -> datetime:
    """Parse a timestamp written by :func:`format_modified`.

    Fractions beyond microseconds are truncated.

    Raises:
        ValueError: If ``text`` is not in the expected layout.
    """
    match = _MODIFIED_RE.match(text.strip())
    if not match:
        raise ValueError(f"unrecognized timestamp: {text!r}")

    moment = datetime.strptime(match["stamp"], "%Y-%m-%d %H:%M:%S")
    frac = match["frac"] or ""
    micros = int(frac[:6].ljust(6, "0")) if frac else 0

    offset = match["offset"]
    sign = -1 if offset[0] == "-" else 1
    delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[3:5]))
    tz = timezone(sign * delta)

    return moment.replace(microsecond=micros, tzinfo=tz).astimezone(timezone.utc)
