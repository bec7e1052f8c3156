from __future__ import annotations

import hashlib
import json
from pathlib import Path


# Decimal places kept for floats in summaries; enough for hectares and
# degrees while hiding summation-order noise.
FLOAT_DIGITS = 6


def stable_float(value: float | None, digits: int = FLOAT_DIGITS) -> float | None:
    return None if value is None else round(float(value), digits)


def canonical_json_bytes(obj: object) -> bytes:
    """Encode JSON deterministically.

    - UTF-8
    - stable key ordering
    - no insignificant whitespace
    """

    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sha256_file(path: Path, chunk_size: int = 1024 * 1024) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest()


def write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def write_json(path: Path, obj: object) -> None:
    write_bytes(path, canonical_json_bytes(obj) + b"\n")


def write_text(path: Path, text: str) -> None:
    """UTF-8 with LF line endings regardless of platform."""

    write_bytes(path, text.replace("\r\n", "\n").encode("utf-8"))


def file_size_bytes(path: Path) -> int:
    return path.stat().st_size
