from __future__ import annotations

import hashlib
import json as stdlib_json
from pathlib import Path

from root_builder.core import hashing, json


def test_sha256_file(tmp_path: Path) -> None:
    f = tmp_path / "root_build.zip"
    f.write_bytes(b"abc" * 1000)
    digest = hashing.sha256_file(f, chunk_bytes=7)
    assert digest.sha256 == hashlib.sha256(b"abc" * 1000).hexdigest()
    assert digest.bytes == 3000


def test_atomic_write_json_stringifies_paths(tmp_path: Path) -> None:
    out = tmp_path / "runs" / "run_report.json"
    json.atomic_write_json(out, {"artifact": tmp_path / "a.zip", "n": 1})
    assert stdlib_json.loads(out.read_text()) == {"artifact": str(tmp_path / "a.zip"), "n": 1}
    assert out.read_text().endswith("\n")
