from __future__ import annotations

import os
import tarfile
import zipfile
from pathlib import Path
from typing import Iterator

from root_builder.core.fs import atomic_replace, make_tmp_path_for, safe_unlink

_TAR_MODES = {"tar.gz": "w:gz", "tar.xz": "w:xz"}


def iter_tree(root: Path) -> Iterator[Path]:
    """Every file, symlink and directory under root, sorted for stable archives."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        base = Path(dirpath)
        if base != root:
            yield base
        for name in sorted(filenames):
            yield base / name
        for name in dirnames:
            p = base / name
            if p.is_symlink():
                yield p


def _write_zip(src_dir: Path, dest: Path, arc_root: str) -> int:
    count = 0
    with zipfile.ZipFile(dest, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.write(src_dir, f"{arc_root}/")
        for p in iter_tree(src_dir):
            arcname = f"{arc_root}/{p.relative_to(src_dir).as_posix()}"
            if p.is_symlink():
                # store link target like `zip --symlinks`
                info = zipfile.ZipInfo(arcname)
                info.create_system = 3
                info.external_attr = (0o120777 << 16)
                zf.writestr(info, os.readlink(p))
            elif p.is_dir():
                zf.write(p, arcname + "/")
            else:
                zf.write(p, arcname)
                count += 1
    return count


def _write_tar(src_dir: Path, dest: Path, arc_root: str, mode: str) -> int:
    count = 0
    with tarfile.open(dest, mode) as tf:
        tf.add(src_dir, arcname=arc_root, recursive=False)
        for p in iter_tree(src_dir):
            tf.add(p, arcname=f"{arc_root}/{p.relative_to(src_dir).as_posix()}", recursive=False)
            if p.is_file() and not p.is_symlink():
                count += 1
    return count


def write_archive(src_dir: Path, dest: Path, *, archive_format: str) -> int:
    """
    Archive src_dir into dest with src_dir's name as the top-level entry.

    The archive is written to a temp file next to dest and renamed into
    place, so dest is either absent or complete. Returns the file count.
    """
    src_dir = Path(src_dir)
    dest = Path(dest)
    arc_root = src_dir.name

    if archive_format != "zip" and archive_format not in _TAR_MODES:
        raise ValueError(f"Unsupported archive format: {archive_format}")

    tmp = make_tmp_path_for(dest)
    try:
        if archive_format == "zip":
            count = _write_zip(src_dir, tmp, arc_root)
        else:
            count = _write_tar(src_dir, tmp, arc_root, _TAR_MODES[archive_format])
        os.chmod(tmp, 0o644)
        atomic_replace(tmp, dest)
    finally:
        safe_unlink(tmp)
    return count
