from __future__ import annotations

import tarfile
import zipfile
from pathlib import Path

import pytest
from root_builder.stages.package import write_archive


@pytest.fixture()
def install_tree(tmp_path: Path) -> Path:
    root = tmp_path / "root_build"
    (root / "bin").mkdir(parents=True)
    (root / "lib").mkdir()
    (root / "bin" / "root").write_text("#!/bin/sh\n")
    (root / "lib" / "libCore.so.6.32").write_bytes(b"\x7fELF")
    (root / "lib" / "libCore.so").symlink_to("libCore.so.6.32")
    return root


def test_zip_keeps_top_level_dir_and_symlinks(install_tree: Path, tmp_path: Path) -> None:
    dest = tmp_path / "artifacts" / "root.zip"
    count = write_archive(install_tree, dest, archive_format="zip")

    assert count == 2
    with zipfile.ZipFile(dest) as zf:
        names = zf.namelist()
        assert "root_build/" in names
        assert "root_build/bin/root" in names
        link = zf.getinfo("root_build/lib/libCore.so")
        assert (link.external_attr >> 16) & 0o170000 == 0o120000
        assert zf.read(link) == b"libCore.so.6.32"
    assert [p.name for p in dest.parent.iterdir()] == ["root.zip"]


def test_tar_gz_archive(install_tree: Path, tmp_path: Path) -> None:
    dest = tmp_path / "root.tar.gz"
    write_archive(install_tree, dest, archive_format="tar.gz")

    with tarfile.open(dest) as tf:
        members = {m.name: m for m in tf.getmembers()}
    assert members["root_build"].isdir()
    assert members["root_build/bin/root"].isfile()
    assert members["root_build/lib/libCore.so"].issym()


def test_rewrite_replaces_existing_archive(install_tree: Path, tmp_path: Path) -> None:
    dest = tmp_path / "root.zip"
    dest.write_bytes(b"old junk")
    write_archive(install_tree, dest, archive_format="zip")
    assert zipfile.is_zipfile(dest)


def test_unsupported_format_leaves_nothing(install_tree: Path, tmp_path: Path) -> None:
    dest = tmp_path / "out" / "root.rar"
    with pytest.raises(ValueError):
        write_archive(install_tree, dest, archive_format="rar")
    assert not dest.exists()
