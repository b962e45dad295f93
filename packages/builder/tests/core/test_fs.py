from __future__ import annotations

from pathlib import Path

from root_builder.core import fs


def test_remove_path_handles_files_dirs_and_missing(tmp_path: Path) -> None:
    f = tmp_path / "a.txt"
    f.write_text("x")
    d = tmp_path / "tree" / "nested"
    d.mkdir(parents=True)
    (d / "b.txt").write_text("y")

    assert fs.remove_path(f) is True
    assert fs.remove_path(tmp_path / "tree") is True
    assert fs.remove_path(tmp_path / "missing") is False
    assert not f.exists() and not (tmp_path / "tree").exists()


def test_remove_path_unlinks_symlink_not_target(tmp_path: Path) -> None:
    target = tmp_path / "target"
    target.mkdir()
    (target / "keep.txt").write_text("keep")
    link = tmp_path / "link"
    link.symlink_to(target, target_is_directory=True)

    assert fs.remove_path(link) is True
    assert (target / "keep.txt").exists()


def test_recreate_dir_empties_existing(tmp_path: Path) -> None:
    d = tmp_path / "build"
    d.mkdir()
    (d / "CMakeCache.txt").write_text("stale")

    out = fs.recreate_dir(d)
    assert out == d
    assert d.is_dir() and list(d.iterdir()) == []


def test_atomic_write_text_leaves_no_temp_files(tmp_path: Path) -> None:
    p = tmp_path / "d" / "report.json"
    fs.atomic_write_text(p, "{}\n")
    fs.atomic_write_text(p, "{\"a\": 1}\n")
    assert p.read_text() == "{\"a\": 1}\n"
    assert [x.name for x in p.parent.iterdir()] == ["report.json"]


def test_make_tmp_path_for_is_hidden_sibling(tmp_path: Path) -> None:
    final = tmp_path / "artifacts" / "root.zip"
    tmp = fs.make_tmp_path_for(final)
    assert tmp.parent == final.parent
    assert tmp.name.startswith(".root.zip.")
    assert tmp.exists()


def test_human_size() -> None:
    assert fs.human_size(512) == "512B"
    assert fs.human_size(1536) == "1.5K"
    assert fs.human_size(3 * 1024 * 1024) == "3.0M"
    assert fs.human_size(5 * 1024**3) == "5.0G"
