import os
import shutil
import tempfile
from pathlib import Path


def safe_unlink(path: os.PathLike[str] | str) -> None:
    try:
        Path(path).unlink(missing_ok=True)
    except Exception:
        return


def remove_path(path: os.PathLike[str] | str) -> bool:
    """
    Remove a file, symlink or directory tree if it exists.

    Returns True when something was removed.
    """
    p = Path(path)
    if p.is_symlink() or p.is_file():
        p.unlink()
        return True
    if p.is_dir():
        shutil.rmtree(p)
        return True
    return False


def recreate_dir(path: Path) -> Path:
    """
    Replace `path` with a fresh empty directory.
    """
    remove_path(path)
    path.mkdir(parents=True, exist_ok=False)
    return path


def human_size(n: int) -> str:
    """ls -lh style size: 512B, 1.5K, 3.2M, 1.1G."""
    if n < 1024:
        return f"{n}B"
    size = float(n)
    for unit in ("K", "M"):
        size /= 1024
        if size < 1024:
            return f"{size:.1f}{unit}"
    return f"{size / 1024:.1f}G"


def fsync_dir(parent: Path) -> None:
    """
    Ensure directory entry durability after atomic rename.
    """
    fd: int | None = None
    try:
        fd = os.open(parent, os.O_RDONLY)
        os.fsync(fd)
    finally:
        if fd is not None:
            os.close(fd)


def atomic_write_text(
    path: Path,
    text: str,
    *,
    encoding: str = "utf-8",
    newline: str = "\n",
    mode: int = 0o644,
) -> None:
    """
    Atomically write text to `path`.

    Guarantees:
      - readers either see the old complete file or the new complete file
      - no partial/truncated file on crash
      - temp file written in the same directory (atomic replace works)
      - file contents are fsync()'d before replace
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd: int | None = None
    tmp_path: Path | None = None

    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.",
            suffix=".tmp",
            dir=str(path.parent),
            text=True,
        )
        tmp_path = Path(tmp_name)

        with os.fdopen(fd, "w", encoding=encoding, newline=newline) as f:
            fd = None
            f.write(text)
            f.flush()
            os.fsync(f.fileno())

        try:
            os.chmod(tmp_path, mode)
        except Exception:
            pass

        os.replace(tmp_path, path)

        fsync_dir(path.parent)

    finally:
        if fd is not None:
            try:
                os.close(fd)
            except Exception:
                pass
        if tmp_path is not None and tmp_path.exists():
            safe_unlink(tmp_path)


def make_tmp_path_for(final_path: Path, *, suffix: str = ".partial") -> Path:
    """
    Reserve a temp file next to final_path (same filesystem) so rename is atomic.
    """
    final_path = Path(final_path)
    final_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{final_path.name}.", suffix=suffix, dir=str(final_path.parent)
    )
    os.close(fd)
    return Path(tmp_name)


def atomic_replace(tmp_path: Path, final_path: Path) -> None:
    with open(tmp_path, "rb") as f:
        os.fsync(f.fileno())

    os.replace(tmp_path, final_path)
    fsync_dir(final_path.parent)
