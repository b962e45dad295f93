from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class EnvQuery:
    """One value read back from the venv interpreter via `python -c`."""

    name: str
    label: str
    code: str


PYTHON_EXECUTABLE = EnvQuery(
    name="python_executable",
    label="Python executable",
    code="import sys; print(sys.executable)",
)

PYTHON_LIBRARY = EnvQuery(
    name="python_library",
    label="Python library path",
    code=(
        "import sysconfig; "
        "print(sysconfig.get_config_var('LIBDIR') + '/' + sysconfig.get_config_var('LDLIBRARY'))"
    ),
)

PYTHON_INCLUDE_DIR = EnvQuery(
    name="python_include_dir",
    label="Python include directory",
    code="import sysconfig; print(sysconfig.get_config_var('INCLUDEPY'))",
)

NUMPY_INCLUDE_DIR = EnvQuery(
    name="numpy_include_dir",
    label="NumPy include directory",
    code="import numpy; print(numpy.get_include())",
)

ENV_QUERIES: tuple[EnvQuery, ...] = (
    PYTHON_EXECUTABLE,
    PYTHON_LIBRARY,
    PYTHON_INCLUDE_DIR,
    NUMPY_INCLUDE_DIR,
)
