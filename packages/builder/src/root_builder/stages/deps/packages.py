from __future__ import annotations

APT_REPOSITORIES: tuple[str, ...] = (
    "universe",
    "ppa:ubuntu-toolchain-r/test",
)

# Toolchain, X11/graphics, crypto and compression libraries ROOT links against.
BASE_APT_PACKAGES: tuple[str, ...] = (
    "software-properties-common",
    "ninja-build",
    "zip",
    "dpkg-dev",
    "cmake",
    "g++",
    "gcc",
    "binutils",
    "libx11-dev",
    "libxpm-dev",
    "libxft-dev",
    "libxext-dev",
    "libssl-dev",
    "libpcre3-dev",
    "libgsl-dev",
    "gfortran",
    "tar",
    "wget",
    "jq",
    "xz-utils",
    "libgif-dev",
    "libjpeg-dev",
    "libtiff-dev",
    "libgl1-mesa-dev",
    "libglu1-mesa-dev",
    "libc6-dev",
    "libstdc++-9-dev",
    "libtinfo-dev",
)

PYTHON_APT_PACKAGE_TEMPLATES: tuple[str, ...] = (
    "python{v}",
    "python{v}-venv",
    "python{v}-dev",
    "libpython{v}-dev",
)


def python_apt_packages(python_version: str) -> tuple[str, ...]:
    return tuple(t.format(v=python_version) for t in PYTHON_APT_PACKAGE_TEMPLATES)


def apt_packages(python_version: str) -> tuple[str, ...]:
    """Full install list for one Python version, in install order."""
    return BASE_APT_PACKAGES + python_apt_packages(python_version)
