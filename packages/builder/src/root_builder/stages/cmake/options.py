"""
CMake configuration policy for ROOT builds.

Two explicit tables drive `cmake`: compiler/install settings, which depend on
the build's paths, and the fixed feature matrix of ROOT build switches. Both
are plain data so the policy can be inspected and tested without running
anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from root_builder.pipeline.types import BuildEnvironment

CMAKE_GENERATOR = "Ninja"

# ROOT feature switches: name -> enabled.
ROOT_FEATURES: Mapping[str, bool] = {
    # Python bindings and statistics/math add-ons
    "pyroot": True,
    "mathmore": True,
    "roofit": True,
    # threading, TLS, XML
    "thread": True,
    "imt": True,
    "ssl": True,
    "xml": True,
    # distributed storage client
    "xrootd": True,
    "builtin_xrootd": True,
    # bundled third-party libraries
    "builtin_ftgl": True,
    "builtin_glew": True,
    "builtin_afterimage": True,
    "builtin_ryml": True,
    # graphics, physics generators, Fortran interop
    "root7": True,
    "graf3d": True,
    "pythia8": True,
    "fortran": True,
    # always off
    "builtin_vdt": False,
    "vdt": False,
    "vc": False,
    "opengl": False,
    "ccache": False,
    "testing": False,
    "table": False,
    "sqlite": False,
    "gdml": False,
    "davix": False,
    "fitsio": False,
}

CMAKE_BUILD_TYPE = "MinSizeRel"
CMAKE_CXX_FLAGS = "-fPIC -D_GLIBCXX_USE_CXX11_ABI=1"
CMAKE_C_FLAGS = "-fPIC"
CMAKE_CXX_STANDARD = "17"
CMAKE_FIND_LIBRARY_SUFFIXES = ".a;.so"


@dataclass(frozen=True, slots=True)
class CMakeDefine:
    name: str
    value: str

    def arg(self) -> str:
        return f"-D{self.name}={self.value}"


def on_off(enabled: bool) -> str:
    return "ON" if enabled else "OFF"


def compiler_settings(install_dir: Path) -> dict[str, str]:
    """Install prefix, build type, compiler flags and runtime-path embedding."""
    return {
        "CMAKE_INSTALL_PREFIX": str(install_dir),
        "CMAKE_BUILD_TYPE": CMAKE_BUILD_TYPE,
        "CMAKE_CXX_FLAGS": CMAKE_CXX_FLAGS,
        "CMAKE_C_FLAGS": CMAKE_C_FLAGS,
        "CMAKE_CXX_STANDARD": CMAKE_CXX_STANDARD,
        "CMAKE_INSTALL_RPATH_USE_LINK_PATH": "ON",
        "CMAKE_INSTALL_RPATH": str(install_dir / "lib"),
        "CMAKE_FIND_LIBRARY_SUFFIXES": CMAKE_FIND_LIBRARY_SUFFIXES,
    }


def python_settings(env: BuildEnvironment) -> dict[str, str]:
    return {
        "PYTHON_EXECUTABLE": env.python_executable,
        "PYTHON_LIBRARY": env.python_library,
        "PYTHON_INCLUDE_DIR": env.python_include_dir,
        "Python3_NumPy_INCLUDE_DIRS": env.numpy_include_dir,
    }


def feature_settings(features: Mapping[str, bool] = ROOT_FEATURES) -> dict[str, str]:
    return {name: on_off(enabled) for name, enabled in features.items()}


def cmake_defines(
    *,
    install_dir: Path,
    env: BuildEnvironment,
    features: Mapping[str, bool] = ROOT_FEATURES,
) -> list[CMakeDefine]:
    merged: dict[str, str] = {}
    for table in (compiler_settings(install_dir), python_settings(env), feature_settings(features)):
        for name, value in table.items():
            if name in merged:
                raise ValueError(f"CMake option defined twice: {name}")
            merged[name] = value
    return [CMakeDefine(name=k, value=v) for k, v in merged.items()]


def cmake_configure_argv(
    *,
    source_dir: Path,
    install_dir: Path,
    env: BuildEnvironment,
    features: Mapping[str, bool] = ROOT_FEATURES,
    cmake: str = "cmake",
) -> list[str]:
    defines = cmake_defines(install_dir=install_dir, env=env, features=features)
    return [cmake, str(source_dir), *(d.arg() for d in defines), "-G", CMAKE_GENERATOR]
