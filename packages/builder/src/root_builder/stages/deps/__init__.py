from .stage import stage_install_deps

__all__ = ["stage_install_deps"]
