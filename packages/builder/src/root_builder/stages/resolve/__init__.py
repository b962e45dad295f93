from .stage import stage_resolve_env

__all__ = ["stage_resolve_env"]
