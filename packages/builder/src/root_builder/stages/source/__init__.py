from .stage import cleanup_source, stage_fetch_source

__all__ = ["stage_fetch_source", "cleanup_source"]
