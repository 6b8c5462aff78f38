from .engine import FilterConfig, FilterEngine, FilterResult

__all__ = ["FilterConfig", "FilterEngine", "FilterResult"]
