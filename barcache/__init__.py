"""Location-aware bar cache: cached device location, cached nearby bars and
the fetch/fallback orchestration around a remote places lookup."""

__version__ = "1.0.0"
