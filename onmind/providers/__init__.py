"""
External lookups used by onmind.
"""

from .metadata import MetadataProvider, MetadataResult, extract_open_graph, fetch_url_metadata

__all__ = [
    "MetadataProvider",
    "MetadataResult",
    "extract_open_graph",
    "fetch_url_metadata",
]
