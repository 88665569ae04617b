"""
cluster-search mirrors objects observed in member clusters into search backends.

The main entry points are:
  - `cluster_search.resource`: the resource objects and events delivered by a watch.
  - `cluster_search.document`: normalization of objects into backend documents.
  - `cluster_search.backendstore`: backend stores, the synchronization pipeline
    and the registry routing events to them.
  - `cluster_search.config`: `ResourceRegistry` and backend store configuration.
"""

__all__ = [
    "resource",
    "document",
    "backendstore",
    "config",
    "secret",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
