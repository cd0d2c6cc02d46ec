"""
Pluggable storage backend factory.

Creates storage backends (DocumentStore, auth provider) based on
configuration. Local backends use SQLite. External backends register
via the ``onmind.backends`` entry point group.

External backend packages provide a factory function::

    def create_stores(config: StoreConfig) -> StoreBundle:
        ...

and register it in their pyproject.toml::

    [project.entry-points."onmind.backends"]
    my-backend = "my_package.backend:create_stores"
"""

from typing import NamedTuple

from .config import StoreConfig
from .protocol import AuthProviderProtocol, DocumentStoreProtocol


class StoreBundle(NamedTuple):
    """Collection of storage backends returned by the factory."""
    doc_store: DocumentStoreProtocol
    auth: AuthProviderProtocol
    is_local: bool  # True for filesystem-backed stores


def create_stores(config: StoreConfig) -> StoreBundle:
    """
    Create storage backends from configuration.

    For ``backend = "local"`` (default), creates the SQLite DocumentStore
    and LocalAuthProvider sharing one database file.

    For other values, loads the backend via the ``onmind.backends`` entry
    point group.
    """
    if config.backend == "local":
        return _create_local_stores(config)
    return _load_backend(config.backend, config)


def _create_local_stores(config: StoreConfig) -> StoreBundle:
    """Create the default local storage backends."""
    from .auth import LocalAuthProvider
    from .document_store import DocumentStore

    doc_store = DocumentStore(config.database_path)
    auth = LocalAuthProvider(config.database_path, session_path=config.session_path)
    return StoreBundle(doc_store=doc_store, auth=auth, is_local=True)


def _load_backend(name: str, config: StoreConfig) -> StoreBundle:
    """Load a backend by entry point name."""
    from importlib.metadata import entry_points

    eps = entry_points(group="onmind.backends")
    for ep in eps:
        if ep.name == name:
            factory = ep.load()
            return factory(config)

    available = [ep.name for ep in eps]
    if available:
        raise ValueError(
            f"Unknown backend: {name!r}. Available: {available}"
        )
    raise ValueError(
        f"Unknown backend: {name!r}. No backends registered."
    )
