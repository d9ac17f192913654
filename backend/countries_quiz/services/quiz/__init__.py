"""Quiz domain services: catalog, name resolution, sessions and ranking.

This package holds the game mechanics that HTTP routes and socket
handlers call into. Only ``scores`` and ``scheduler`` touch Flask or the
database; everything else is plain Python.
"""

from functools import lru_cache

from flask import current_app

from .catalog import get_catalog
from .resolver import NameResolver


@lru_cache(maxsize=None)
def _resolver_for(catalog_path: str) -> NameResolver:
    return NameResolver(get_catalog(catalog_path))


def get_resolver(app=None) -> NameResolver:
    """Shared resolver for the app's configured catalog."""
    app = app or current_app
    return _resolver_for(app.config['CATALOG_PATH'])
