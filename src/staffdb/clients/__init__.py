"""
Client Layer

This package contains low-level client wrappers for external services.
Clients handle communication with external systems but contain no business logic.

Modules:
- basex_client: BaseX XML database client
"""

from .basex_client import BaseXStoreClient

__all__ = [
    'BaseXStoreClient',
]
