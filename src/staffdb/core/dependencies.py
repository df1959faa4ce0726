#!/usr/bin/env python3

from ..core.config import StoreSettings

# Global repository instance
_repository = None


def get_repository():
    """Get or create the global StaffRepository instance"""
    global _repository
    if _repository is None:
        from ..services.repository import StaffRepository

        _repository = StaffRepository.connect(StoreSettings.from_env())

    return _repository


def cleanup_connections():
    """Clean up global connections on application shutdown"""
    global _repository
    if _repository is not None:
        try:
            _repository.close()
        finally:
            _repository = None
