"""
UTXO Indexer - API Dependencies
=================================
FastAPI dependency injection utilities.
"""

from typing import Optional
from fastapi import HTTPException, status

from utxo_indexer.config import IndexerSettings
from utxo_indexer.logging_setup import get_logger
from utxo_indexer.services.indexer_service import IndexerService

logger = get_logger("api.deps")

# Global instances (set at startup)
_service: Optional[IndexerService] = None
_config: Optional[IndexerSettings] = None


def set_service(service: Optional[IndexerService]):
    """Set global indexer service instance"""
    global _service
    _service = service


def set_config(config: Optional[IndexerSettings]):
    """Set global config instance"""
    global _config
    _config = config


def get_service() -> IndexerService:
    """
    Get indexer service instance.

    Dependency for FastAPI routes.
    """
    if _service is None:
        logger.warning("Request received before the indexer service was initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Indexer service not initialized"
        )
    return _service


def get_config() -> IndexerSettings:
    """
    Get configuration instance.

    Dependency for FastAPI routes.
    """
    if _config is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Configuration not initialized"
        )
    return _config


__all__ = [
    'get_service',
    'get_config',
    'set_service',
    'set_config',
]
