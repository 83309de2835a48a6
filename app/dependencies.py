"""
Shared application dependencies.
Supports both Firebase mode and local development mode.
"""

import os
from typing import Any

from fastapi import Depends

from app.config import Settings, get_settings
from app.services.regeneration import StoryRegenerator
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Global Instances
_db_client = None
_watch_client = None
_is_local_mode = None


def _check_local_mode(settings: Settings) -> bool:
    """Determine if we should use local mode (no Firebase)."""
    global _is_local_mode
    if _is_local_mode is not None:
        return _is_local_mode

    cred_path = settings.firebase_credentials_path

    if not cred_path or not os.path.exists(cred_path):
        logger.info("Firebase credentials not found - running in LOCAL DEV mode")
        _is_local_mode = True
    else:
        _is_local_mode = False

    return _is_local_mode


def _init_firebase(settings: Settings) -> None:
    import firebase_admin
    from firebase_admin import credentials

    try:
        firebase_admin.get_app()
    except ValueError:
        cred = credentials.Certificate(settings.firebase_credentials_path)
        firebase_admin.initialize_app(cred)
        logger.info("Firebase Admin SDK initialized")


def _get_local_store(settings: Settings) -> Any:
    """LocalStore shared by the request path and the watcher."""
    global _db_client
    if _db_client is None:
        from app.services.local_store import LocalStore
        _db_client = LocalStore(
            seed_path=settings.local_seed_path or None,
            max_batch_operations=settings.max_batch_size,
        )
        logger.info("Using LocalStore (in-memory) database")
    return _db_client


def get_db_client(settings: Settings = Depends(get_settings)) -> Any:
    """Get database client - Firestore async client in prod, LocalStore in dev."""
    global _db_client
    if _db_client is not None:
        return _db_client

    if _check_local_mode(settings):
        return _get_local_store(settings)

    from firebase_admin import firestore_async
    _init_firebase(settings)
    _db_client = firestore_async.client()
    logger.info("Using Firestore database")
    return _db_client


def get_watch_client(settings: Settings = Depends(get_settings)) -> Any:
    """Get a client with on_snapshot support - sync Firestore client in prod."""
    global _watch_client
    if _watch_client is not None:
        return _watch_client

    if _check_local_mode(settings):
        _watch_client = _get_local_store(settings)
        return _watch_client

    from firebase_admin import firestore
    _init_firebase(settings)
    _watch_client = firestore.client()
    return _watch_client


def get_regenerator(
    db: Any = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> StoryRegenerator:
    """Get a story regenerator bound to the configured store."""
    return StoryRegenerator.from_client(db, settings)


def reset_clients() -> None:
    """Drop cached clients so the next call rebuilds them."""
    global _db_client, _watch_client, _is_local_mode
    _db_client = None
    _watch_client = None
    _is_local_mode = None
