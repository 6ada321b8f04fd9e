"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portfolio_backend.config import Settings, get_settings
from portfolio_backend.db import DbClient, InMemoryDbClient, SqlDbClient
from portfolio_backend.localization import negotiate_language
from portfolio_backend.seed import seed_if_empty
from portfolio_backend.sessions import (
    AdminSession,
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
)
from portfolio_backend.storage import (
    InMemoryMediaStorage,
    LocalMediaStorage,
    MediaStorage,
    S3MediaStorage,
)

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None
_media_storage: MediaStorage | None = None
_session_store: SessionStore | None = None

_bearer = HTTPBearer(auto_error=False)


def get_db_client() -> DbClient:
    """
    Return a singleton DB client; the schema and singleton rows are created
    on first use and placeholder content is seeded if enabled.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        client: DbClient = InMemoryDbClient()
    else:
        client = SqlDbClient(settings.database_url)
    if settings.seed_on_startup:
        seed_if_empty(client)
    _db_client = client
    return _db_client


def get_media_storage() -> MediaStorage:
    global _media_storage
    if _media_storage:
        return _media_storage

    settings = get_settings()
    if settings.s3_bucket:
        _media_storage = S3MediaStorage(
            bucket=settings.s3_bucket,
            region=settings.s3_region or "",
            endpoint=settings.s3_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            public_url=settings.s3_public_url or "",
        )
    elif settings.use_in_memory_backends:
        _media_storage = InMemoryMediaStorage(mount_path=settings.uploads_mount)
    else:
        _media_storage = LocalMediaStorage(
            upload_dir=settings.upload_dir, mount_path=settings.uploads_mount
        )
    return _media_storage


def get_session_store() -> SessionStore:
    """
    Return a singleton session store so tokens survive across requests.
    """
    global _session_store
    if _session_store:
        return _session_store

    settings = get_settings()
    if settings.redis_url:
        _session_store = RedisSessionStore(
            url=settings.redis_url, key_prefix=settings.redis_session_prefix
        )
    else:
        _session_store = InMemorySessionStore()
    return _session_store


def get_request_language(
    lang: Optional[str] = Query(None),
    accept_language: Optional[str] = Header(None),
) -> str:
    return negotiate_language(lang, accept_language)


def get_media_base_url(
    request: Request, settings: Settings = Depends(get_settings)
) -> str:
    """Configured public base URL, else the address the request came in on."""
    if settings.base_url:
        return settings.base_url
    return str(request.base_url)


def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    sessions: SessionStore = Depends(get_session_store),
) -> AdminSession:
    token = credentials.credentials if credentials else ""
    session = sessions.validate(token)
    if session is None:
        if token:
            logger.warning("Rejected unknown or expired admin token")
        raise HTTPException(status_code=401, detail="Unauthorized")
    sessions.touch(token)
    return session
