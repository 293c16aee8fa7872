"""Dependency injection utilities for FastAPI routes.

Per-app instances (settings, store, recorder, GeoIP service) are created by
``create_app`` and kept on ``app.state``.
"""

from typing import Annotated

from fastapi import Cookie, Depends, HTTPException, Request, status

from biolink.core.config import Settings
from biolink.core.security import decode_access_token
from biolink.core.storage import JsonStore
from biolink.services.click_recorder import ClickRecorder
from biolink.services.geoip import GeoIPService

# Cookie name for auth token
AUTH_COOKIE_NAME = "biolink_token"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> JsonStore:
    return request.app.state.store


def get_recorder(request: Request) -> ClickRecorder:
    return request.app.state.recorder


def get_geoip(request: Request) -> GeoIPService:
    return request.app.state.geoip


async def get_current_admin(
    settings: Annotated[Settings, Depends(get_app_settings)],
    biolink_token: Annotated[str | None, Cookie()] = None,
) -> str:
    """Get the authenticated admin username.

    Raises HTTPException 401 if not authenticated.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if biolink_token is None:
        raise credentials_exception

    username = decode_access_token(settings, biolink_token)
    if username is None:
        raise credentials_exception

    return username


# Type aliases for dependency injection
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Store = Annotated[JsonStore, Depends(get_store)]
Recorder = Annotated[ClickRecorder, Depends(get_recorder)]
GeoIP = Annotated[GeoIPService, Depends(get_geoip)]
CurrentAdmin = Annotated[str, Depends(get_current_admin)]
