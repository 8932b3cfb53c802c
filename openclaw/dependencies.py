"""FastAPI dependencies handing out the resources owned by the running app."""

import hmac
import logging

from fastapi import Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from openclaw.errors import AdminDisabled, Unauthorized
from openclaw.services.object_storage import ObjectStorage

logger = logging.getLogger(__name__)


def get_engine(request: Request) -> AsyncEngine:
    return request.app.state.engine


def get_sessions(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessions


def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage


def check_admin_token(configured: str | None, supplied: str | None) -> None:
    """
    Exact, constant-time match against the configured secret.

    With no secret configured nothing gets through.
    """
    if not configured:
        raise AdminDisabled("ADMIN_TOKEN is not configured; admin routes are disabled.")
    if supplied is None or not hmac.compare_digest(
        supplied.encode("utf-8"), configured.encode("utf-8")
    ):
        raise Unauthorized("Admin token mismatch.")


def require_admin(
    request: Request,
    token: str | None = Query(None),
    x_admin_token: str | None = Header(None),
) -> None:
    """
    Accept the admin token from the X-Admin-Token header or a ?token= query
    parameter. The header wins when both are sent; query strings end up in
    access logs, so the header is the channel to use.
    """
    supplied = x_admin_token if x_admin_token is not None else token
    try:
        check_admin_token(request.app.state.settings.admin_token, supplied)
    except Unauthorized:
        logger.warning("Rejected admin request to %s", request.url.path)
        raise
