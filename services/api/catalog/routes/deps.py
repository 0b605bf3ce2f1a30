"""Request-scoped dependencies shared by the routers."""

import uuid

from fastapi import Header, HTTPException, Request

from catalog.errors import DatabaseError
from catalog.stores.postgres import Database


def get_db(request: Request) -> Database:
    """Database handle created in the app lifespan."""
    db: Database | None = getattr(request.app.state, "db", None)
    if db is None:
        raise DatabaseError("Database unavailable", "UNAVAILABLE")
    return db


def get_user_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> uuid.UUID:
    """Authenticated caller id, supplied by the auth layer in front of this service."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        return uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-User-Id header") from None
