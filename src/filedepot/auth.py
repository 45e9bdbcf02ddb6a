"""Request principal resolution."""

from __future__ import annotations

import secrets
from typing import Callable, Optional

from fastapi import Header, HTTPException, Request, status

from .settings import SettingsStore


ANONYMOUS = "anonymous"
TOKEN_PRINCIPAL = "token"


def create_principal_dependency(store: SettingsStore) -> Callable[..., str]:
    """
    Build the FastAPI dependency that yields the caller's principal.

    Identities are verified upstream. When an access token is configured the
    request must present it as ``Authorization: Bearer <token>``; otherwise
    every caller is anonymous.

    Args:
        store: Settings store holding the optional access token.

    Returns:
        Dependency callable returning the principal name.
    """

    def get_principal(request: Request, authorization: Optional[str] = Header(None)) -> str:
        settings = store.load()
        if not settings.auth_required():
            principal = ANONYMOUS
        else:
            if not authorization or not authorization.startswith("Bearer "):
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Missing or malformed authorization header",
                    headers={"WWW-Authenticate": "Bearer"},
                )

            token = authorization[len("Bearer "):].strip()
            if not secrets.compare_digest(token.encode("utf-8"), settings.access_token.strip().encode("utf-8")):
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid access token",
                    headers={"WWW-Authenticate": "Bearer"},
                )
            principal = TOKEN_PRINCIPAL

        request.state.principal = principal
        return principal

    return get_principal
