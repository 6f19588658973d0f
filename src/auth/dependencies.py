"""FastAPI dependencies for request authentication."""

from __future__ import annotations

import inspect
from typing import Any, Optional

from fastapi import Depends, Request, params

from src.auth.jwt import AuthContext
from src.auth.middleware import AUTH_CONTEXT_KEY
from src.core.errors import Unauthorized


def get_optional_auth_context(request: Request) -> Optional[AuthContext]:
    return getattr(request.state, AUTH_CONTEXT_KEY, None)


def require_auth_context(auth: Optional[AuthContext] = Depends(get_optional_auth_context)) -> AuthContext:
    if auth is None:
        raise Unauthorized("Unauthorized")
    return auth


def endpoint_requires_auth(endpoint: Any) -> bool:
    """True when a route handler declares ``Depends(require_auth_context)``."""

    if not callable(endpoint):
        return False
    for parameter in inspect.signature(endpoint).parameters.values():
        default = parameter.default
        if isinstance(default, params.Depends) and default.dependency is require_auth_context:
            return True
    return False
