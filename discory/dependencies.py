"""
Discory Backend — Request Dependencies
=======================================

What:  FastAPI dependencies shared by the route modules.
How:   `get_current_account_id` reads `Authorization: Bearer <jwt>` and
       returns the account id from the verified token. A missing header, a
       non-bearer scheme or a bad token all raise AuthenticationError, which
       the global handler turns into 401 {"error": ...}.
"""

import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from discory.exceptions import AuthenticationError
from discory.services.auth_service import auth_service

# auto_error=False so that a missing header goes through our error format
# instead of FastAPI's default 403
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_account_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> uuid.UUID:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    return auth_service.decode_token(credentials.credentials).account_id
