from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from condo.core.errors import AuthenticationError, PermissionDeniedError
from condo.models.db_models import CurrentUser

bearer = HTTPBearer(auto_error=False)


async def get_current_user(request: Request,
                           credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> CurrentUser:
    """
    Resolve the bearer token of the request to the calling user.
    Missing or rejected tokens are a 401.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Faça login para continuar.")
    return await request.app.state.auth.get_user(credentials.credentials)


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise PermissionDeniedError()
    return user
