from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import UnauthorizedException
from app.models import User
from app.security import decode_access_token
from app.services import user_service

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the ``Authorization: Bearer`` token to an active User.

    The token subject is the user's UUID.  A missing, malformed or expired
    token, or one naming a deleted user, raises 401.
    """
    if credentials is None:
        raise UnauthorizedException()

    subject = decode_access_token(credentials.credentials)
    if subject is None:
        raise UnauthorizedException()

    try:
        user_id = UUID(subject)
    except ValueError:
        raise UnauthorizedException()

    user = await user_service.get_user_model(db, user_id)
    if user is None:
        raise UnauthorizedException()
    return user
