"""
JWT verification
Sessions are issued by the dashboard; this service only checks them
"""
import jwt
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from gitrekt.core.config import settings
from gitrekt.models.user import UserInDB
from gitrekt.repositories.user_repository import user_repo

security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_token(token: str) -> dict:
    """Decode a session token, 401 when expired or tampered with"""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid authentication credentials")


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> UserInDB:
    """Owner of the session (dependency for FastAPI routes)"""
    payload = verify_token(credentials.credentials)

    github_id = payload.get("github_id")
    if not github_id:
        raise _unauthorized("Invalid token payload")

    user = await user_repo.find_by_github_id(str(github_id))
    if not user:
        raise _unauthorized("User not found")

    return user
