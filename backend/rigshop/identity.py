"""
Identity: bearer token from the external identity provider -> user id.

Аутентификация делегирована внешнему провайдеру; здесь только проверка
подписи HS256 и извлечение `sub`. Сервисы получают user_id явно.
"""

import logging
from typing import Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .config import get_jwt_secret, get_jwt_algorithm

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def decode_user_id(token: str) -> Optional[str]:
    """sub из валидного токена; None для просроченного / невалидного"""
    try:
        payload = jwt.decode(token, get_jwt_secret(), algorithms=[get_jwt_algorithm()])
    except jwt.ExpiredSignatureError:
        logger.info("Expired bearer token")
        return None
    except jwt.InvalidTokenError:
        logger.info("Invalid bearer token")
        return None
    return payload.get("sub") or None


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """currentUserId() -> id | None"""
    if credentials is None:
        return None
    return decode_user_id(credentials.credentials)


async def require_user_id(user_id: Optional[str] = Depends(get_current_user_id)) -> str:
    if not user_id:
        raise HTTPException(status_code=401, detail="Must be logged in")
    return user_id
