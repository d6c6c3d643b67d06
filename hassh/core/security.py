"""
Безопасность: JWT токены, хеширование паролей, случайные секреты
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt
from jwt.exceptions import PyJWTError as JWTError

from hassh.core.config import settings


def create_access_token(
    subject: str | Any, expires_delta: timedelta | None = None
) -> str:
    """
    Создание JWT access token

    Args:
        subject: Идентификатор пользователя (user_id)
        expires_delta: Время жизни токена

    Returns:
        str: JWT токен
    """
    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {"sub": str(subject), "exp": expire, "iat": datetime.now(UTC)}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> str | None:
    """
    Верификация JWT access токена

    Args:
        token: JWT токен

    Returns:
        Optional[str]: Идентификатор пользователя или None если токен невалиден
    """
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM]
        )
        # Refresh токен не может использоваться как access токен
        if payload.get("type") == "refresh":
            return None
        return payload.get("sub")
    except JWTError:
        return None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Верификация пароля

    Args:
        plain_password: Пароль в открытом виде
        hashed_password: Хешированный пароль

    Returns:
        bool: True если пароль верный
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Поврежденный хеш
        return False


def get_password_hash(password: str) -> str:
    """
    Хеширование пароля

    Args:
        password: Пароль в открытом виде

    Returns:
        str: Хешированный пароль
    """
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def generate_password() -> str:
    """Сгенерировать случайный пароль для новой учетной записи"""
    return secrets.token_hex(16)


def generate_link_token() -> str:
    """Сгенерировать идентификатор публичной ссылки (128 бит, hex)"""
    return secrets.token_hex(16)


def create_refresh_token(
    subject: str | Any, expires_delta: timedelta | None = None
) -> str:
    """
    Создание JWT refresh token (более долгоживущий)

    Args:
        subject: Идентификатор пользователя
        expires_delta: Время жизни токена

    Returns:
        str: JWT refresh token
    """
    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    to_encode = {"sub": str(subject), "exp": expire, "type": "refresh"}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.ALGORITHM)


def verify_refresh_token(token: str) -> str | None:
    """
    Верификация refresh token

    Args:
        token: JWT refresh token

    Returns:
        Optional[str]: Идентификатор пользователя или None если токен невалиден
    """
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM]
        )
        # Проверяем что это refresh токен
        if payload.get("type") != "refresh":
            return None
        return payload.get("sub")
    except JWTError:
        return None
