from typing import Any

import jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from heliclockter import datetime_utc, timedelta
from pydantic import BaseModel

from prizepool.config import config
from prizepool.models.db.user import UserPublic
from prizepool.sql.users import sql_get_user_by_email
from prizepool.utils.errors import Forbidden, Unauthorized
from prizepool.utils.id_types import UserId

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = config.access_token_expire_minutes

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


class Token(BaseModel):
    access_token: str
    token_type: str
    user_id: UserId


class TokenData(BaseModel):
    email: str


def create_access_token(data: dict[str, Any], expires_delta: timedelta) -> str:
    to_encode = data.copy()
    expire = datetime_utc.now() + expires_delta
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.jwt_secret, algorithm=ALGORITHM)


def decode_access_token(token: str) -> TokenData:
    try:
        payload = jwt.decode(token, config.jwt_secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError as exc:
        raise Unauthorized("Could not validate credentials") from exc

    email = payload.get("user")
    if not isinstance(email, str):
        raise Unauthorized("Could not validate credentials")
    return TokenData(email=email)


async def user_authenticated(token: str = Depends(oauth2_scheme)) -> UserPublic:
    token_data = decode_access_token(token)
    user = await sql_get_user_by_email(token_data.email)
    if user is None:
        raise Unauthorized("Could not validate credentials")
    return user


async def admin_authenticated(user: UserPublic = Depends(user_authenticated)) -> UserPublic:
    if not user.is_admin:
        raise Forbidden("Administrator role required")
    return user
