from prizepool.database import database
from prizepool.models.db.user import UserProfile, UserPublic
from prizepool.utils.id_types import UserId


async def sql_get_user_by_id(user_id: UserId) -> UserPublic | None:
    query = """
        SELECT id, email, name, role, created
        FROM users
        WHERE id = :user_id
        """
    result = await database.fetch_one(query=query, values={"user_id": user_id})
    return UserPublic.model_validate(dict(result._mapping)) if result is not None else None


async def sql_get_user_profile(user_id: UserId) -> UserProfile | None:
    query = """
        SELECT *
        FROM user_profiles
        WHERE user_id = :user_id
        """
    result = await database.fetch_one(query=query, values={"user_id": user_id})
    return UserProfile.model_validate(dict(result._mapping)) if result is not None else None


async def sql_get_user_by_email(email: str) -> UserPublic | None:
    query = """
        SELECT id, email, name, role, created
        FROM users
        WHERE email = :email
        """
    result = await database.fetch_one(query=query, values={"email": email})
    return UserPublic.model_validate(dict(result._mapping)) if result is not None else None
