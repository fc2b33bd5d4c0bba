# app/repositories/users.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from app.core.errors import Conflict
from app.db.mongo import USERS, get_db, now, serialize, to_object_id
from app.models.user import User


def _to_user(doc) -> Optional[User]:
    if not doc:
        return None
    return User.model_validate(serialize(doc))


async def create_user(
    first_name: str,
    last_name: str,
    email: str,
    password_hash: str,
    role: str,
) -> User:
    db = get_db()
    payload = {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "password_hash": password_hash,
        "role": role,
        "is_active": True,
        "is_email_verified": False,
        "profile": {"skills": []},
        "saved_jobs": [],
        "last_login": None,
        "created_at": now(),
        "updated_at": now(),
    }
    try:
        res = await db[USERS].insert_one(payload)
    except DuplicateKeyError as exc:
        raise Conflict("An account with this email already exists") from exc
    payload["_id"] = res.inserted_id
    return _to_user(payload)


async def get_user(user_id: str) -> Optional[User]:
    db = get_db()
    doc = await db[USERS].find_one({"_id": to_object_id(user_id, "user id")})
    return _to_user(doc)


async def get_user_by_email(email: str) -> Optional[User]:
    db = get_db()
    doc = await db[USERS].find_one({"email": email.lower()})
    return _to_user(doc)


async def get_user_by_reset_token(token_hash: str) -> Optional[User]:
    db = get_db()
    doc = await db[USERS].find_one({"password_reset_token": token_hash})
    return _to_user(doc)


async def update_user(user_id: str, fields: Dict[str, Any]) -> Optional[User]:
    db = get_db()
    oid = to_object_id(user_id, "user id")
    await db[USERS].update_one({"_id": oid}, {"$set": {**fields, "updated_at": now()}})
    return _to_user(await db[USERS].find_one({"_id": oid}))


async def touch_last_login(user_id: str, when: datetime) -> None:
    db = get_db()
    await db[USERS].update_one({"_id": to_object_id(user_id, "user id")}, {"$set": {"last_login": when}})


async def add_saved_job(user_id: str, job_id: str) -> None:
    db = get_db()
    await db[USERS].update_one(
        {"_id": to_object_id(user_id, "user id")},
        {"$addToSet": {"saved_jobs": to_object_id(job_id, "job id")}},
    )


async def remove_saved_job(user_id: str, job_id: str) -> None:
    db = get_db()
    await db[USERS].update_one(
        {"_id": to_object_id(user_id, "user id")},
        {"$pull": {"saved_jobs": to_object_id(job_id, "job id")}},
    )


async def list_users(skip: int = 0, limit: int = 20) -> List[User]:
    db = get_db()
    cur = db[USERS].find({}).sort("created_at", -1).skip(skip).limit(limit)
    out = []
    async for d in cur:
        out.append(_to_user(d))
    return out
