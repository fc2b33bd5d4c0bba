# app/repositories/companies.py
from typing import Any, Dict, List, Optional, Tuple

from pymongo.errors import DuplicateKeyError

from app.core.errors import Conflict
from app.db.mongo import COMPANIES, get_db, now, serialize, to_object_id
from app.models.company import Company


def _to_company(doc) -> Optional[Company]:
    if not doc:
        return None
    return Company.model_validate(serialize(doc))


async def create_company(fields: Dict[str, Any], employer: str) -> Company:
    db = get_db()
    payload = {k: v for k, v in fields.items() if v is not None}
    payload.update({
        "employer": to_object_id(employer, "user id"),
        "benefits": payload.get("benefits") or [],
        "is_verified": False,
        "is_active": True,
        "created_at": now(),
        "updated_at": now(),
    })
    try:
        res = await db[COMPANIES].insert_one(payload)
    except DuplicateKeyError as exc:
        raise Conflict("You already have a company profile") from exc
    payload["_id"] = res.inserted_id
    return _to_company(payload)


async def get_company(company_id: str) -> Optional[Company]:
    db = get_db()
    doc = await db[COMPANIES].find_one({"_id": to_object_id(company_id, "company id")})
    return _to_company(doc)


async def get_company_by_employer(employer: str) -> Optional[Company]:
    db = get_db()
    doc = await db[COMPANIES].find_one({"employer": to_object_id(employer, "user id")})
    return _to_company(doc)


async def update_company(company_id: str, fields: Dict[str, Any]) -> Optional[Company]:
    db = get_db()
    oid = to_object_id(company_id, "company id")
    await db[COMPANIES].update_one({"_id": oid}, {"$set": {**fields, "updated_at": now()}})
    return _to_company(await db[COMPANIES].find_one({"_id": oid}))


async def delete_company(company_id: str) -> bool:
    db = get_db()
    res = await db[COMPANIES].delete_one({"_id": to_object_id(company_id, "company id")})
    return res.deleted_count > 0


async def list_companies(skip: int = 0, limit: int = 10) -> Tuple[List[Company], int]:
    db = get_db()
    query = {"is_active": True}
    total = await db[COMPANIES].count_documents(query)
    cur = db[COMPANIES].find(query).sort("name", 1).skip(skip).limit(limit)
    out = []
    async for d in cur:
        out.append(_to_company(d))
    return out, total
