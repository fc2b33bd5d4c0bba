# app/repositories/jobs.py
from typing import Any, Dict, List, Optional, Tuple

from app.db.mongo import JOBS, get_db, now, serialize, to_object_id
from app.models.job import Job

_REFERENCE_FIELDS = ("company",)


def _to_job(doc) -> Optional[Job]:
    if not doc:
        return None
    return Job.model_validate(serialize(doc))


def _refs(fields: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(fields)
    for name in _REFERENCE_FIELDS:
        if out.get(name):
            out[name] = to_object_id(out[name], f"{name} id")
    return out


async def create_job(fields: Dict[str, Any], posted_by: str) -> Job:
    db = get_db()
    payload = {
        "status": "active",
        "is_remote": False,
        "skills": [],
        "benefits": [],
        "requirements": [],
        "tags": [],
        "urgency": "medium",
        "featured": False,
    }
    payload.update({k: v for k, v in _refs(fields).items() if v is not None})
    payload.update({
        "posted_by": to_object_id(posted_by, "user id"),
        "applications": [],
        "views_count": 0,
        "created_at": now(),
        "updated_at": now(),
    })
    res = await db[JOBS].insert_one(payload)
    payload["_id"] = res.inserted_id
    return _to_job(payload)


async def get_job(job_id: str) -> Optional[Job]:
    db = get_db()
    doc = await db[JOBS].find_one({"_id": to_object_id(job_id, "job id")})
    return _to_job(doc)


async def increment_views(job_id: str) -> None:
    db = get_db()
    await db[JOBS].update_one({"_id": to_object_id(job_id, "job id")}, {"$inc": {"views_count": 1}})


async def update_job(job_id: str, fields: Dict[str, Any]) -> Optional[Job]:
    db = get_db()
    oid = to_object_id(job_id, "job id")
    await db[JOBS].update_one({"_id": oid}, {"$set": {**_refs(fields), "updated_at": now()}})
    return _to_job(await db[JOBS].find_one({"_id": oid}))


async def delete_job(job_id: str) -> bool:
    db = get_db()
    res = await db[JOBS].delete_one({"_id": to_object_id(job_id, "job id")})
    return res.deleted_count > 0


async def add_application_ref(job_id: str, application_id: str) -> None:
    """Record the application on its job; ``$addToSet`` keeps it idempotent."""
    db = get_db()
    await db[JOBS].update_one(
        {"_id": to_object_id(job_id, "job id")},
        {"$addToSet": {"applications": to_object_id(application_id, "application id")}},
    )


async def find_jobs(
    query: Dict[str, Any],
    skip: int = 0,
    limit: int = 10,
    sort: Optional[List[Tuple[str, int]]] = None,
) -> Tuple[List[Job], int]:
    db = get_db()
    total = await db[JOBS].count_documents(query)
    cur = db[JOBS].find(query).sort(sort or [("created_at", -1)]).skip(skip).limit(limit)
    out = []
    async for d in cur:
        out.append(_to_job(d))
    return out, total


async def job_ids_posted_by(user_id: str) -> List[Any]:
    db = get_db()
    return await db[JOBS].distinct("_id", {"posted_by": to_object_id(user_id, "user id")})


async def count_jobs(query: Dict[str, Any]) -> int:
    db = get_db()
    return await db[JOBS].count_documents(query)


async def distinct_values(field: str, query: Optional[Dict[str, Any]] = None) -> List[Any]:
    db = get_db()
    return await db[JOBS].distinct(field, query or {})
