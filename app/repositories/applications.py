# app/repositories/applications.py
from typing import Any, Dict, List, Optional, Tuple

from pymongo.errors import DuplicateKeyError

from app.core.errors import DuplicateApplication
from app.db.mongo import APPLICATIONS, get_db, now, serialize, to_object_id
from app.models.application import Application


def _to_application(doc) -> Optional[Application]:
    if not doc:
        return None
    return Application.model_validate(serialize(doc))


async def create_application(doc: Dict[str, Any]) -> Application:
    """
    Insert a fully assembled application document. The unique
    ``(applicant, job)`` index is the final word on duplicates.
    """
    db = get_db()
    payload = dict(doc)
    payload["applicant"] = to_object_id(payload["applicant"], "user id")
    payload["job"] = to_object_id(payload["job"], "job id")
    payload.setdefault("created_at", now())
    payload.setdefault("updated_at", payload["created_at"])
    try:
        res = await db[APPLICATIONS].insert_one(payload)
    except DuplicateKeyError as exc:
        raise DuplicateApplication() from exc
    payload["_id"] = res.inserted_id
    return _to_application(payload)


async def get_application(application_id: str) -> Optional[Application]:
    db = get_db()
    doc = await db[APPLICATIONS].find_one({"_id": to_object_id(application_id, "application id")})
    return _to_application(doc)


async def find_by_applicant_and_job(applicant: str, job: str) -> Optional[Application]:
    db = get_db()
    doc = await db[APPLICATIONS].find_one({
        "applicant": to_object_id(applicant, "user id"),
        "job": to_object_id(job, "job id"),
    })
    return _to_application(doc)


async def find_by_filename(filename: str) -> List[Application]:
    """Applications referencing a stored upload, either as resume or extra document."""
    db = get_db()
    cur = db[APPLICATIONS].find({
        "$or": [
            {"resume.filename": filename},
            {"additional_documents.filename": filename},
        ]
    }).limit(1)
    out = []
    async for d in cur:
        out.append(_to_application(d))
    return out


async def append_timeline(
    application_id: str,
    entry: Dict[str, Any],
    set_fields: Optional[Dict[str, Any]] = None,
) -> Optional[Application]:
    """Push one timeline entry and apply ``set_fields`` in the same update."""
    db = get_db()
    oid = to_object_id(application_id, "application id")
    payload = dict(entry)
    if payload.get("updated_by"):
        payload["updated_by"] = to_object_id(payload["updated_by"], "user id")
    update = {
        "$push": {"timeline": payload},
        "$set": {**(set_fields or {}), "updated_at": now()},
    }
    await db[APPLICATIONS].update_one({"_id": oid}, update)
    return _to_application(await db[APPLICATIONS].find_one({"_id": oid}))


async def set_fields(application_id: str, fields: Dict[str, Any]) -> Optional[Application]:
    db = get_db()
    oid = to_object_id(application_id, "application id")
    await db[APPLICATIONS].update_one({"_id": oid}, {"$set": {**fields, "updated_at": now()}})
    return _to_application(await db[APPLICATIONS].find_one({"_id": oid}))


async def push_interview(application_id: str, interview: Dict[str, Any]) -> Optional[Application]:
    db = get_db()
    oid = to_object_id(application_id, "application id")
    payload = dict(interview)
    if payload.get("interviewer"):
        payload["interviewer"] = to_object_id(payload["interviewer"], "interviewer id")
    await db[APPLICATIONS].update_one(
        {"_id": oid},
        {"$push": {"interviews": payload}, "$set": {"updated_at": now()}},
    )
    return _to_application(await db[APPLICATIONS].find_one({"_id": oid}))


async def find_applications(
    query: Dict[str, Any],
    skip: int = 0,
    limit: int = 10,
    sort_by: str = "created_at",
    direction: int = -1,
) -> Tuple[List[Application], int]:
    db = get_db()
    total = await db[APPLICATIONS].count_documents(query)
    cur = db[APPLICATIONS].find(query).sort(sort_by, direction).skip(skip).limit(limit)
    out = []
    async for d in cur:
        out.append(_to_application(d))
    return out, total


async def count_applications(query: Dict[str, Any]) -> int:
    db = get_db()
    return await db[APPLICATIONS].count_documents(query)
