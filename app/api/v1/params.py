# app/api/v1/params.py
from typing import Optional

from fastapi import Query
from pydantic import ValidationError

from app.core.errors import ValidationFailed, validation_messages
from app.models.application import ApplicationListParams
from app.models.common import PageParams


def page_params(
    page: int = Query(1),
    limit: int = Query(10),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
) -> PageParams:
    try:
        return PageParams(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
    except ValidationError as exc:
        raise ValidationFailed("Invalid query parameters", errors=validation_messages(exc)) from exc


def application_list_params(
    page: int = Query(1),
    limit: int = Query(10),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    status: Optional[str] = Query(None),
    job: Optional[str] = Query(None),
) -> ApplicationListParams:
    try:
        return ApplicationListParams(
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
            status=status or None,
            job=job or None,
        )
    except ValidationError as exc:
        raise ValidationFailed("Invalid query parameters", errors=validation_messages(exc)) from exc
