# app/utils/responses.py
from typing import Any, Optional

from pydantic import BaseModel


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


def ok(message: str, data: Optional[Any] = None) -> dict:
    """Success envelope: ``{"status": "success", "message": ..., "data": ...}``."""
    body = {"status": "success", "message": message}
    if data is not None:
        body["data"] = _plain(data)
    return body
