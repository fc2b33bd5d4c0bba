# app/api/v1/uploads.py
"""
Serves stored application files back to the people allowed to read the
owning application: the applicant, the job's employer and admins.
"""
import logging
import os

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, RedirectResponse

from app.api.v1.auth import get_current_user
from app.core.errors import Forbidden, NotFound, ValidationFailed
from app.models.user import User
from app.repositories import applications as applications_repo
from app.repositories import jobs as jobs_repo
from app.services import storage
from app.services.authorization import authorize_application_read
from app.services.file_intake import SERVED_DIRECTORIES, SERVED_EXTENSIONS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.get("/{directory}/{filename}")
async def serve_upload(directory: str, filename: str, user: User = Depends(get_current_user)):
    if directory not in SERVED_DIRECTORIES:
        raise NotFound("File not found")
    if filename != os.path.basename(filename) or filename.startswith("."):
        raise ValidationFailed("Invalid file name")
    if os.path.splitext(filename)[1].lower() not in SERVED_EXTENSIONS:
        raise Forbidden("File type not allowed")

    owners = await applications_repo.find_by_filename(filename)
    if not owners:
        raise NotFound("File not found")
    application = owners[0]
    job = await jobs_repo.get_job(application.job)
    authorize_application_read(user, application, job)

    key = f"{directory}/{filename}"
    if storage.uses_s3():
        url = storage.generate_presigned_url(key, expires_in=300)
        if url is None:
            raise NotFound("File not found")
        return RedirectResponse(url, status_code=307)

    path = storage.local_path(key)
    if path is None:
        logger.warning("Upload %s referenced by application %s is missing on disk", key, application.id)
        raise NotFound("File not found")
    return FileResponse(path)
