# app/api/v1/applications.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.api.v1.auth import get_current_user, require_roles
from app.api.v1.params import application_list_params
from app.models.application import ApplicationListParams, InterviewIn, RecruiterNotesIn, StatusUpdateIn
from app.models.user import Role, User
from app.services import applications as application_service
from app.utils.responses import ok

router = APIRouter(prefix="/applications", tags=["applications"])

candidate_only = require_roles(Role.CANDIDATE)
candidate_or_admin = require_roles(Role.CANDIDATE, Role.ADMIN)
employer_or_admin = require_roles(Role.EMPLOYER, Role.ADMIN)


@router.post("", status_code=201)
async def submit_application(request: Request, user: User = Depends(candidate_only)):
    """
    Multipart submission: ``jobId``, ``personalInfo`` (JSON string) and the
    optional fields as form values; files in ``resume``, ``portfolio`` and
    ``additionalDocuments``.
    """
    # the role is checked before the body is read
    async with request.form() as form:
        application = await application_service.submit_application(user, form)
    return ok("Application submitted successfully", {"application": application})


@router.get("")
async def list_applications(
    params: ApplicationListParams = Depends(application_list_params),
    user: User = Depends(get_current_user),
):
    items, meta = await application_service.list_applications(user, params)
    return ok("Applications retrieved successfully", {"applications": items, "pagination": meta})


@router.get("/my")
async def my_applications(
    params: ApplicationListParams = Depends(application_list_params),
    user: User = Depends(candidate_or_admin),
):
    items, meta = await application_service.list_my_applications(user, params)
    return ok("Applications retrieved successfully", {"applications": items, "pagination": meta})


@router.get("/stats")
async def application_stats(
    job_id: Optional[str] = Query(None, alias="jobId"),
    user: User = Depends(get_current_user),
):
    stats = await application_service.statistics(user, job_id)
    return ok("Application statistics retrieved successfully", {"stats": stats})


@router.get("/job/{job_id}")
async def job_applications(
    job_id: str,
    params: ApplicationListParams = Depends(application_list_params),
    user: User = Depends(employer_or_admin),
):
    items, meta = await application_service.list_for_job(user, job_id, params)
    return ok("Job applications retrieved successfully", {"applications": items, "pagination": meta})


@router.get("/{application_id}")
async def get_application(application_id: str, user: User = Depends(get_current_user)):
    application = await application_service.get_application(user, application_id)
    return ok("Application retrieved successfully", {"application": application})


@router.put("/{application_id}/status")
async def update_status(application_id: str, payload: StatusUpdateIn, user: User = Depends(employer_or_admin)):
    application = await application_service.update_status(user, application_id, payload)
    return ok("Application status updated successfully", {"application": application})


@router.put("/{application_id}/withdraw")
async def withdraw_application(application_id: str, user: User = Depends(candidate_or_admin)):
    application = await application_service.withdraw(user, application_id)
    return ok("Application withdrawn successfully", {"application": application})


@router.put("/{application_id}/notes")
async def recruiter_notes(application_id: str, payload: RecruiterNotesIn, user: User = Depends(employer_or_admin)):
    application = await application_service.add_recruiter_notes(user, application_id, payload.recruiter_notes)
    return ok("Recruiter notes updated successfully", {"application": application})


@router.post("/{application_id}/interviews", status_code=201)
async def schedule_interview(application_id: str, payload: InterviewIn, user: User = Depends(employer_or_admin)):
    application = await application_service.schedule_interview(user, application_id, payload)
    return ok("Interview scheduled successfully", {"application": application})
