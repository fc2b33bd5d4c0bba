# app/api/v1/users.py
import logging

from fastapi import APIRouter, Depends

from app.api.v1.auth import get_current_user, saved_jobs_of
from app.core.errors import JobNotFound, NotFound
from app.db.mongo import to_object_id
from app.models.user import ChangePasswordIn, ProfileUpdateIn, User
from app.repositories import jobs as jobs_repo
from app.repositories import users as users_repo
from app.services import applications as application_service
from app.services import auth as auth_service
from app.services.authorization import Capability, authorize_profile_access, has_capability
from app.utils.responses import ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
    return ok("Profile retrieved successfully", {"user": user})


@router.put("/profile")
async def update_profile(payload: ProfileUpdateIn, user: User = Depends(get_current_user)):
    fields = {}
    if payload.first_name is not None:
        fields["first_name"] = payload.first_name
    if payload.last_name is not None:
        fields["last_name"] = payload.last_name
    if payload.profile is not None:
        for name, value in payload.profile.model_dump(exclude_unset=True).items():
            fields[f"profile.{name}"] = value
    if fields:
        user = await users_repo.update_user(user.id, fields)
        logger.info("Profile of user %s updated", user.id)
    return ok("Profile updated successfully", {"user": user})


@router.delete("/profile")
async def deactivate_account(user: User = Depends(get_current_user)):
    await users_repo.update_user(user.id, {"is_active": False})
    logger.info("User %s deactivated their account", user.id)
    return ok("Account deactivated successfully")


@router.put("/change-password")
async def change_password(payload: ChangePasswordIn, user: User = Depends(get_current_user)):
    await auth_service.change_password(user, payload.current_password, payload.new_password)
    return ok("Password changed successfully")


@router.get("/saved-jobs")
async def saved_jobs(user: User = Depends(get_current_user)):
    return ok("Saved jobs retrieved successfully", {"jobs": await saved_jobs_of(user)})


@router.post("/save-job/{job_id}")
async def save_job(job_id: str, user: User = Depends(get_current_user)):
    if await jobs_repo.get_job(job_id) is None:
        raise JobNotFound()
    await users_repo.add_saved_job(user.id, job_id)
    return ok("Job saved successfully")


@router.delete("/save-job/{job_id}")
async def remove_saved_job(job_id: str, user: User = Depends(get_current_user)):
    await users_repo.remove_saved_job(user.id, job_id)
    return ok("Job removed from saved jobs")


@router.get("/stats")
async def user_stats(user: User = Depends(get_current_user)):
    stats = {
        "savedJobs": len(user.saved_jobs),
        "applications": await application_service.statistics(user),
    }
    if has_capability(user, Capability.POST_JOB):
        stats["jobsPosted"] = await jobs_repo.count_jobs({"posted_by": to_object_id(user.id, "user id")})
    return ok("User statistics retrieved successfully", {"stats": stats})


@router.get("/{user_id}")
async def get_user(user_id: str, user: User = Depends(get_current_user)):
    authorize_profile_access(user, user_id)
    target = await users_repo.get_user(user_id)
    if target is None:
        raise NotFound("User not found")
    return ok("User retrieved successfully", {"user": target})
