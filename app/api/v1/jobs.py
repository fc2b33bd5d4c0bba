# app/api/v1/jobs.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.v1.auth import get_optional_user, require_roles
from app.api.v1.params import page_params
from app.core.errors import JobNotFound, NotFound
from app.db.mongo import to_object_id
from app.models.common import PageParams
from app.models.job import JobCreate, JobStats, JobStatus, JobUpdate
from app.models.user import Role, User
from app.repositories import companies as companies_repo
from app.repositories import jobs as jobs_repo
from app.services.authorization import authorize_company_link, authorize_job_write
from app.utils.pagination import pagination_meta
from app.utils.responses import ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])

employer_or_admin = require_roles(Role.EMPLOYER, Role.ADMIN)


async def _check_company(user: User, company_id: str) -> None:
    company = await companies_repo.get_company(company_id)
    if company is None:
        raise NotFound("Company not found")
    authorize_company_link(user, company)


async def _page(query: dict, params: PageParams):
    jobs, total = await jobs_repo.find_jobs(
        query,
        skip=params.skip,
        limit=params.limit,
        sort=[(params.sort_by, params.direction)],
    )
    return jobs, pagination_meta(params.page, params.limit, total)


@router.get("")
async def list_jobs(params: PageParams = Depends(page_params)):
    jobs, meta = await _page({"status": JobStatus.ACTIVE.value}, params)
    return ok("Jobs retrieved successfully", {"jobs": jobs, "pagination": meta})


@router.get("/recommended")
async def recommended_jobs(
    limit: int = Query(10, ge=1, le=50),
    user: Optional[User] = Depends(get_optional_user),
):
    """Newest active jobs, preferring ones that share a skill with the caller's profile."""
    base = {"status": JobStatus.ACTIVE.value}
    jobs = []
    skills = user.profile.skills if user else []
    if skills:
        jobs, _ = await jobs_repo.find_jobs({**base, "skills": {"$in": skills}}, limit=limit)
    if not jobs:
        jobs, _ = await jobs_repo.find_jobs(base, limit=limit)
    return ok("Recommended jobs retrieved successfully", {"jobs": jobs})


@router.get("/stats")
async def job_stats():
    active = {"status": JobStatus.ACTIVE.value}
    stats = JobStats(
        total_jobs=await jobs_repo.count_jobs({}),
        active_jobs=await jobs_repo.count_jobs(active),
    )
    for job_type in await jobs_repo.distinct_values("type", active):
        stats.by_type[job_type] = await jobs_repo.count_jobs({**active, "type": job_type})
    for category in await jobs_repo.distinct_values("category", active):
        stats.by_category[category] = await jobs_repo.count_jobs({**active, "category": category})
    return ok("Job statistics retrieved successfully", {"stats": stats})


@router.get("/my/jobs")
async def my_jobs(params: PageParams = Depends(page_params), user: User = Depends(employer_or_admin)):
    jobs, meta = await _page({"posted_by": to_object_id(user.id, "user id")}, params)
    return ok("Your jobs retrieved successfully", {"jobs": jobs, "pagination": meta})


@router.get("/{job_id}")
async def get_job(job_id: str):
    job = await jobs_repo.get_job(job_id)
    if job is None:
        raise JobNotFound()
    await jobs_repo.increment_views(job_id)
    job = job.model_copy(update={"views_count": job.views_count + 1})
    return ok("Job retrieved successfully", {"job": job})


@router.post("", status_code=201)
async def create_job(payload: JobCreate, user: User = Depends(employer_or_admin)):
    fields = payload.model_dump(exclude_none=True)
    if fields.get("company"):
        await _check_company(user, fields["company"])
    else:
        company = await companies_repo.get_company_by_employer(user.id)
        if company is not None:
            fields["company"] = company.id
    job = await jobs_repo.create_job(fields, posted_by=user.id)
    logger.info("Job %s created by %s", job.id, user.id)
    return ok("Job created successfully", {"job": job})


@router.put("/{job_id}")
async def update_job(job_id: str, payload: JobUpdate, user: User = Depends(employer_or_admin)):
    job = await jobs_repo.get_job(job_id)
    if job is None:
        raise JobNotFound()
    authorize_job_write(user, job)
    fields = payload.model_dump(exclude_unset=True)
    if fields.get("company"):
        await _check_company(user, fields["company"])
    job = await jobs_repo.update_job(job_id, fields) if fields else job
    logger.info("Job %s updated by %s", job_id, user.id)
    return ok("Job updated successfully", {"job": job})


@router.delete("/{job_id}")
async def delete_job(job_id: str, user: User = Depends(employer_or_admin)):
    job = await jobs_repo.get_job(job_id)
    if job is None:
        raise JobNotFound()
    authorize_job_write(user, job)
    await jobs_repo.delete_job(job_id)
    logger.info("Job %s deleted by %s", job_id, user.id)
    return ok("Job deleted successfully")
