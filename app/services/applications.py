# app/services/applications.py
"""
Application lifecycle operations: submission, review, withdrawal, listing
and statistics. Authorization runs before any state check, and every check
runs before persistence.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError
from starlette.datastructures import FormData, UploadFile

from app.core.errors import (
    ApplicationNotFound,
    DuplicateApplication,
    Forbidden,
    JobNotFound,
    ResumeRequired,
    ValidationFailed,
    validation_messages,
)
from app.db.mongo import now, to_object_id
from app.models.application import (
    Application,
    ApplicationForm,
    ApplicationListParams,
    ApplicationStats,
    ApplicationStatus,
    InterviewIn,
    PersonalInfo,
    StatusUpdateIn,
)
from app.models.common import PaginationMeta
from app.models.job import Job
from app.models.user import User
from app.repositories import applications as applications_repo
from app.repositories import jobs as jobs_repo
from app.services import file_intake, lifecycle
from app.services.authorization import (
    Capability,
    authorize_application_read,
    authorize_job_applications,
    authorize_status_update,
    authorize_withdrawal,
    has_capability,
    is_admin,
    require_capability,
)
from app.utils.pagination import pagination_meta

logger = logging.getLogger(__name__)

# form fields handled outside ApplicationForm
_RESERVED_FIELDS = {"jobId", "personalInfo"}


def _text_fields(form: FormData) -> Dict[str, str]:
    out = {}
    for name, value in form.multi_items():
        if isinstance(value, UploadFile) or name in _RESERVED_FIELDS:
            continue
        if isinstance(value, str) and value.strip() == "":
            continue
        out[name] = value
    return out


def parse_personal_info(raw: Any) -> PersonalInfo:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationFailed("Personal information is required")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationFailed("Invalid JSON format in personalInfo") from exc
    try:
        return PersonalInfo.model_validate(raw)
    except ValidationError as exc:
        fields = sorted({str(e["loc"][0]) for e in exc.errors() if e.get("loc")})
        raise ValidationFailed(
            f"Invalid personal information: {', '.join(fields)}" if fields else "Invalid personal information",
            errors=validation_messages(exc),
        ) from exc


def parse_form(form: FormData) -> ApplicationForm:
    try:
        return ApplicationForm.model_validate(_text_fields(form))
    except ValidationError as exc:
        raise ValidationFailed("Invalid application data", errors=validation_messages(exc)) from exc


async def submit_application(actor: User, form: FormData) -> Application:
    """
    Create an application from a multipart submission.

    Checks run in a fixed order and the first failure wins: candidate role,
    job exists, no earlier application for the job, resume present, personal
    info complete, remaining fields valid. Uploaded files are removed on any
    failure, including a failed insert.
    """
    require_capability(actor, Capability.SUBMIT_APPLICATION, "Only candidates can apply for jobs")
    batch = await file_intake.intake_files(form)
    stored = False
    try:
        application = await _create(actor, form, batch)
        stored = True
    finally:
        if not stored:
            batch.discard()
    # the application owns its files from here on
    await jobs_repo.add_application_ref(application.job, application.id)
    logger.info("Application %s submitted by %s for job %s", application.id, actor.id, application.job)
    return application


async def _create(actor: User, form: FormData, batch: file_intake.IntakeBatch) -> Application:
    raw_job_id = form.get("jobId")
    if not isinstance(raw_job_id, str) or not raw_job_id.strip():
        raise ValidationFailed("Job ID is required")
    job_id = str(to_object_id(raw_job_id.strip(), "job id"))

    job = await jobs_repo.get_job(job_id)
    if job is None:
        raise JobNotFound()

    if await applications_repo.find_by_applicant_and_job(actor.id, job_id):
        raise DuplicateApplication()

    if batch.resume is None:
        raise ResumeRequired()

    personal_info = parse_personal_info(form.get("personalInfo"))
    data = parse_form(form)

    created = now()
    doc = {
        "applicant": actor.id,
        "job": job_id,
        "status": ApplicationStatus.PENDING.value,
        "personal_info": personal_info.model_dump(),
        "cover_letter": data.cover_letter or "",
        "resume": batch.resume.model_dump(),
        "additional_documents": [d.model_dump() for d in batch.documents],
        "expected_salary": data.expected_salary.model_dump() if data.expected_salary else None,
        "availability": data.availability.model_dump() if data.availability else None,
        "experience": data.experience.model_dump() if data.experience else None,
        "skills": [s.model_dump() for s in data.skills or []],
        "education": [e.model_dump() for e in data.education or []],
        "languages": [lang.model_dump() for lang in data.languages or []],
        "questionnaire": [q.model_dump() for q in data.questionnaire or []],
        "timeline": [lifecycle.submission_entry(created)],
        "notes": {"applicant_notes": data.applicant_notes, "recruiter_notes": None},
        "interviews": [],
        "source": data.source,
        "priority": "medium",
        "tags": [],
        "created_at": created,
        "updated_at": created,
    }
    return await applications_repo.create_application(doc)


async def _load(application_id: str) -> Tuple[Application, Optional[Job]]:
    application = await applications_repo.get_application(application_id)
    if application is None:
        raise ApplicationNotFound()
    # the job may have been deleted since
    job = await jobs_repo.get_job(application.job)
    return application, job


async def get_application(actor: User, application_id: str) -> Application:
    application, job = await _load(application_id)
    authorize_application_read(actor, application, job)
    return application


async def update_status(actor: User, application_id: str, update: StatusUpdateIn) -> Application:
    application, job = await _load(application_id)
    authorize_status_update(actor, application, job)
    lifecycle.check_status_update(application.status, update.status)
    entry = lifecycle.timeline_entry(
        update.status, now(), lifecycle.status_note(update.status, update.notes), actor.id
    )
    updated = await applications_repo.append_timeline(
        application.id, entry, {"status": ApplicationStatus(update.status).value}
    )
    logger.info(
        "Application %s status %s -> %s by %s", application.id, application.status, update.status, actor.id
    )
    return updated


async def withdraw(actor: User, application_id: str) -> Application:
    application, _ = await _load(application_id)
    authorize_withdrawal(actor, application)
    lifecycle.check_withdrawal(application.status)
    entry = lifecycle.timeline_entry(ApplicationStatus.WITHDRAWN, now(), lifecycle.WITHDRAWN_NOTE, actor.id)
    updated = await applications_repo.append_timeline(
        application.id, entry, {"status": ApplicationStatus.WITHDRAWN.value}
    )
    logger.info("Application %s withdrawn by applicant %s", application.id, actor.id)
    return updated


async def add_recruiter_notes(actor: User, application_id: str, notes: str) -> Application:
    application, job = await _load(application_id)
    authorize_status_update(actor, application, job)
    return await applications_repo.set_fields(application.id, {"notes.recruiter_notes": notes})


async def schedule_interview(actor: User, application_id: str, interview: InterviewIn) -> Application:
    application, job = await _load(application_id)
    authorize_status_update(actor, application, job)
    if application.status in lifecycle.TERMINAL_STATUSES:
        raise ValidationFailed(f"Cannot schedule an interview for a {application.status} application")
    payload = interview.model_dump()
    payload["interviewer"] = payload.get("interviewer") or actor.id
    logger.info("Interview scheduled on application %s by %s", application.id, actor.id)
    return await applications_repo.push_interview(application.id, payload)


async def _scope(actor: User, job_id: Optional[str]) -> Dict[str, Any]:
    """Mongo filter restricting applications to what ``actor`` may see."""
    query: Dict[str, Any] = {}
    if is_admin(actor):
        if job_id:
            query["job"] = to_object_id(job_id, "job id")
        return query
    if has_capability(actor, Capability.REVIEW_APPLICATIONS):
        owned = await jobs_repo.job_ids_posted_by(actor.id)
        if job_id:
            oid = to_object_id(job_id, "job id")
            if oid not in owned:
                raise Forbidden("You can only view applications for your own job postings")
            query["job"] = oid
        else:
            query["job"] = {"$in": owned}
        return query
    query["applicant"] = to_object_id(actor.id, "user id")
    if job_id:
        query["job"] = to_object_id(job_id, "job id")
    return query


async def list_applications(
    actor: User, params: ApplicationListParams
) -> Tuple[List[Application], PaginationMeta]:
    query = await _scope(actor, params.job)
    if params.status:
        query["status"] = ApplicationStatus(params.status).value
    items, total = await applications_repo.find_applications(
        query, skip=params.skip, limit=params.limit, sort_by=params.sort_by, direction=params.direction
    )
    return items, pagination_meta(params.page, params.limit, total)


async def list_my_applications(
    actor: User, params: ApplicationListParams
) -> Tuple[List[Application], PaginationMeta]:
    query: Dict[str, Any] = {"applicant": to_object_id(actor.id, "user id")}
    if params.job:
        query["job"] = to_object_id(params.job, "job id")
    if params.status:
        query["status"] = ApplicationStatus(params.status).value
    items, total = await applications_repo.find_applications(
        query, skip=params.skip, limit=params.limit, sort_by=params.sort_by, direction=params.direction
    )
    return items, pagination_meta(params.page, params.limit, total)


def score(application: Application, job: Job) -> int:
    experience = application.experience
    return lifecycle.compatibility_score(
        job.skills,
        job.experience_level,
        application.skills,
        experience.total_years if experience else None,
    )


async def list_for_job(
    actor: User, job_id: str, params: ApplicationListParams
) -> Tuple[List[Application], PaginationMeta]:
    job = await jobs_repo.get_job(job_id)
    if job is None:
        raise JobNotFound()
    authorize_job_applications(actor, job)
    query: Dict[str, Any] = {"job": to_object_id(job.id, "job id")}
    if params.status:
        query["status"] = ApplicationStatus(params.status).value
    items, total = await applications_repo.find_applications(
        query, skip=params.skip, limit=params.limit, sort_by=params.sort_by, direction=params.direction
    )
    scored = [a.model_copy(update={"compatibility_score": score(a, job)}) for a in items]
    return scored, pagination_meta(params.page, params.limit, total)


async def statistics(actor: User, job_id: Optional[str] = None) -> ApplicationStats:
    query = await _scope(actor, job_id)
    counts = {"total_applications": await applications_repo.count_applications(query)}
    for status in ApplicationStatus:
        counts[f"{status.value}_applications"] = await applications_repo.count_applications(
            {**query, "status": status.value}
        )
    return ApplicationStats(**counts)
