# app/services/authorization.py
"""
Role and ownership checks.

Roles map to a fixed capability set; each guarded operation has its own
function that combines the capability with the ownership rule for the
resource. Violations raise ``Forbidden``; a missing actor raises
``Unauthenticated``.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional

from app.core.errors import Forbidden, Unauthenticated
from app.models.application import Application
from app.models.company import Company
from app.models.job import Job
from app.models.user import Role, User


class Capability(str, Enum):
    SUBMIT_APPLICATION = "submit_application"
    WITHDRAW_APPLICATION = "withdraw_application"
    POST_JOB = "post_job"
    REVIEW_APPLICATIONS = "review_applications"
    MANAGE_COMPANY = "manage_company"
    OVERRIDE_OWNERSHIP = "override_ownership"


ROLE_CAPABILITIES: Dict[Role, FrozenSet[Capability]] = {
    Role.CANDIDATE: frozenset({
        Capability.SUBMIT_APPLICATION,
        Capability.WITHDRAW_APPLICATION,
    }),
    Role.EMPLOYER: frozenset({
        Capability.POST_JOB,
        Capability.REVIEW_APPLICATIONS,
        Capability.MANAGE_COMPANY,
    }),
    Role.ADMIN: frozenset({
        Capability.POST_JOB,
        Capability.REVIEW_APPLICATIONS,
        Capability.MANAGE_COMPANY,
        Capability.OVERRIDE_OWNERSHIP,
    }),
}


def _require_actor(actor: Optional[User]) -> User:
    if actor is None:
        raise Unauthenticated("Access denied. No token provided.")
    return actor


def has_capability(actor: User, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(Role(actor.role), frozenset())


def is_admin(actor: Optional[User]) -> bool:
    return actor is not None and has_capability(actor, Capability.OVERRIDE_OWNERSHIP)


def require_capability(actor: Optional[User], capability: Capability, message: Optional[str] = None) -> User:
    actor = _require_actor(actor)
    if not has_capability(actor, capability):
        raise Forbidden(message or f"Access denied. Role {actor.role} is not allowed to perform this action.")
    return actor


def authorize_job_write(actor: Optional[User], job: Job) -> None:
    actor = require_capability(actor, Capability.POST_JOB)
    if job.posted_by != actor.id and not is_admin(actor):
        raise Forbidden("You can only modify your own job postings")


def owns_job(actor: User, job: Job) -> bool:
    return job.posted_by == actor.id


def authorize_application_read(actor: Optional[User], application: Application, job: Optional[Job]) -> None:
    actor = _require_actor(actor)
    if application.applicant == actor.id or is_admin(actor):
        return
    if job is not None and has_capability(actor, Capability.REVIEW_APPLICATIONS) and owns_job(actor, job):
        return
    raise Forbidden("You are not allowed to view this application")


def authorize_job_applications(actor: Optional[User], job: Job) -> None:
    """Reviewing every application of a job: its employer or an admin."""
    actor = require_capability(actor, Capability.REVIEW_APPLICATIONS)
    if not owns_job(actor, job) and not is_admin(actor):
        raise Forbidden("You can only view applications for your own job postings")


def authorize_status_update(actor: Optional[User], application: Application, job: Optional[Job]) -> None:
    actor = require_capability(actor, Capability.REVIEW_APPLICATIONS)
    if is_admin(actor):
        return
    if job is None or not owns_job(actor, job):
        raise Forbidden("You can only update applications for your own job postings")


def authorize_withdrawal(actor: Optional[User], application: Application) -> None:
    actor = require_capability(actor, Capability.WITHDRAW_APPLICATION, "Only the applicant can withdraw an application")
    if application.applicant != actor.id:
        raise Forbidden("You can only withdraw your own applications")


def authorize_company_write(actor: Optional[User], company: Company) -> None:
    actor = require_capability(actor, Capability.MANAGE_COMPANY)
    if company.employer != actor.id and not is_admin(actor):
        raise Forbidden("You can only modify your own company profile")


def authorize_company_link(actor: Optional[User], company: Company) -> None:
    """Jobs may only be attributed to the poster's own company."""
    actor = require_capability(actor, Capability.POST_JOB)
    if company.employer != actor.id and not is_admin(actor):
        raise Forbidden("You can only post jobs for your own company")


def authorize_profile_access(actor: Optional[User], user_id: str) -> None:
    actor = _require_actor(actor)
    if actor.id != user_id and not is_admin(actor):
        raise Forbidden("You can only access your own profile")
