"""
Application status state machine and compatibility scoring.

Pure functions only; ``app.services.applications`` owns persistence.

States: pending -> reviewing -> shortlisted -> interviewed -> offered | rejected,
plus withdrawn. Employers may jump freely between the non-terminal states;
``offered``, ``rejected`` and ``withdrawn`` are terminal. ``withdrawn`` is
reached only through withdrawal by the applicant, and only from
``pending`` or ``reviewing``.
"""

import math
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from app.core.errors import InvalidStatusTransition
from app.models.application import (
    TERMINAL_STATUSES,
    WITHDRAWABLE_STATUSES,
    ApplicationStatus,
    SkillEntry,
)

SUBMITTED_NOTE = "Application submitted"
WITHDRAWN_NOTE = "Application withdrawn by applicant"

# years of experience implied by a job's experience level
EXPERIENCE_YEARS = {"entry": 0, "mid": 3, "senior": 7, "executive": 15}
SKILL_POINTS = 10
EXPERIENCE_POINTS = 20


def _value(status) -> str:
    return ApplicationStatus(status).value


def timeline_entry(status, when: datetime, notes: Optional[str] = None, updated_by: Optional[str] = None) -> Dict[str, Any]:
    return {
        "status": _value(status),
        "date": when,
        "notes": notes,
        "updated_by": updated_by,
    }


def submission_entry(when: datetime) -> Dict[str, Any]:
    return timeline_entry(ApplicationStatus.PENDING, when, SUBMITTED_NOTE)


def status_note(target, notes: Optional[str]) -> str:
    return notes or f"Status updated to {_value(target)}"


def check_status_update(current, target) -> None:
    """
    Raise ``InvalidStatusTransition`` unless an employer/admin may move an
    application from ``current`` to ``target``. Re-setting the current
    status is allowed.
    """
    current, target = _value(current), _value(target)
    if target == ApplicationStatus.WITHDRAWN.value and current != target:
        raise InvalidStatusTransition("Only the applicant can withdraw an application")
    if current in TERMINAL_STATUSES and target != current:
        raise InvalidStatusTransition(f"Cannot change status of a {current} application")


def can_withdraw(current) -> bool:
    return _value(current) in WITHDRAWABLE_STATUSES


def check_withdrawal(current) -> None:
    if not can_withdraw(current):
        raise InvalidStatusTransition(f"Cannot withdraw application in current status: {_value(current)}")


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def compatibility_score(
    job_skills: Iterable[str],
    experience_level: Optional[str],
    applicant_skills: Iterable[SkillEntry],
    total_years: Optional[float],
) -> int:
    """
    Advisory 0-100 match score.

    10 points per required skill the applicant lists (case-insensitive), and
    20 points for meeting the experience threshold of the job's level (10 for
    reaching 70% of it). The experience part counts only when the applicant
    gave a total. Returns 0 when nothing can be scored.
    """
    earned = 0
    possible = 0

    have = {s.name.strip().lower() for s in applicant_skills if s.name}
    for skill in job_skills or []:
        possible += SKILL_POINTS
        if skill.strip().lower() in have:
            earned += SKILL_POINTS

    if experience_level and total_years is not None:
        possible += EXPERIENCE_POINTS
        required = EXPERIENCE_YEARS.get(experience_level, 0)
        if total_years >= required:
            earned += EXPERIENCE_POINTS
        elif total_years >= required * 0.7:
            earned += EXPERIENCE_POINTS // 2

    if possible == 0:
        return 0
    return _round_half_up(earned / possible * 100)
