# app/models/job.py
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from app.models.common import CamelModel


class JobType(str, Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    FREELANCE = "freelance"
    INTERNSHIP = "internship"


class ExperienceLevel(str, Enum):
    ENTRY = "entry"
    MID = "mid"
    SENIOR = "senior"
    EXECUTIVE = "executive"


class JobStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"
    DRAFT = "draft"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"
    AUD = "AUD"
    JPY = "JPY"
    CNY = "CNY"
    INR = "INR"
    MAD = "MAD"


class PayPeriod(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Salary(CamelModel):
    min: Optional[float] = Field(None, ge=0)
    max: Optional[float] = Field(None, ge=0)
    currency: Currency = Currency.USD
    period: PayPeriod = PayPeriod.YEARLY

    @model_validator(mode="after")
    def _max_not_below_min(self):
        if self.min is not None and self.max is not None and self.max < self.min:
            raise ValueError("Maximum salary must be greater than or equal to minimum salary")
        return self


def _dedupe(values: Optional[List[str]], lower: bool = False) -> Optional[List[str]]:
    if values is None:
        return None
    seen = []
    for v in values:
        v = v.strip()
        if lower:
            v = v.lower()
        if v and v not in seen:
            seen.append(v)
    return seen


class _JobFields(CamelModel):
    salary: Optional[Salary] = None
    is_remote: Optional[bool] = None
    skills: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    deadline_date: Optional[datetime] = None
    status: Optional[JobStatus] = None
    company: Optional[str] = None
    urgency: Optional[Urgency] = None
    featured: Optional[bool] = None
    tags: Optional[List[str]] = None

    @field_validator("skills", "benefits", "requirements")
    @classmethod
    def _unique_items(cls, v):
        return _dedupe(v)

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, v):
        return _dedupe(v, lower=True)

    @field_validator("deadline_date")
    @classmethod
    def _deadline_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        if v <= datetime.now(timezone.utc):
            raise ValueError("Deadline must be in the future")
        return v


class JobCreate(_JobFields):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=5000)
    location: str = Field(..., min_length=1, max_length=100)
    type: JobType
    category: str = Field(..., min_length=1, max_length=50)
    experience_level: ExperienceLevel


class JobUpdate(_JobFields):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    location: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[JobType] = None
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    experience_level: Optional[ExperienceLevel] = None


class Job(CamelModel):
    id: str
    title: str
    description: str
    location: str
    type: JobType
    category: str
    experience_level: ExperienceLevel
    salary: Optional[Salary] = None
    is_remote: bool = False
    skills: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    deadline_date: Optional[datetime] = None
    status: JobStatus = JobStatus.ACTIVE
    posted_by: str
    company: Optional[str] = None
    applications: List[str] = Field(default_factory=list)
    views_count: int = 0
    urgency: Urgency = Urgency.MEDIUM
    featured: bool = False
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JobStats(CamelModel):
    total_jobs: int = 0
    active_jobs: int = 0
    by_type: dict = Field(default_factory=dict)
    by_category: dict = Field(default_factory=dict)
