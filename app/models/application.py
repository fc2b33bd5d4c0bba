# app/models/application.py
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, Field, Json, computed_field, field_validator

from app.models.common import CamelModel, PageParams
from app.models.job import Currency, PayPeriod

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
PHONE_PATTERN = r"^\+?[\d\s\-()]{10,}$"


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    REVIEWING = "reviewing"
    SHORTLISTED = "shortlisted"
    INTERVIEWED = "interviewed"
    OFFERED = "offered"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


# plain values: models keep enum fields as their string values
TERMINAL_STATUSES = frozenset({"offered", "rejected", "withdrawn"})
WITHDRAWABLE_STATUSES = frozenset({"pending", "reviewing"})


class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None


class PersonalInfo(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    phone: str = Field(..., pattern=PHONE_PATTERN)
    address: Optional[Address] = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


class ExpectedSalary(CamelModel):
    amount: Optional[float] = Field(None, ge=0)
    currency: Currency = Currency.USD
    period: PayPeriod = PayPeriod.YEARLY


class NoticePeriod(str, Enum):
    IMMEDIATE = "immediate"
    ONE_WEEK = "1-week"
    TWO_WEEKS = "2-weeks"
    ONE_MONTH = "1-month"
    TWO_MONTHS = "2-months"
    THREE_MONTHS = "3-months"
    OTHER = "other"


class WorkType(str, Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    FREELANCE = "freelance"
    REMOTE = "remote"
    HYBRID = "hybrid"


class Availability(CamelModel):
    start_date: Optional[datetime] = None
    notice_period: Optional[NoticePeriod] = None
    work_type: Optional[WorkType] = None


class PreviousPosition(CamelModel):
    title: Optional[str] = None
    company: Optional[str] = None
    duration: Optional[str] = None
    description: Optional[str] = None


class ExperienceSummary(CamelModel):
    total_years: Optional[float] = Field(None, ge=0, le=50)
    relevant_years: Optional[float] = Field(None, ge=0, le=50)
    previous_positions: List[PreviousPosition] = Field(default_factory=list)


class SkillLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class SkillEntry(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    level: Optional[SkillLevel] = None
    years_of_experience: Optional[float] = Field(None, ge=0)


class EducationEntry(CamelModel):
    degree: Optional[str] = None
    field: Optional[str] = None
    institution: Optional[str] = None
    graduation_year: Optional[int] = Field(None, ge=1950)
    gpa: Optional[float] = Field(None, ge=0, le=4)

    @field_validator("graduation_year")
    @classmethod
    def _not_far_in_future(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v > datetime.now(timezone.utc).year + 10:
            raise ValueError("Graduation year is too far in the future")
        return v


class Proficiency(str, Enum):
    BASIC = "basic"
    CONVERSATIONAL = "conversational"
    FLUENT = "fluent"
    NATIVE = "native"


class LanguageEntry(CamelModel):
    name: str = Field(..., min_length=1)
    proficiency: Optional[Proficiency] = None


class QuestionAnswer(CamelModel):
    question: str
    answer: Optional[str] = None
    required: bool = False


class Source(str, Enum):
    WEBSITE = "website"
    LINKEDIN = "linkedin"
    REFERRAL = "referral"
    JOB_BOARD = "job-board"
    COMPANY_PAGE = "company-page"
    OTHER = "other"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DocumentType(str, Enum):
    PORTFOLIO = "portfolio"
    CERTIFICATE = "certificate"
    REFERENCE = "reference"
    OTHER = "other"


class StoredFile(CamelModel):
    """Descriptor of an uploaded file as it is kept on the application."""

    filename: str
    original_name: str
    mimetype: str
    size: int
    url: str
    type: Optional[DocumentType] = None


class TimelineEntry(CamelModel):
    model_config = ConfigDict(frozen=True)

    status: ApplicationStatus
    date: datetime
    notes: Optional[str] = None
    updated_by: Optional[str] = None


class InterviewType(str, Enum):
    PHONE = "phone"
    VIDEO = "video"
    IN_PERSON = "in-person"
    TECHNICAL = "technical"
    FINAL = "final"


class InterviewStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class Interview(CamelModel):
    type: InterviewType
    scheduled_date: datetime
    duration: Optional[int] = Field(None, ge=1)
    interviewer: Optional[str] = None
    feedback: Optional[str] = None
    score: Optional[int] = Field(None, ge=1, le=10)
    status: InterviewStatus = InterviewStatus.SCHEDULED


class ApplicationNotes(CamelModel):
    applicant_notes: Optional[str] = Field(None, max_length=1000)
    recruiter_notes: Optional[str] = Field(None, max_length=1000)


class ApplicationForm(CamelModel):
    """
    The non-file part of a multipart submission. Nested values arrive as
    JSON strings and are decoded and validated in one pass.
    """

    cover_letter: Optional[str] = Field(None, max_length=2000)
    expected_salary: Optional[Json[ExpectedSalary]] = None
    availability: Optional[Json[Availability]] = None
    experience: Optional[Json[ExperienceSummary]] = None
    skills: Optional[Json[List[SkillEntry]]] = None
    education: Optional[Json[List[EducationEntry]]] = None
    languages: Optional[Json[List[LanguageEntry]]] = None
    questionnaire: Optional[Json[List[QuestionAnswer]]] = None
    applicant_notes: Optional[str] = Field(None, max_length=1000)
    source: Source = Source.WEBSITE


class Application(CamelModel):
    id: str
    applicant: str
    job: str
    status: ApplicationStatus = ApplicationStatus.PENDING
    personal_info: PersonalInfo
    cover_letter: Optional[str] = None
    resume: StoredFile
    additional_documents: List[StoredFile] = Field(default_factory=list)
    expected_salary: Optional[ExpectedSalary] = None
    availability: Optional[Availability] = None
    experience: Optional[ExperienceSummary] = None
    skills: List[SkillEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    languages: List[LanguageEntry] = Field(default_factory=list)
    questionnaire: List[QuestionAnswer] = Field(default_factory=list)
    timeline: List[TimelineEntry] = Field(default_factory=list)
    notes: ApplicationNotes = Field(default_factory=ApplicationNotes)
    interviews: List[Interview] = Field(default_factory=list)
    source: Source = Source.WEBSITE
    priority: Priority = Priority.MEDIUM
    tags: List[str] = Field(default_factory=list)
    compatibility_score: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def full_name(self) -> str:
        return f"{self.personal_info.first_name} {self.personal_info.last_name}"

    @computed_field
    @property
    def can_withdraw(self) -> bool:
        return self.status in WITHDRAWABLE_STATUSES

    @computed_field
    @property
    def days_ago(self) -> Optional[int]:
        if self.created_at is None:
            return None
        created = self.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return (datetime.now(timezone.utc) - created).days


class StatusUpdateIn(CamelModel):
    status: ApplicationStatus
    notes: Optional[str] = Field(None, max_length=500)


class RecruiterNotesIn(CamelModel):
    recruiter_notes: str = Field(..., max_length=1000)


class InterviewIn(Interview):
    pass


class ApplicationListParams(PageParams):
    status: Optional[ApplicationStatus] = None
    job: Optional[str] = None


class ApplicationStats(CamelModel):
    total_applications: int = 0
    pending_applications: int = 0
    reviewing_applications: int = 0
    shortlisted_applications: int = 0
    interviewed_applications: int = 0
    offered_applications: int = 0
    rejected_applications: int = 0
    withdrawn_applications: int = 0
