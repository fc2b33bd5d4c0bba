# app/models/company.py
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from app.models.common import CamelModel

PHONE_PATTERN = r"^\+?[\d\s\-()]{10,}$"


class Industry(str, Enum):
    TECHNOLOGY = "technology"
    FINANCE = "finance"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    RETAIL = "retail"
    MANUFACTURING = "manufacturing"
    CONSULTING = "consulting"
    OTHER = "other"


class CompanySize(str, Enum):
    XS = "1-10"
    S = "11-50"
    M = "51-200"
    L = "201-500"
    XL = "501-1000"
    XXL = "1000+"


class SocialMedia(CamelModel):
    linkedin: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None


class _CompanyFields(CamelModel):
    description: Optional[str] = Field(None, max_length=1000)
    website: Optional[str] = Field(None, pattern=r"^(https?://)?[\w.-]+\.[a-z.]{2,6}[/\w .-]*$")
    email: Optional[str] = Field(None, pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    logo: Optional[str] = None
    founded: Optional[datetime] = None
    social_media: Optional[SocialMedia] = None
    benefits: Optional[List[str]] = None
    culture: Optional[str] = Field(None, max_length=1000)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class CompanyCreate(_CompanyFields):
    name: str = Field(..., min_length=1, max_length=100)
    industry: Industry
    size: CompanySize
    location: str = Field(..., min_length=1)
    phone: str = Field(..., pattern=PHONE_PATTERN)


class CompanyUpdate(_CompanyFields):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    industry: Optional[Industry] = None
    size: Optional[CompanySize] = None
    location: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)


class Company(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    industry: Industry
    size: CompanySize
    location: str
    website: Optional[str] = None
    email: Optional[str] = None
    phone: str
    logo: Optional[str] = None
    founded: Optional[datetime] = None
    employer: str
    social_media: Optional[SocialMedia] = None
    benefits: List[str] = Field(default_factory=list)
    culture: Optional[str] = None
    is_verified: bool = False
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
