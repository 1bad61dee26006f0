"""
Pydantic schemas for request and response data validation.
Row schemas mirror the backend tables; *Create and *Update schemas describe
what the CMS may send. Update schemas are partial: only fields explicitly sent
are forwarded to the backend.
"""
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from datetime import datetime
from typing import ClassVar, Dict, List, Optional, Tuple
import re

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Messages shown under each contact form field
REQUIRED_MESSAGES = {
    "name": "이름을 입력해주세요.",
    "email": "이메일을 입력해주세요.",
    "phone": "연락처를 입력해주세요.",
    "message": "문의 내용을 입력해주세요.",
}
INVALID_EMAIL_MESSAGE = "올바른 이메일 형식을 입력해주세요."


class RowModel(BaseModel):
    """Base for rows read from the backend; unknown columns are ignored."""
    model_config = ConfigDict(extra="ignore")


class PartialUpdate(BaseModel):
    """
    Base for partial updates. Omitted fields are left alone; an explicit null
    is only accepted for the columns listed in `nullable_fields`.
    """
    nullable_fields: ClassVar[Tuple[str, ...]] = ()

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, v, info):
        if v is None and info.field_name not in cls.nullable_fields:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


# Portfolio

class PortfolioResponse(RowModel):
    id: str
    title: str
    description: str = ""
    category: str = ""
    images: List[str] = []
    created_at: datetime
    is_published: bool = False

    @computed_field
    @property
    def thumbnail(self) -> Optional[str]:
        return self.images[0] if self.images else None


class PortfolioCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    category: str = ""
    images: List[str] = []
    is_published: bool = False


class PortfolioUpdate(PartialUpdate):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    images: Optional[List[str]] = None
    is_published: Optional[bool] = None


# Inquiry

class InquiryResponse(RowModel):
    id: str
    name: str
    email: str
    phone: str
    message: str
    created_at: datetime
    is_read: bool = False


class InquiryCreate(BaseModel):
    """
    Contact form submission.
    Every field is required after trimming; email must look like an address.
    """
    name: str
    email: str
    phone: str
    message: str

    @field_validator("name", "email", "phone", "message")
    @classmethod
    def strip_and_require(cls, v: str, info):
        v = v.strip()
        if not v:
            raise ValueError(REQUIRED_MESSAGES[info.field_name])
        return v

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v: str):
        if not EMAIL_PATTERN.match(v):
            raise ValueError(INVALID_EMAIL_MESSAGE)
        return v


# Hero slide

class HeroSlideResponse(RowModel):
    id: str
    image_url: str
    title: Optional[str] = None
    subtitle: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    created_at: datetime


class HeroSlideCreate(BaseModel):
    image_url: str = Field(min_length=1)
    title: Optional[str] = None
    subtitle: Optional[str] = None
    display_order: int = 0
    is_active: bool = True


class HeroSlideUpdate(PartialUpdate):
    nullable_fields: ClassVar[Tuple[str, ...]] = ("title", "subtitle")

    image_url: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = None
    subtitle: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


# Site settings

class SiteSettingResponse(RowModel):
    id: Optional[str] = None
    key: str
    value: str
    updated_at: Optional[datetime] = None


class SiteSettingValue(BaseModel):
    value: str


class LogoSettings(BaseModel):
    logo_url: Optional[str] = None


class FooterSettings(BaseModel):
    company_name: str
    company_description: str
    email: str
    phone: str
    address: str
    copyright: str

    @classmethod
    def from_settings(cls, values: Dict[str, str]) -> "FooterSettings":
        return cls(**{key.removeprefix("footer_"): value for key, value in values.items()})

    def to_settings(self) -> Dict[str, str]:
        return {f"footer_{field}": value for field, value in self.model_dump().items()}


# Category

class CategoryResponse(RowModel):
    id: str
    name: str
    display_order: int = 0
    created_at: Optional[datetime] = None


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1)
    display_order: int = 0

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v


class CategoryUpdate(PartialUpdate):
    name: Optional[str] = Field(default=None, min_length=1)
    display_order: Optional[int] = None


# About content

class AboutContentResponse(RowModel):
    id: str
    section: str
    title: str
    content: str = ""
    display_order: int = 0
    updated_at: Optional[datetime] = None


class AboutContentCreate(BaseModel):
    section: str = Field(min_length=1)
    title: str = Field(min_length=1)
    content: str = ""
    display_order: int = 0


class AboutContentUpdate(PartialUpdate):
    section: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = None
    display_order: Optional[int] = None


class AboutSection(BaseModel):
    section: str
    items: List[AboutContentResponse]


# Dashboard

class DashboardResponse(BaseModel):
    published_count: int
    draft_count: int
    total_inquiries: int
    unread_count: int
    recent_portfolios: List[PortfolioResponse]
    recent_inquiries: List[InquiryResponse]


# Auth

class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class SessionResponse(BaseModel):
    authenticated: bool
    email: Optional[str] = None


# Uploads

class UploadResponse(BaseModel):
    urls: List[str]
    folder: str
