"""
Pydantic schemas for the portfolio API.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class LanguageBundle(BaseModel):
    """Partial per-language strings; an omitted language is left unchanged."""

    en: Optional[str] = None
    tr: Optional[str] = None


class LoginRequest(BaseModel):
    password: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    expiresIn: int


class AboutUpdatePayload(BaseModel):
    translations: Optional[LanguageBundle] = None
    en: Optional[str] = None
    tr: Optional[str] = None

    def content(self) -> dict:
        if self.translations is not None:
            return self.translations.model_dump()
        return {"en": self.en, "tr": self.tr}


class CategoryCreatePayload(BaseModel):
    id: Optional[str] = Field(default=None, max_length=128)
    title: LanguageBundle = Field(default_factory=LanguageBundle)
    description: LanguageBundle = Field(default_factory=LanguageBundle)
    position: Any = 0
    is_active: Any = True


class CategoryUpdatePayload(BaseModel):
    title: Optional[LanguageBundle] = None
    description: Optional[LanguageBundle] = None
    position: Any = None
    is_active: Any = None


class DataResponse(BaseModel):
    data: Any


class PaginationMeta(BaseModel):
    page: int
    pageSize: int
    pageCount: int
    total: int


class ListMeta(BaseModel):
    pagination: PaginationMeta


class ImageListResponse(BaseModel):
    data: list[dict]
    meta: ListMeta


class ErrorResponse(BaseModel):
    error: str
