"""
===============================================================================
TARJETA CRC — schemas/content.py
===============================================================================

Módulo:
    Schemas HTTP para contenido de home (hero banners, testimonios)
===============================================================================
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BannerReq(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    image: str = Field(..., min_length=1, max_length=2048)
    subtitle: str | None = Field(default=None, max_length=500)
    button_text: str | None = Field(default=None, max_length=60)
    button_link: str | None = Field(default=None, max_length=2048)
    active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None


class BannerPatchReq(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    image: str | None = Field(default=None, min_length=1, max_length=2048)
    subtitle: str | None = Field(default=None, max_length=500)
    button_text: str | None = Field(default=None, max_length=60)
    button_link: str | None = Field(default=None, max_length=2048)
    active: bool | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class TestimonialReq(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    comment: str = Field(..., min_length=1, max_length=2000)
    rating: int = Field(default=5, ge=1, le=5)
    image: str | None = Field(default=None, max_length=2048)
    featured: bool = False


class BannerRes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    image: str
    subtitle: str | None = None
    button_text: str | None = None
    button_link: str | None = None
    active: bool
    start_date: datetime | None = None
    end_date: datetime | None = None


class TestimonialRes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    comment: str
    rating: int
    image: str | None = None
    featured: bool
