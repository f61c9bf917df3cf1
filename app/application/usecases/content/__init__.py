"""Home content use cases (banners, testimonios)."""

from .home_content import (
    CreateBannerUseCase,
    CreateTestimonialUseCase,
    DeleteBannerUseCase,
    ListBannersUseCase,
    ListTestimonialsUseCase,
    UpdateBannerUseCase,
)

__all__ = [
    "CreateBannerUseCase",
    "CreateTestimonialUseCase",
    "DeleteBannerUseCase",
    "ListBannersUseCase",
    "ListTestimonialsUseCase",
    "UpdateBannerUseCase",
]
