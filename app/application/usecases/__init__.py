"""
Use Cases Layer (Business Operations)

This package exposes entry points for business logic, organized by feature.

Structure
---------
usecases/
├── accounts/   # Register, login + 2FA, external sign-in, profile, password reset
├── catalog/    # Categories, products, reviews
├── orders/     # Checkout (guest allowed), history, admin status updates
├── lists/      # Wishlist and cart (no-op for guests)
├── content/    # Hero banners and testimonials
├── admin/      # Dashboard, users, role changes (syncRole)
└── payments.py # Payment intents

Usage
-----
Import from subpackages for clarity:

    from app.application.usecases.catalog import ListProductsUseCase
    from app.application.usecases.orders import CreateOrderUseCase
"""

from .results import Result, UseCaseError, UseCaseErrorCode

__all__ = ["Result", "UseCaseError", "UseCaseErrorCode"]
