"""
===============================================================================
TARJETA CRC — app/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer stores, servicios externos, resolvers y casos de uso (DIP).
  - Exponer factories para FastAPI (Depends).
  - Mantener singletons con caching (lru_cache) para recursos compartidos.
  - Centralizar decisiones runtime basadas en Settings (app_env, firebase, smtp).

Colaboradores:
  - app.crosscutting.config.get_settings
  - app.domain.repositories / app.domain.services (puertos)
  - app.infrastructure.* (implementaciones)
  - app.identity.* y app.application.* (orquestación)

Patrones aplicados:
  - Composition Root
  - Lazy singletons con lru_cache

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI.
  - Entorno test => stores in-memory + fakes; en local sin credenciales se
    degradan los adapters externos (con warning), nunca en producción.
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .application import DualStoreAccessor, RoleStateSynchronizer
from .application.usecases.accounts import (
    ConfirmTwoFactorChangeUseCase,
    ExternalSignInUseCase,
    ForgotPasswordUseCase,
    LoginUseCase,
    RegisterUserUseCase,
    RequestTwoFactorCodeUseCase,
    ResendLoginCodeUseCase,
    ResetPasswordUseCase,
    UpdateProfileUseCase,
    VerifyLoginCodeUseCase,
    VerifyResetCodeUseCase,
)
from .application.usecases.admin import (
    AdminDashboardUseCase,
    ChangeUserRoleUseCase,
    ListUsersUseCase,
)
from .application.usecases.catalog import (
    CreateCategoryUseCase,
    CreateProductUseCase,
    CreateReviewUseCase,
    DeleteCategoryUseCase,
    DeleteProductUseCase,
    GetCategoryUseCase,
    GetProductUseCase,
    ListCategoriesUseCase,
    ListProductReviewsUseCase,
    ListProductsUseCase,
    UpdateCategoryUseCase,
    UpdateProductUseCase,
)
from .application.usecases.content import (
    CreateBannerUseCase,
    CreateTestimonialUseCase,
    DeleteBannerUseCase,
    ListBannersUseCase,
    ListTestimonialsUseCase,
    UpdateBannerUseCase,
)
from .application.usecases.lists import (
    AddToWishlistUseCase,
    ClearCartUseCase,
    GetCartUseCase,
    GetWishlistUseCase,
    PutCartItemUseCase,
    RemoveCartItemUseCase,
    RemoveFromWishlistUseCase,
)
from .application.usecases.orders import (
    CreateOrderUseCase,
    GetOrderUseCase,
    ListAllOrdersUseCase,
    ListMyOrdersUseCase,
    UpdateOrderStatusUseCase,
)
from .application.usecases.payments import CreatePaymentIntentUseCase
from .crosscutting.config import get_settings
from .crosscutting.logger import logger
from .domain.repositories import CodeStore, DocumentStore, RelationalStore
from .domain.services import IdentityProvider, NotificationChannel, PaymentGateway
from .identity.otp import OneTimeCodeAuthenticator
from .identity.resolver import IdentityResolver
from .identity.session import SessionContextResolver
from .infrastructure.repositories import (
    FirestoreDocumentStore,
    InMemoryCodeStore,
    InMemoryDocumentStore,
    InMemoryRelationalStore,
    PostgresCodeStore,
    PostgresStore,
)
from .infrastructure.services import (
    FakeIdentityProvider,
    FakePaymentGateway,
    FirebaseClientFactory,
    FirebaseIdentityProvider,
    RecordingNotificationChannel,
    SmtpNotificationChannel,
    StripePaymentGateway,
)

# =============================================================================
# Helpers internos
# =============================================================================


def _is_test_env() -> bool:
    """
    Determina si estamos en entorno de test.

    Regla:
      - app_env ∈ {"test", "testing", "ci"} => se favorecen in-memory adapters.
    """
    env = get_settings().app_env.strip().lower()
    return env in {"test", "testing", "ci"}


def _uses_postgres() -> bool:
    return not _is_test_env() and bool(get_settings().database_url.strip())


def _uses_firebase() -> bool:
    return not _is_test_env() and get_settings().firebase_enabled


def _timeout() -> float:
    return get_settings().store_timeout_seconds


# =============================================================================
# Stores (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_relational_store() -> RelationalStore:
    """Store relacional (in-memory en test / sin DATABASE_URL; Postgres en runtime)."""
    if _uses_postgres():
        return PostgresStore()
    logger.warning("Relational store en memoria (sin DATABASE_URL)")
    return InMemoryRelationalStore()


@lru_cache(maxsize=1)
def get_firebase_factory() -> FirebaseClientFactory:
    settings = get_settings()
    return FirebaseClientFactory(
        project_id=settings.firebase_project_id,
        credentials_path=settings.firebase_credentials_path,
    )


@lru_cache(maxsize=1)
def get_document_store() -> DocumentStore:
    """Store documental (Firestore si firebase_enabled; in-memory si no)."""
    if _uses_firebase():
        return FirestoreDocumentStore(get_firebase_factory().firestore)
    logger.warning("Document store en memoria (firebase deshabilitado)")
    return InMemoryDocumentStore()


@lru_cache(maxsize=1)
def get_code_store() -> CodeStore:
    """Códigos de un solo uso: viven junto al store relacional."""
    if _uses_postgres():
        return PostgresCodeStore()
    return InMemoryCodeStore()


# =============================================================================
# Servicios externos (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_identity_provider() -> IdentityProvider | None:
    """Proveedor de identidad externo; None si Firebase no está habilitado."""
    if _is_test_env():
        return FakeIdentityProvider()
    if get_settings().firebase_enabled:
        return FirebaseIdentityProvider(get_firebase_factory())
    return None


@lru_cache(maxsize=1)
def get_notification_channel() -> NotificationChannel:
    settings = get_settings()
    if _is_test_env() or not settings.smtp_host:
        if settings.is_production():
            raise ValueError("SMTP_HOST is required in production")
        logger.warning("Notificaciones en memoria (SMTP no configurado)")
        return RecordingNotificationChannel()
    return SmtpNotificationChannel(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        sender=settings.mail_from,
        use_tls=settings.smtp_use_tls,
    )


@lru_cache(maxsize=1)
def get_payment_gateway() -> PaymentGateway:
    settings = get_settings()
    if _is_test_env() or (not settings.stripe_secret_key and not settings.is_production()):
        return FakePaymentGateway()
    return StripePaymentGateway(
        secret_key=settings.stripe_secret_key,
        api_base=settings.stripe_api_base,
    )


# =============================================================================
# Núcleo: accessor, synchronizer, resolver, OTP, session
# =============================================================================


@lru_cache(maxsize=1)
def get_dual_store_accessor() -> DualStoreAccessor:
    return DualStoreAccessor(
        get_relational_store(), get_document_store(), timeout_s=_timeout()
    )


@lru_cache(maxsize=1)
def get_synchronizer() -> RoleStateSynchronizer:
    return RoleStateSynchronizer(
        get_relational_store(),
        get_document_store(),
        get_identity_provider(),
        timeout_s=_timeout(),
    )


@lru_cache(maxsize=1)
def get_identity_resolver() -> IdentityResolver:
    return IdentityResolver(
        get_relational_store(),
        get_document_store(),
        get_synchronizer(),
        timeout_s=_timeout(),
    )


@lru_cache(maxsize=1)
def get_code_authenticator() -> OneTimeCodeAuthenticator:
    return OneTimeCodeAuthenticator.from_settings(
        get_code_store(), get_notification_channel(), get_settings()
    )


@lru_cache(maxsize=1)
def get_session_resolver() -> SessionContextResolver:
    return SessionContextResolver(
        get_identity_resolver(),
        get_identity_provider(),
        accept_unsigned_headers=get_settings().accept_unsigned_identity_headers,
    )


def reset_container() -> None:
    """Limpia los singletons (tests)."""
    for factory in (
        get_relational_store,
        get_firebase_factory,
        get_document_store,
        get_code_store,
        get_identity_provider,
        get_notification_channel,
        get_payment_gateway,
        get_dual_store_accessor,
        get_synchronizer,
        get_identity_resolver,
        get_code_authenticator,
        get_session_resolver,
    ):
        factory.cache_clear()


# =============================================================================
# Use cases: accounts
# =============================================================================


def get_register_user_use_case() -> RegisterUserUseCase:
    return RegisterUserUseCase(
        get_identity_resolver(), get_relational_store(), get_identity_provider()
    )


def get_login_use_case() -> LoginUseCase:
    return LoginUseCase(get_identity_resolver(), get_code_authenticator())


def get_verify_login_code_use_case() -> VerifyLoginCodeUseCase:
    return VerifyLoginCodeUseCase(get_identity_resolver(), get_code_authenticator())


def get_resend_login_code_use_case() -> ResendLoginCodeUseCase:
    return ResendLoginCodeUseCase(get_identity_resolver(), get_code_authenticator())


def get_request_two_factor_code_use_case() -> RequestTwoFactorCodeUseCase:
    return RequestTwoFactorCodeUseCase(get_code_authenticator())


def get_confirm_two_factor_change_use_case() -> ConfirmTwoFactorChangeUseCase:
    return ConfirmTwoFactorChangeUseCase(get_code_authenticator(), get_synchronizer())


def get_forgot_password_use_case() -> ForgotPasswordUseCase:
    return ForgotPasswordUseCase(get_identity_resolver(), get_code_authenticator())


def get_verify_reset_code_use_case() -> VerifyResetCodeUseCase:
    return VerifyResetCodeUseCase(get_identity_resolver(), get_code_authenticator())


def get_reset_password_use_case() -> ResetPasswordUseCase:
    return ResetPasswordUseCase(get_identity_resolver(), get_synchronizer())


def get_update_profile_use_case() -> UpdateProfileUseCase:
    return UpdateProfileUseCase(
        get_relational_store(), get_document_store(), timeout_s=_timeout()
    )


def get_external_sign_in_use_case() -> ExternalSignInUseCase | None:
    provider = get_identity_provider()
    if provider is None:
        return None
    return ExternalSignInUseCase(provider, get_identity_resolver())


# =============================================================================
# Use cases: catalog
# =============================================================================


def get_list_categories_use_case() -> ListCategoriesUseCase:
    return ListCategoriesUseCase(get_dual_store_accessor())


def get_get_category_use_case() -> GetCategoryUseCase:
    return GetCategoryUseCase(get_dual_store_accessor())


def get_create_category_use_case() -> CreateCategoryUseCase:
    return CreateCategoryUseCase(get_dual_store_accessor())


def get_update_category_use_case() -> UpdateCategoryUseCase:
    return UpdateCategoryUseCase(get_dual_store_accessor())


def get_delete_category_use_case() -> DeleteCategoryUseCase:
    return DeleteCategoryUseCase(get_dual_store_accessor())


def get_list_products_use_case() -> ListProductsUseCase:
    return ListProductsUseCase(get_dual_store_accessor())


def get_get_product_use_case() -> GetProductUseCase:
    return GetProductUseCase(get_dual_store_accessor())


def get_create_product_use_case() -> CreateProductUseCase:
    return CreateProductUseCase(get_dual_store_accessor())


def get_update_product_use_case() -> UpdateProductUseCase:
    return UpdateProductUseCase(get_dual_store_accessor())


def get_delete_product_use_case() -> DeleteProductUseCase:
    return DeleteProductUseCase(get_dual_store_accessor())


def get_list_product_reviews_use_case() -> ListProductReviewsUseCase:
    return ListProductReviewsUseCase(get_dual_store_accessor())


def get_create_review_use_case() -> CreateReviewUseCase:
    return CreateReviewUseCase(get_dual_store_accessor())


# =============================================================================
# Use cases: orders / lists / payments
# =============================================================================


def get_create_order_use_case() -> CreateOrderUseCase:
    return CreateOrderUseCase(get_dual_store_accessor())


def get_list_my_orders_use_case() -> ListMyOrdersUseCase:
    return ListMyOrdersUseCase(get_dual_store_accessor())


def get_get_order_use_case() -> GetOrderUseCase:
    return GetOrderUseCase(get_dual_store_accessor())


def get_list_all_orders_use_case() -> ListAllOrdersUseCase:
    return ListAllOrdersUseCase(get_dual_store_accessor())


def get_update_order_status_use_case() -> UpdateOrderStatusUseCase:
    return UpdateOrderStatusUseCase(get_dual_store_accessor())


def get_get_wishlist_use_case() -> GetWishlistUseCase:
    return GetWishlistUseCase(get_dual_store_accessor())


def get_add_to_wishlist_use_case() -> AddToWishlistUseCase:
    return AddToWishlistUseCase(get_dual_store_accessor())


def get_remove_from_wishlist_use_case() -> RemoveFromWishlistUseCase:
    return RemoveFromWishlistUseCase(get_dual_store_accessor())


def get_get_cart_use_case() -> GetCartUseCase:
    return GetCartUseCase(get_dual_store_accessor())


def get_put_cart_item_use_case() -> PutCartItemUseCase:
    return PutCartItemUseCase(get_dual_store_accessor())


def get_remove_cart_item_use_case() -> RemoveCartItemUseCase:
    return RemoveCartItemUseCase(get_dual_store_accessor())


def get_clear_cart_use_case() -> ClearCartUseCase:
    return ClearCartUseCase(get_dual_store_accessor())


def get_create_payment_intent_use_case() -> CreatePaymentIntentUseCase:
    return CreatePaymentIntentUseCase(
        get_payment_gateway(), currency=get_settings().payment_currency
    )


# =============================================================================
# Use cases: content / admin
# =============================================================================


def get_list_banners_use_case() -> ListBannersUseCase:
    return ListBannersUseCase(get_relational_store())


def get_create_banner_use_case() -> CreateBannerUseCase:
    return CreateBannerUseCase(get_relational_store())


def get_update_banner_use_case() -> UpdateBannerUseCase:
    return UpdateBannerUseCase(get_relational_store())


def get_delete_banner_use_case() -> DeleteBannerUseCase:
    return DeleteBannerUseCase(get_relational_store())


def get_list_testimonials_use_case() -> ListTestimonialsUseCase:
    return ListTestimonialsUseCase(get_relational_store())


def get_create_testimonial_use_case() -> CreateTestimonialUseCase:
    return CreateTestimonialUseCase(get_relational_store())


def get_admin_dashboard_use_case() -> AdminDashboardUseCase:
    return AdminDashboardUseCase(get_dual_store_accessor(), get_relational_store())


def get_list_users_use_case() -> ListUsersUseCase:
    return ListUsersUseCase(get_relational_store())


def get_change_user_role_use_case() -> ChangeUserRoleUseCase:
    return ChangeUserRoleUseCase(get_identity_resolver(), get_synchronizer())
