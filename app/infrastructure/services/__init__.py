"""
Infrastructure Services (Infrastructure Layer)

Facade del paquete `infrastructure.services`: re-exporta los adapters de
servicios externos para que el composition root importe desde un único lugar.

  - Identidad: FirebaseClientFactory, FirebaseIdentityProvider
  - Notificación: SmtpNotificationChannel
  - Pagos: StripePaymentGateway
  - Test doubles: FakeIdentityProvider, RecordingNotificationChannel, FakePaymentGateway
  - Resiliencia: create_retry_decorator, is_transient_error
"""

from .fakes import (  # noqa: F401
    FakeIdentityProvider,
    FakePaymentGateway,
    RecordingNotificationChannel,
)
from .firebase_app import FirebaseClientFactory  # noqa: F401
from .firebase_identity import FirebaseIdentityProvider  # noqa: F401
from .retry import (  # noqa: F401
    PERMANENT_HTTP_CODES,
    TRANSIENT_HTTP_CODES,
    create_retry_decorator,
    is_transient_error,
)
from .smtp_notifier import SmtpNotificationChannel  # noqa: F401
from .stripe_gateway import StripePaymentGateway  # noqa: F401

__all__ = [
    "FirebaseClientFactory",
    "FirebaseIdentityProvider",
    "SmtpNotificationChannel",
    "StripePaymentGateway",
    "FakeIdentityProvider",
    "RecordingNotificationChannel",
    "FakePaymentGateway",
    "create_retry_decorator",
    "is_transient_error",
    "TRANSIENT_HTTP_CODES",
    "PERMANENT_HTTP_CODES",
]
