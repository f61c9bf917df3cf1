"""
Account use cases: registro, login con 2FA por email, sign-in externo,
perfil y recuperación de password.
"""

from .external_sign_in import ExternalSignInUseCase
from .login_user import (
    LoginOutcome,
    LoginUseCase,
    ResendLoginCodeUseCase,
    VerifyLoginCodeUseCase,
)
from .password_reset import (
    ForgotPasswordUseCase,
    ResetPasswordUseCase,
    VerifyResetCodeUseCase,
)
from .profile import EDITABLE_PROFILE_FIELDS, UpdateProfileUseCase
from .register_user import RegisterUserInput, RegisterUserUseCase
from .two_factor import ConfirmTwoFactorChangeUseCase, RequestTwoFactorCodeUseCase

__all__ = [
    "ConfirmTwoFactorChangeUseCase",
    "EDITABLE_PROFILE_FIELDS",
    "ExternalSignInUseCase",
    "ForgotPasswordUseCase",
    "LoginOutcome",
    "LoginUseCase",
    "RegisterUserInput",
    "RegisterUserUseCase",
    "RequestTwoFactorCodeUseCase",
    "ResendLoginCodeUseCase",
    "ResetPasswordUseCase",
    "UpdateProfileUseCase",
    "VerifyLoginCodeUseCase",
    "VerifyResetCodeUseCase",
]
