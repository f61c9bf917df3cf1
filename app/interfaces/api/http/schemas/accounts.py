"""
===============================================================================
TARJETA CRC — schemas/accounts.py
===============================================================================

Módulo:
    Schemas HTTP para cuentas (registro, login + 2FA, password reset, perfil)

Responsabilidades:
    - Definir DTOs de request/response de /auth y /users/me.
    - Nunca exponer password_hash ni datos internos del usuario.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime

from app.domain.results import SyncOutcome
from app.identity.users import User
from pydantic import BaseModel, Field


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class RegisterReq(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=8, max_length=256)
    full_name: str | None = Field(default=None, max_length=120)


class LoginReq(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=256)


class VerifyCodeReq(BaseModel):
    """El owner key puede ser user id, UID externo o email."""

    owner: str = Field(..., min_length=1, max_length=320)
    code: str = Field(..., min_length=1, max_length=12)


class ResendCodeReq(BaseModel):
    owner: str = Field(..., min_length=1, max_length=320)


class TwoFactorToggleReq(BaseModel):
    enable: bool


class TwoFactorConfirmReq(BaseModel):
    enable: bool
    code: str = Field(..., min_length=1, max_length=12)


class TwoFactorStepReq(BaseModel):
    """Sin código: emite uno. Con código: confirma el cambio."""

    code: str | None = Field(default=None, min_length=1, max_length=12)


class ForgotPasswordReq(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)


class VerifyResetCodeReq(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    code: str = Field(..., min_length=1, max_length=12)


class ResetPasswordReq(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=256)


class ExternalSignInReq(BaseModel):
    id_token: str = Field(..., min_length=1)
    username: str | None = Field(default=None, min_length=3, max_length=50)


class UpdateProfileReq(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=50)
    full_name: str | None = Field(default=None, max_length=120)
    address: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=40)
    photo_url: str | None = Field(default=None, max_length=2048)


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class UserRes(BaseModel):
    id: int
    email: str
    username: str
    role: str
    external_uid: str | None = None
    full_name: str | None = None
    address: str | None = None
    phone: str | None = None
    photo_url: str | None = None
    two_factor_enabled: bool = False
    created_at: datetime | None = None

    @classmethod
    def of(cls, user: User) -> "UserRes":
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            role=user.role.value,
            external_uid=user.external_uid,
            full_name=user.full_name,
            address=user.address,
            phone=user.phone,
            photo_url=user.photo_url,
            two_factor_enabled=user.two_factor_enabled,
            created_at=user.created_at,
        )


class SessionRes(BaseModel):
    """Login completo (token emitido) o pendiente de 2FA."""

    user: UserRes | None = None
    access_token: str | None = None
    token_type: str = "bearer"
    expires_in: int | None = None
    requires_two_factor: bool = False
    owner: str | None = None


class ResetTokenRes(BaseModel):
    reset_token: str


class MessageRes(BaseModel):
    message: str


class SyncRes(BaseModel):
    """Resultado por store de una propagación (rol, 2FA, password)."""

    operation: str
    overall_success: bool
    partial: bool = False
    per_store: dict[str, bool]
    outcomes: dict[str, str]
    errors: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def of(cls, outcome: SyncOutcome) -> "SyncRes":
        data = outcome.to_dict()
        return cls(
            operation=outcome.operation,
            overall_success=outcome.overall_success,
            partial=outcome.is_partial,
            per_store=data["perStore"],
            outcomes=data["outcomes"],
            errors=data["errors"],
        )
