"""
===============================================================================
TARJETA CRC — routers/auth.py (Autenticación, 2FA y recuperación de password)
===============================================================================

Responsabilidades:
  - Registro, login (con segundo factor opcional), verificación y reenvío
    de códigos, login externo (Firebase ID token) y logout.
  - Emitir JWT de sesión y gestionar la cookie httpOnly de forma consistente.
  - Flujo de recuperación: código por email -> reset token -> nuevo password.

Reglas:
  - Respuestas genéricas en forgot/resend (no se filtra si el email existe).
  - El login con 2FA no emite token: devuelve requires_two_factor + owner.

Colaboradores:
  - container (factories de use cases)
  - identity.auth_users (create_access_token, cookie settings)
  - error_mapping.unwrap (UseCaseError -> RFC7807)
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from app.application.usecases.accounts import (
    ConfirmTwoFactorChangeUseCase,
    ExternalSignInUseCase,
    ForgotPasswordUseCase,
    LoginUseCase,
    RegisterUserInput,
    RegisterUserUseCase,
    RequestTwoFactorCodeUseCase,
    ResendLoginCodeUseCase,
    ResetPasswordUseCase,
    VerifyLoginCodeUseCase,
    VerifyResetCodeUseCase,
)
from app.container import (
    get_confirm_two_factor_change_use_case,
    get_external_sign_in_use_case,
    get_forgot_password_use_case,
    get_login_use_case,
    get_register_user_use_case,
    get_request_two_factor_code_use_case,
    get_resend_login_code_use_case,
    get_reset_password_use_case,
    get_verify_login_code_use_case,
    get_verify_reset_code_use_case,
)
from app.crosscutting.error_responses import service_unavailable
from app.identity.auth_users import DEFAULT_ACCESS_TOKEN_COOKIE as ACCESS_TOKEN_COOKIE
from app.identity.auth_users import create_access_token, get_auth_settings
from app.identity.users import User

from ..dependencies import require_user
from ..error_mapping import unwrap
from ..schemas.accounts import (
    ExternalSignInReq,
    ForgotPasswordReq,
    LoginReq,
    MessageRes,
    RegisterReq,
    ResendCodeReq,
    ResetPasswordReq,
    ResetTokenRes,
    SessionRes,
    SyncRes,
    TwoFactorConfirmReq,
    TwoFactorStepReq,
    TwoFactorToggleReq,
    UserRes,
    VerifyCodeReq,
    VerifyResetCodeReq,
)

router = APIRouter(prefix="/auth", tags=["auth"])

GENERIC_CODE_MESSAGE = "Si la cuenta existe, enviamos un código por email."


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _set_auth_cookie(response: Response, token: str, expires_in: int) -> None:
    settings = get_auth_settings()
    response.set_cookie(
        key=settings.jwt_cookie_name or ACCESS_TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=settings.jwt_cookie_secure,
        samesite="lax",
        max_age=expires_in,
        path="/",
    )


def _clear_auth_cookie(response: Response) -> None:
    settings = get_auth_settings()
    response.delete_cookie(
        key=settings.jwt_cookie_name or ACCESS_TOKEN_COOKIE,
        path="/",
        samesite="lax",
        secure=settings.jwt_cookie_secure,
    )


def _open_session(response: Response, user: User) -> SessionRes:
    token, expires_in = create_access_token(user)
    _set_auth_cookie(response, token, expires_in)
    return SessionRes(
        user=UserRes.of(user), access_token=token, expires_in=expires_in
    )


# -----------------------------------------------------------------------------
# Registro / login
# -----------------------------------------------------------------------------
@router.post("/register", response_model=SessionRes, status_code=201)
async def register(
    req: RegisterReq,
    response: Response,
    use_case: RegisterUserUseCase = Depends(get_register_user_use_case),
):
    user = unwrap(
        await use_case.execute(
            RegisterUserInput(
                email=req.email,
                username=req.username,
                password=req.password,
                full_name=req.full_name,
            )
        )
    )
    return _open_session(response, user)


@router.post("/login", response_model=SessionRes)
async def login(
    req: LoginReq,
    response: Response,
    use_case: LoginUseCase = Depends(get_login_use_case),
):
    """Login con password. Con 2FA activo se envía un código y no hay token."""
    outcome = unwrap(await use_case.execute(req.email, req.password))
    if outcome.requires_two_factor:
        return SessionRes(requires_two_factor=True, owner=str(outcome.user.id))
    return _open_session(response, outcome.user)


@router.post("/login/verify", response_model=SessionRes)
@router.post("/2fa/verify", response_model=SessionRes)
async def verify_login_code(
    req: VerifyCodeReq,
    response: Response,
    use_case: VerifyLoginCodeUseCase = Depends(get_verify_login_code_use_case),
):
    user = unwrap(await use_case.execute(req.owner, req.code))
    return _open_session(response, user)


@router.post("/login/resend", response_model=MessageRes)
@router.post("/2fa/resend", response_model=MessageRes)
async def resend_login_code(
    req: ResendCodeReq,
    use_case: ResendLoginCodeUseCase = Depends(get_resend_login_code_use_case),
):
    unwrap(await use_case.execute(req.owner))
    return MessageRes(message=GENERIC_CODE_MESSAGE)


@router.post("/external", response_model=SessionRes)
async def external_sign_in(
    req: ExternalSignInReq,
    response: Response,
    use_case: ExternalSignInUseCase | None = Depends(get_external_sign_in_use_case),
):
    """Canjea un ID token del proveedor externo por una sesión propia."""
    if use_case is None:
        raise service_unavailable("identity provider")
    user = unwrap(await use_case.execute(req.id_token, username=req.username))
    return _open_session(response, user)


@router.post("/logout")
async def logout(response: Response):
    _clear_auth_cookie(response)
    return {"ok": True}


# -----------------------------------------------------------------------------
# Segundo factor
# -----------------------------------------------------------------------------
@router.post("/2fa/request", response_model=MessageRes)
async def request_two_factor_code(
    req: TwoFactorToggleReq,
    user: User = Depends(require_user),
    use_case: RequestTwoFactorCodeUseCase = Depends(get_request_two_factor_code_use_case),
):
    unwrap(await use_case.execute(user, enable=req.enable))
    return MessageRes(message="Código enviado.")


@router.post("/2fa/confirm", response_model=SyncRes)
async def confirm_two_factor_change(
    req: TwoFactorConfirmReq,
    user: User = Depends(require_user),
    use_case: ConfirmTwoFactorChangeUseCase = Depends(
        get_confirm_two_factor_change_use_case
    ),
):
    outcome = unwrap(await use_case.execute(user, req.code, enable=req.enable))
    return SyncRes.of(outcome)


async def _two_factor_step(
    user: User,
    code: str | None,
    *,
    enable: bool,
    request_use_case: RequestTwoFactorCodeUseCase,
    confirm_use_case: ConfirmTwoFactorChangeUseCase,
) -> SyncRes | MessageRes:
    if code is None:
        unwrap(await request_use_case.execute(user, enable=enable))
        return MessageRes(message="Código enviado.")
    return SyncRes.of(unwrap(await confirm_use_case.execute(user, code, enable=enable)))


@router.post("/2fa/setup", response_model=SyncRes | MessageRes)
async def setup_two_factor(
    req: TwoFactorStepReq,
    user: User = Depends(require_user),
    request_use_case: RequestTwoFactorCodeUseCase = Depends(
        get_request_two_factor_code_use_case
    ),
    confirm_use_case: ConfirmTwoFactorChangeUseCase = Depends(
        get_confirm_two_factor_change_use_case
    ),
):
    return await _two_factor_step(
        user,
        req.code,
        enable=True,
        request_use_case=request_use_case,
        confirm_use_case=confirm_use_case,
    )


@router.post("/2fa/disable", response_model=SyncRes | MessageRes)
async def disable_two_factor(
    req: TwoFactorStepReq,
    user: User = Depends(require_user),
    request_use_case: RequestTwoFactorCodeUseCase = Depends(
        get_request_two_factor_code_use_case
    ),
    confirm_use_case: ConfirmTwoFactorChangeUseCase = Depends(
        get_confirm_two_factor_change_use_case
    ),
):
    return await _two_factor_step(
        user,
        req.code,
        enable=False,
        request_use_case=request_use_case,
        confirm_use_case=confirm_use_case,
    )


# -----------------------------------------------------------------------------
# Recuperación de password
# -----------------------------------------------------------------------------
@router.post("/password/forgot", response_model=MessageRes)
async def forgot_password(
    req: ForgotPasswordReq,
    use_case: ForgotPasswordUseCase = Depends(get_forgot_password_use_case),
):
    unwrap(await use_case.execute(req.email))
    return MessageRes(message=GENERIC_CODE_MESSAGE)


@router.post("/password/verify", response_model=ResetTokenRes)
async def verify_reset_code(
    req: VerifyResetCodeReq,
    use_case: VerifyResetCodeUseCase = Depends(get_verify_reset_code_use_case),
):
    token = unwrap(await use_case.execute(req.email, req.code))
    return ResetTokenRes(reset_token=token)


@router.post("/password/reset", response_model=SyncRes)
async def reset_password(
    req: ResetPasswordReq,
    use_case: ResetPasswordUseCase = Depends(get_reset_password_use_case),
):
    outcome = unwrap(await use_case.execute(req.token, req.new_password))
    return SyncRes.of(outcome)
