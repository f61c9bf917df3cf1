"""
===============================================================================
TARJETA CRC — routers/profile.py (Perfil del usuario autenticado)
===============================================================================

Responsabilidades:
  - GET /users/me: usuario resuelto para la sesión actual.
  - PATCH /users/me: edición de campos de perfil (ambos stores).
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.application.usecases.accounts import UpdateProfileUseCase
from app.container import get_update_profile_use_case
from app.identity.users import User

from ..dependencies import require_user
from ..error_mapping import unwrap
from ..schemas.accounts import UpdateProfileReq, UserRes

router = APIRouter(prefix="/users", tags=["profile"])


@router.get("/me", response_model=UserRes)
async def get_me(user: User = Depends(require_user)):
    return UserRes.of(user)


@router.patch("/me", response_model=UserRes)
async def update_me(
    req: UpdateProfileReq,
    user: User = Depends(require_user),
    use_case: UpdateProfileUseCase = Depends(get_update_profile_use_case),
):
    changes = req.model_dump(exclude_unset=True)
    return UserRes.of(unwrap(await use_case.execute(user, changes), user.id))
