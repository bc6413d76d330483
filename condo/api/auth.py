from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials

from condo.api.deps import get_auth_gateway, get_store
from condo.core.security import bearer, get_current_user
from condo.models.api_models import (
    ChangePasswordRequest,
    LoginRequest,
    PasswordResetRequest,
    RefreshRequest,
    SignUpRequest,
)
from condo.models.db_models import AuthSession, CurrentUser, UserProfile
from condo.services.auth_service import change_password

router = APIRouter()


@router.post("/login", response_model=AuthSession)
async def login(req: LoginRequest, gateway=Depends(get_auth_gateway)):
    return await gateway.sign_in(req.email.strip().lower(), req.password)


@router.post("/refresh", response_model=AuthSession)
async def refresh(req: RefreshRequest, gateway=Depends(get_auth_gateway)):
    return await gateway.refresh(req.refresh_token)


@router.post("/logout")
async def logout(credentials: HTTPAuthorizationCredentials = Depends(bearer),
                 gateway=Depends(get_auth_gateway)):
    if credentials and credentials.credentials:
        await gateway.sign_out(credentials.credentials)
    return {"success": True}


@router.post("/signup", response_model=UserProfile, status_code=201)
async def signup(req: SignUpRequest, gateway=Depends(get_auth_gateway)):
    return await gateway.sign_up(req.email.strip().lower(), req.password, req.full_name.strip())


@router.post("/password-reset")
async def password_reset(req: PasswordResetRequest, gateway=Depends(get_auth_gateway)):
    await gateway.request_password_reset(req.email.strip().lower())
    return {"success": True, "message": "Se o e-mail estiver cadastrado, você receberá as instruções."}


@router.post("/change-password")
async def update_password(req: ChangePasswordRequest, user: CurrentUser = Depends(get_current_user),
                          gateway=Depends(get_auth_gateway), store=Depends(get_store)):
    await change_password(gateway, store, user, req.new_password, req.confirm_password)
    return {"success": True, "message": "Senha alterada com sucesso."}


@router.get("/me", response_model=CurrentUser)
async def me(user: CurrentUser = Depends(get_current_user)):
    return user
