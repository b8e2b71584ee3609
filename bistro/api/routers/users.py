from fastapi import APIRouter, Depends

from bistro.api.deps import get_current_user_id, get_user_service
from bistro.services.user_service import UserService
from bistro.domain.schemas import RegisterIn, LoginIn, AuthOut, UserRead

router = APIRouter(prefix="/api/user", tags=["users"])


@router.post("/register", response_model=AuthOut)
def register(payload: RegisterIn, svc: UserService = Depends(get_user_service)):
    return svc.register(payload)


@router.post("/login", response_model=AuthOut)
def login(payload: LoginIn, svc: UserService = Depends(get_user_service)):
    return svc.login(payload)


@router.get("/me", response_model=UserRead)
def me(
    user_id: int = Depends(get_current_user_id),
    svc: UserService = Depends(get_user_service),
):
    return svc.get_user(user_id)
