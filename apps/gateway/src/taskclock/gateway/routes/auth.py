"""账户路由

POST /api/register: 注册 owner
POST /api/login: 校验凭证，签发 bearer token
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..deps import get_account_service
from ..services.account_service import AccountService

router = APIRouter()


class RegisterRequest(BaseModel):
    """注册请求体"""

    username: str = Field(min_length=1, max_length=64, description="用户名")
    email: str = Field(default="", max_length=254, description="邮箱")
    password: str = Field(min_length=8, description="密码")


class RegisterResponse(BaseModel):
    owner_id: int
    username: str


class LoginRequest(BaseModel):
    """登录请求体"""

    username: str
    password: str


class TokenResponse(BaseModel):
    token: str
    token_type: str
    expires_at: datetime


@router.post("/api/register", response_model=RegisterResponse, status_code=201)
async def register(
    body: RegisterRequest,
    service: AccountService = Depends(get_account_service),
):
    """注册 owner -- 用户名重复返回 409"""
    owner_id = await service.register(body.username, body.email, body.password)
    return RegisterResponse(owner_id=owner_id, username=body.username)


@router.post("/api/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    service: AccountService = Depends(get_account_service),
):
    """登录 -- 凭证错误返回 401"""
    issued = await service.login(body.username, body.password)
    return TokenResponse(
        token=issued.token,
        token_type=issued.token_type,
        expires_at=issued.expires_at,
    )
