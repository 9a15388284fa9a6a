from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from app.crud import user as user_crud
from app.database import get_db
from app.models.user import Role
from app.schemas.auth import LoginRequest, RegisterRequest, Token
from app.utils.security import authenticate_user, create_access_token

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)


# ===== REGISTER ENDPOINT =====

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user_data: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new student account"""
    username = user_data.username.strip()
    email = user_data.email.strip().lower()

    if user_crud.username_exists(db, username):
        raise HTTPException(status_code=400, detail="用户名已被使用")
    if user_crud.email_exists(db, email):
        raise HTTPException(status_code=400, detail="邮箱已被注册")

    try:
        user_crud.create_user(db, username, email, user_data.password, role=Role.STUDENT.value)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="用户名或邮箱已被使用")

    logger.info("Registered user %s", username)
    return {"message": "注册成功"}


# ===== LOGIN ENDPOINT =====

@router.post("/login", response_model=Token)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Verify credentials and return access token"""
    user = authenticate_user(db, credentials.username.strip(), credentials.password)

    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="用户名或密码错误")

    access_token = create_access_token(data={"sub": user.username, "role": user.role})

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "role": user.role
    }
