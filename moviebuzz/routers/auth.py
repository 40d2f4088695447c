from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from .. import accounts, models, schemas
from ..core.dependencies import get_current_user, require_admin
from ..database import get_db
from ..utils import send_welcome_email

router = APIRouter()


@router.post("/register", response_model=schemas.RegisterResponse,
             response_model_exclude_none=True, status_code=status.HTTP_201_CREATED)
def register_user(data: schemas.RegisterRequest, db: Session = Depends(get_db)):
    user, delivery = accounts.register(db, data.username, data.password, data.identifier)
    return schemas.RegisterResponse(
        message="Registration successful! Please verify your account.",
        user_id=user.id,
        delivered=delivery.delivered,
        otp=delivery.fallback_code,
    )


@router.post("/send-otp", response_model=schemas.OTPSentResponse, response_model_exclude_none=True)
def send_otp(data: schemas.SendOTP, db: Session = Depends(get_db)):
    delivery = accounts.resend_otp(db, data.identifier)
    return schemas.OTPSentResponse(
        message="OTP sent successfully!",
        delivered=delivery.delivered,
        otp=delivery.fallback_code,
    )


@router.post("/verify-otp", response_model=schemas.AuthResponse)
def verify_user_otp(
        data: schemas.VerifyOTP,
        background_tasks: BackgroundTasks,
        db: Session = Depends(get_db)
):
    user, token = accounts.verify_otp(db, data.identifier, data.otp)
    if user.identifier_kind == "email":
        background_tasks.add_task(send_welcome_email, user.identifier, user.username)
    return schemas.AuthResponse(
        message="Account verified successfully!",
        token=token,
        user=schemas.PublicUser.model_validate(user),
    )


@router.post("/login", response_model=schemas.AuthResponse)
def login(data: schemas.Credentials, db: Session = Depends(get_db)):
    user, token = accounts.login(db, data.username, data.password)
    return schemas.AuthResponse(
        message="Login successful",
        token=token,
        user=schemas.PublicUser.model_validate(user),
    )


@router.get("/verify", response_model=schemas.TokenCheckResponse)
def verify_token(current_user: models.User = Depends(get_current_user)):
    return schemas.TokenCheckResponse(user=schemas.PublicUser.model_validate(current_user))


@router.get("/me", response_model=schemas.UserEnvelope)
def read_users_me(current_user: models.User = Depends(get_current_user)):
    return schemas.UserEnvelope(user=schemas.PublicUser.model_validate(current_user))


@router.post("/create-admin", response_model=schemas.AdminCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_admin(
        data: schemas.Credentials,
        admin: models.User = Depends(require_admin),
        db: Session = Depends(get_db)
):
    user = accounts.create_admin(db, admin, data.username, data.password)
    return schemas.AdminCreatedResponse(
        message="Admin created successfully",
        user=schemas.PublicUser.model_validate(user),
    )


@router.post("/setup", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def setup_admin(data: schemas.Credentials, db: Session = Depends(get_db)):
    user, token = accounts.bootstrap_admin(db, data.username, data.password)
    return schemas.AuthResponse(
        message="Admin account created successfully!",
        token=token,
        user=schemas.PublicUser.model_validate(user),
    )


@router.get("/setup-status", response_model=schemas.SetupStatus)
def setup_status(db: Session = Depends(get_db)):
    return schemas.SetupStatus(setup_required=accounts.setup_required(db))
