from datetime import datetime, timedelta, timezone
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, ProgrammingError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.core.config import get_settings
from app.core.security import create_access_token, get_password_hash, verify_password
from app.db.bootstrap import ensure_runtime_schema_compatibility
from app.models.school import Teacher
from app.models.user import User
from app.schemas.user import Token, UserCreate, UserLogin, UserOut

settings = get_settings()
router = APIRouter()
logger = logging.getLogger(__name__)


def _query_user_by_email(db: Session, email: str) -> User | None:
    statement = select(User).where(User.email == email)
    try:
        return db.execute(statement).scalar_one_or_none()
    except ProgrammingError:
        # Older databases may lack the teacher link columns.
        db.rollback()
        try:
            ensure_runtime_schema_compatibility()
            return db.execute(statement).scalar_one_or_none()
        except RuntimeError as bootstrap_exc:
            logger.exception("AUTH LOOKUP FAILED | reason=schema_outdated")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Database schema is outdated. Run `alembic upgrade head` and restart backend.",
            ) from bootstrap_exc


def _ensure_teacher_link_available(db: Session, teacher_id: str) -> None:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    if not teacher.is_active:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Teacher is inactive")
    linked = db.execute(select(User.id).where(User.teacher_id == teacher_id)).scalar_one_or_none()
    if linked is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Teacher already has an account")


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)) -> UserOut:
    existing = _query_user_by_email(db, payload.email)
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    if payload.teacher_id:
        _ensure_teacher_link_available(db, payload.teacher_id)

    user = User(
        name=payload.name,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        teacher_id=payload.teacher_id,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Account already registered") from exc

    db.refresh(user)
    logger.info("USER REGISTERED | user_id=%s | role=%s | teacher_id=%s", user.id, user.role.value, user.teacher_id)
    return user


@router.post("/login", response_model=Token)
def login(payload: UserLogin, db: Session = Depends(get_db)) -> Token:
    user = _query_user_by_email(db, payload.email)
    if user is None or not verify_password(payload.password, user.hashed_password):
        logger.warning("LOGIN REJECTED | email=%s | reason=bad_credentials", payload.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    if payload.role and payload.role != user.role:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Role does not match user account")
    if payload.teacher_id and payload.teacher_id != user.teacher_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Teacher does not match user account")

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)

    expires_in = settings.access_token_expire_minutes * 60
    access_token = create_access_token(user.id, expires_delta=timedelta(seconds=expires_in))
    logger.info("LOGIN | user_id=%s | role=%s", user.id, user.role.value)
    return Token(access_token=access_token, token_type="bearer", expires_in=expires_in, user=user)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)) -> UserOut:
    return current_user
