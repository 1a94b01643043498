import logging
import re
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.auth.dependencies import get_current_user_id
from backend.auth.passwords import MAX_PASSWORD_LENGTH
from backend.core.errors import internal_server_error
from backend.database import get_db
from backend.models.user import ADMIN_ROLE, VOTER_ROLE, User

router = APIRouter(tags=['user'])

logger = logging.getLogger(__name__)

AADHAR_CARD_NUMBER_PATTERN = re.compile(r'[0-9]{12}')

ADMIN_EXISTS_DETAIL = 'Admin user already exists'
INVALID_AADHAR_DETAIL = 'Aadhar Card Number must be exactly 12 digits'
DUPLICATE_AADHAR_DETAIL = 'User with the same Aadhar Card Number already exists'
LOGIN_FIELDS_REQUIRED_DETAIL = 'Aadhar Card Number and password are required'
INVALID_CREDENTIALS_DETAIL = 'Invalid Aadhar Card Number or Password'
PASSWORD_FIELDS_REQUIRED_DETAIL = 'Both currentPassword and newPassword are required'
INVALID_CURRENT_PASSWORD_DETAIL = 'Invalid current password'

SIGNUP_REQUIRED_FIELDS = ('name', 'age', 'address', 'password')


def _stringify_number(value):
    # JSON clients often send the ID number and mobile as integers.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class SignupRequest(BaseModel):
    # Profile fields are optional here so the ID number checks run first;
    # missing ones are reported by the route.
    name: str | None = None
    age: int | None = None
    email: str | None = None
    mobile: str | None = None
    address: str | None = None
    aadhar_card_number: str | None = Field(default=None, alias='aadharCardNumber')
    password: str | None = Field(default=None, max_length=MAX_PASSWORD_LENGTH)
    role: Literal['voter', 'admin'] = VOTER_ROLE

    class Config:
        populate_by_name = True

    @field_validator('aadhar_card_number', 'mobile', mode='before')
    @classmethod
    def normalize_numbers(cls, value):
        return _stringify_number(value)

    def missing_fields(self) -> list[str]:
        return [field_name for field_name in SIGNUP_REQUIRED_FIELDS if getattr(self, field_name) in (None, '')]


class LoginRequest(BaseModel):
    aadhar_card_number: str | None = Field(default=None, alias='aadharCardNumber')
    password: str | None = None

    class Config:
        populate_by_name = True

    @field_validator('aadhar_card_number', mode='before')
    @classmethod
    def normalize_aadhar_card_number(cls, value):
        return _stringify_number(value)


class PasswordUpdateRequest(BaseModel):
    current_password: str | None = Field(default=None, alias='currentPassword')
    new_password: str | None = Field(default=None, alias='newPassword', max_length=MAX_PASSWORD_LENGTH)

    class Config:
        populate_by_name = True


class UserResponse(BaseModel):
    id: int
    name: str
    age: int
    email: str | None = None
    mobile: str | None = None
    address: str
    aadhar_card_number: str = Field(alias='aadharCardNumber')
    role: str
    is_voted: bool = Field(alias='isVoted')

    class Config:
        from_attributes = True
        populate_by_name = True


class SignupResponse(BaseModel):
    user: UserResponse
    token: str


class TokenResponse(BaseModel):
    token: str


class ProfileResponse(BaseModel):
    user: UserResponse | None


class MessageResponse(BaseModel):
    message: str


def is_valid_aadhar_card_number(value: str | None) -> bool:
    return value is not None and AADHAR_CARD_NUMBER_PATTERN.fullmatch(value) is not None


def admin_exists(db: Session) -> bool:
    return db.query(User.id).filter(User.role == ADMIN_ROLE).first() is not None


def find_user_by_aadhar_card_number(db: Session, aadhar_card_number: str) -> User | None:
    return db.query(User).filter(User.aadhar_card_number == aadhar_card_number).first()


@router.post('/signup', response_model=SignupResponse)
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    try:
        if data.role == ADMIN_ROLE and admin_exists(db):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ADMIN_EXISTS_DETAIL)

        if not is_valid_aadhar_card_number(data.aadhar_card_number):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_AADHAR_DETAIL)

        if find_user_by_aadhar_card_number(db, data.aadhar_card_number) is not None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_AADHAR_DETAIL)

        missing_fields = data.missing_fields()
        if missing_fields:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f'Missing required fields: {", ".join(missing_fields)}',
            )

        user = User(
            name=data.name,
            age=data.age,
            email=data.email,
            mobile=data.mobile,
            address=data.address,
            aadhar_card_number=data.aadhar_card_number,
            password=data.password,
            role=data.role,
            is_voted=False,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        # A concurrent signup won the race past the checks above.
        db.rollback()
        detail = ADMIN_EXISTS_DETAIL if data.role == ADMIN_ROLE and admin_exists(db) else DUPLICATE_AADHAR_DETAIL
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error registering user')
        raise internal_server_error() from exc

    logger.info('User registered: %s (role=%s)', user.id, user.role)
    token = jwt_handler.create_access_token(user.id)
    return {'user': UserResponse.model_validate(user), 'token': token}


@router.post('/login', response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    if not data.aadhar_card_number or not data.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=LOGIN_FIELDS_REQUIRED_DETAIL)

    try:
        user = find_user_by_aadhar_card_number(db, data.aadhar_card_number)
    except SQLAlchemyError as exc:
        logger.exception('Error logging in user')
        raise internal_server_error() from exc

    if user is None or not user.compare_password(data.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS_DETAIL)

    return {'token': jwt_handler.create_access_token(user.id)}


@router.get('/profile', response_model=ProfileResponse)
def get_profile(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    try:
        user = db.get(User, user_id)
    except SQLAlchemyError as exc:
        logger.exception('Error fetching user profile')
        raise internal_server_error() from exc

    return {'user': UserResponse.model_validate(user) if user is not None else None}


@router.put('/profile/password', response_model=MessageResponse)
def update_password(
    data: PasswordUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    if not data.current_password or not data.new_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=PASSWORD_FIELDS_REQUIRED_DETAIL)

    try:
        user = db.get(User, user_id)

        if user is None or not user.compare_password(data.current_password):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CURRENT_PASSWORD_DETAIL)

        user.password = data.new_password
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error updating user password')
        raise internal_server_error() from exc

    logger.info('Password updated for user: %s', user_id)
    return {'message': 'Password updated'}
