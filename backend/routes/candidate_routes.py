import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user_id, require_admin
from backend.core.errors import internal_server_error
from backend.database import get_db
from backend.models.candidate import Candidate, Vote
from backend.models.user import User

router = APIRouter(tags=['candidate'])

logger = logging.getLogger(__name__)

CANDIDATE_NOT_FOUND_DETAIL = 'Candidate not found'
USER_NOT_FOUND_DETAIL = 'User not found'
ADMIN_CANNOT_VOTE_DETAIL = 'Admin is not allowed to vote'
ALREADY_VOTED_DETAIL = 'You have already voted'


def _strip_required(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Value must not be blank.')
    return normalized


class CandidateRequest(BaseModel):
    name: str
    party: str
    age: int = Field(gt=0)

    @field_validator('name', 'party')
    @classmethod
    def validate_text(cls, value: str) -> str:
        return _strip_required(value)


class CandidateUpdateRequest(BaseModel):
    name: str | None = None
    party: str | None = None
    age: int | None = Field(default=None, gt=0)

    @field_validator('name', 'party')
    @classmethod
    def validate_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _strip_required(value)


class CandidateResponse(BaseModel):
    id: int
    name: str
    party: str
    age: int
    vote_count: int = Field(alias='voteCount')

    class Config:
        from_attributes = True
        populate_by_name = True


class CandidateEnvelope(BaseModel):
    candidate: CandidateResponse


class CandidateSummaryResponse(BaseModel):
    id: int
    name: str
    party: str

    class Config:
        from_attributes = True


class VoteCountResponse(BaseModel):
    party: str
    count: int


class MessageResponse(BaseModel):
    message: str


def get_candidate_or_404(candidate_id: int, db: Session) -> Candidate:
    candidate = db.get(Candidate, candidate_id)
    if candidate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CANDIDATE_NOT_FOUND_DETAIL)
    return candidate


@router.post('', response_model=CandidateEnvelope)
def create_candidate(
    data: CandidateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        candidate = Candidate(name=data.name, party=data.party, age=data.age, vote_count=0)
        db.add(candidate)
        db.commit()
        db.refresh(candidate)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error creating candidate')
        raise internal_server_error() from exc

    logger.info('Candidate created: %s by admin %s', candidate.id, admin.id)
    return {'candidate': CandidateResponse.model_validate(candidate)}


@router.put('/{candidate_id}', response_model=CandidateEnvelope)
def update_candidate(
    candidate_id: int,
    data: CandidateUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        candidate = get_candidate_or_404(candidate_id, db)

        for field_name, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(candidate, field_name, value)

        db.commit()
        db.refresh(candidate)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error updating candidate %s', candidate_id)
        raise internal_server_error() from exc

    logger.info('Candidate updated: %s by admin %s', candidate.id, admin.id)
    return {'candidate': CandidateResponse.model_validate(candidate)}


@router.delete('/{candidate_id}', response_model=MessageResponse)
def delete_candidate(
    candidate_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        candidate = get_candidate_or_404(candidate_id, db)
        db.query(Vote).filter(Vote.candidate_id == candidate.id).delete(synchronize_session=False)
        db.delete(candidate)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error deleting candidate %s', candidate_id)
        raise internal_server_error() from exc

    logger.info('Candidate deleted: %s by admin %s', candidate_id, admin.id)
    return {'message': 'Candidate deleted'}


@router.post('/vote/{candidate_id}', response_model=MessageResponse)
def vote(
    candidate_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        candidate = get_candidate_or_404(candidate_id, db)

        user = db.get(User, user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND_DETAIL)
        if user.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ADMIN_CANNOT_VOTE_DETAIL)
        if user.is_voted:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ALREADY_VOTED_DETAIL)

        db.add(Vote(user_id=user.id, candidate_id=candidate.id))
        candidate.vote_count = Candidate.vote_count + 1
        user.is_voted = True
        db.commit()
    except IntegrityError as exc:
        # The one-ballot-per-user constraint caught a concurrent second vote.
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ALREADY_VOTED_DETAIL) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error recording vote for candidate %s', candidate_id)
        raise internal_server_error() from exc

    logger.info('Vote recorded: user %s for candidate %s', user_id, candidate_id)
    return {'message': 'Vote recorded successfully'}


@router.get('/vote/count', response_model=list[VoteCountResponse])
def vote_count(db: Session = Depends(get_db)):
    try:
        candidates = db.query(Candidate).order_by(Candidate.vote_count.desc(), Candidate.id).all()
    except SQLAlchemyError as exc:
        logger.exception('Error fetching vote count')
        raise internal_server_error() from exc

    return [{'party': candidate.party, 'count': candidate.vote_count} for candidate in candidates]


@router.get('', response_model=list[CandidateSummaryResponse])
def list_candidates(db: Session = Depends(get_db)):
    try:
        candidates = db.query(Candidate).order_by(Candidate.id).all()
    except SQLAlchemyError as exc:
        logger.exception('Error fetching candidates')
        raise internal_server_error() from exc

    return candidates
