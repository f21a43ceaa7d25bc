from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.auth.dependencies import get_current_owner
from booking_backend.models.blocked_time import BlockedTime
from booking_backend.models.owner import Owner
from booking_backend.routes import common
from booking_backend.scheduling.commit import commit_blocked_time
from booking_backend.scheduling.errors import SchedulingError, SlotNoLongerAvailable

router = APIRouter(tags=['blocked-times'])

MAX_BLOCKED_TIME_REASON_LENGTH = 200


class CreateBlockedTimeRequest(BaseModel):
    start_time: datetime
    end_time: datetime
    reason: str | None = None

    @field_validator('start_time', 'end_time')
    @classmethod
    def strip_seconds(cls, value: datetime) -> datetime:
        return value.replace(second=0, microsecond=0, tzinfo=None)

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_BLOCKED_TIME_REASON_LENGTH:
            raise ValueError(f'Reason must be {MAX_BLOCKED_TIME_REASON_LENGTH} characters or fewer.')

        return normalized

    @model_validator(mode='after')
    def validate_range(self) -> 'CreateBlockedTimeRequest':
        if self.end_time <= self.start_time:
            raise ValueError('Blocked time must end after it starts.')
        return self


class BlockedTimeResponse(BaseModel):
    id: int
    start_time: datetime
    end_time: datetime
    reason: str | None = None

    class Config:
        from_attributes = True


@router.post('/blocked-times', response_model=BlockedTimeResponse, status_code=status.HTTP_201_CREATED)
def create_blocked_time(
    data: CreateBlockedTimeRequest,
    current_owner: Owner = Depends(get_current_owner),
    db: Session = Depends(common.get_db),
):
    common.ensure_database_ready()

    try:
        return commit_blocked_time(
            db,
            owner_id=current_owner.id,
            start_at=data.start_time,
            end_at=data.end_time,
            reason=data.reason,
        )
    except SlotNoLongerAvailable as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='This time overlaps an existing appointment or blocked time.',
        ) from exc
    except SchedulingError as exc:
        raise common.scheduling_http_error(exc) from exc


@router.get('/blocked-times', response_model=list[BlockedTimeResponse])
def list_blocked_times(
    current_owner: Owner = Depends(get_current_owner),
    db: Session = Depends(common.get_db),
):
    common.ensure_database_ready()

    try:
        blocked_times = db.query(BlockedTime).filter(
            BlockedTime.owner_id == current_owner.id,
            BlockedTime.end_time > datetime.now(),
        ).order_by(BlockedTime.start_time.asc()).all()

        return blocked_times
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc


@router.delete('/blocked-times/{blocked_time_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_blocked_time(
    blocked_time_id: int,
    current_owner: Owner = Depends(get_current_owner),
    db: Session = Depends(common.get_db),
):
    common.ensure_database_ready()

    try:
        blocked_time = db.query(BlockedTime).filter(
            BlockedTime.id == blocked_time_id,
            BlockedTime.owner_id == current_owner.id,
        ).first()

        if not blocked_time:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Blocked time not found.',
            )

        db.delete(blocked_time)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise common.database_unavailable() from exc
