from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from enum import Enum


class ReservationStatus(str, Enum):
    PREORDER = "preorder"
    ACTIVE = "active"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class ReservationBase(BaseModel):
    user_id: int
    spot_id: Optional[int] = None
    status: ReservationStatus = ReservationStatus.PREORDER
    estimated_start_time: Optional[datetime] = None


class Reservation(ReservationBase):
    id: int
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FinishRequest(BaseModel):
    spot_id: Optional[int] = None


class CancelRequest(BaseModel):
    expected_status: Optional[ReservationStatus] = None
    spot_id: Optional[int] = None


class TransitionResponse(BaseModel):
    reservation_id: int
    applied: bool
    from_status: Optional[ReservationStatus] = None
    to_status: ReservationStatus
    released_spot_id: Optional[int] = None
    message: str


class ReconcileResponse(BaseModel):
    skipped: bool
    scanned_count: int = 0
    cancelled_count: int = 0
    failed_count: int = 0
    notified_count: int = 0


class SchedulerStatusResponse(BaseModel):
    running: bool
    interval_seconds: float
    threshold_minutes: int
    pass_in_progress: bool
    total_passes: int
    total_cancelled: int
    last_pass_started_at: Optional[datetime] = None
    last_pass_finished_at: Optional[datetime] = None
    last_cancelled_count: Optional[int] = None
    last_error: Optional[str] = None
