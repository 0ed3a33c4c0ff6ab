from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============ Requests ============

class RegisterRequest(BaseModel):
    participant: str = Field(..., min_length=1)
    paid_amount: int


class GuessRequest(BaseModel):
    participant: str = Field(..., min_length=1)
    # 範圍檢查交給 RoundEngine（回報 guess_out_of_range）
    guess: int


# ============ Responses ============

class StatusResponse(BaseModel):
    status: str


class SettleResponse(BaseModel):
    winner_count: int


class RoundStateResponse(BaseModel):
    registration_fee: int
    max_attempts: int
    min_guess: int
    max_guess: int
    owner: str
    round_number: int
    active: bool
    pool: int
    participants: List[str]
    winner_count: int


class PreviousWinnersResponse(BaseModel):
    round_number: Optional[int] = None
    winners: List[str]


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    participant: str
    attempt_count: int
    registered: bool


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    round_number: int
    event_type: str
    data: Dict[str, Any]
    created_at: datetime


class BalanceResponse(BaseModel):
    identity: str
    balance: int
