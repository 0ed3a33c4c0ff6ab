"""
Lottery API Endpoints

重點：
1. 所有規則都在 RoundEngine，這裡只負責轉換 request / response
2. 業務異常轉成 4xx，錯誤代碼放在 X-Error-Code header
3. 目標數字永遠不會透過 API 回傳
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import (
    RegisterRequest,
    GuessRequest,
    StatusResponse,
    SettleResponse,
    RoundStateResponse,
    PreviousWinnersResponse,
    ParticipantResponse,
    EventResponse,
)
from core.constants import REGISTRATION_FEE, MAX_ATTEMPTS, MIN_GUESS, MAX_GUESS
from core.round_engine import RoundEngine, get_round_engine
from core.exceptions import LotteryException, RoundNotFound, TransferFailed
from services.event_service import get_events

router = APIRouter(prefix="/api/lottery", tags=["lottery"])
logger = logging.getLogger(__name__)


def _to_http(exc: LotteryException) -> HTTPException:
    if isinstance(exc, RoundNotFound):
        status_code = 404
    elif isinstance(exc, TransferFailed):
        status_code = 409
    else:
        status_code = 400
    return HTTPException(
        status_code=status_code,
        detail=str(exc),
        headers={"X-Error-Code": exc.code}
    )


@router.get("/state", response_model=RoundStateResponse)
def get_state(
    db: Session = Depends(get_db),
    engine: RoundEngine = Depends(get_round_engine)
):
    """
    取得目前回合的公開狀態

    返回：
        - 常數：registration_fee / max_attempts / min_guess / max_guess
        - owner、round_number、active、pool
        - participants：報名順序
        - winner_count：目前的得獎紀錄數（不透露是誰猜中）
    """
    try:
        round_obj = engine.get_round(db)
        return RoundStateResponse(
            registration_fee=REGISTRATION_FEE,
            max_attempts=MAX_ATTEMPTS,
            min_guess=MIN_GUESS,
            max_guess=MAX_GUESS,
            owner=round_obj.owner,
            round_number=round_obj.round_number,
            active=round_obj.active,
            pool=round_obj.pool,
            participants=[p.participant for p in round_obj.participants],
            winner_count=len(round_obj.winners)
        )

    except LotteryException as e:
        raise _to_http(e)
    except Exception as e:
        logger.error(f"Failed to get lottery state: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/register", response_model=StatusResponse)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    engine: RoundEngine = Depends(get_round_engine)
):
    """
    報名本回合

    參數：
        participant: 玩家身分（例如錢包地址）
        paid_amount: 支付金額（wei），必須剛好等於報名費
    """
    try:
        engine.register(db, payload.participant, payload.paid_amount)
        return StatusResponse(status="ok")

    except LotteryException as e:
        raise _to_http(e)
    except Exception as e:
        logger.error(f"Failed to register: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/guess", response_model=StatusResponse)
def submit_guess(
    payload: GuessRequest,
    db: Session = Depends(get_db),
    engine: RoundEngine = Depends(get_round_engine)
):
    """
    提交猜測

    注意：回應不會透露是否猜中，結果要等結算後查 /winners/previous
    """
    try:
        engine.submit_guess(db, payload.participant, payload.guess)
        return StatusResponse(status="ok")

    except LotteryException as e:
        raise _to_http(e)
    except Exception as e:
        logger.error(f"Failed to submit guess: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/settle", response_model=SettleResponse)
def settle_round(
    db: Session = Depends(get_db),
    engine: RoundEngine = Depends(get_round_engine)
):
    """
    結算回合

    任何人都可以呼叫；沒有人猜中時回傳 400（no_winners），回合維持開放
    """
    try:
        winner_count = engine.settle_round(db)
        return SettleResponse(winner_count=winner_count)

    except LotteryException as e:
        raise _to_http(e)
    except Exception as e:
        logger.error(f"Failed to settle round: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/winners/previous", response_model=PreviousWinnersResponse)
def get_previous_winners(
    db: Session = Depends(get_db),
    engine: RoundEngine = Depends(get_round_engine)
):
    """
    取得上一次結算的得獎者

    返回：
        - round_number: 快照來自哪一回合（尚未結算過為 None）
        - winners: 得獎者（原始順序，同一人猜中兩次會出現兩次）
    """
    try:
        return PreviousWinnersResponse(
            round_number=engine.get_previous_round_number(db),
            winners=engine.get_previous_winners(db)
        )

    except Exception as e:
        logger.error(f"Failed to get previous winners: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/participants/{participant}", response_model=ParticipantResponse)
def get_participant(
    participant: str,
    db: Session = Depends(get_db),
    engine: RoundEngine = Depends(get_round_engine)
):
    try:
        record = engine.get_participant(db, participant)
        if record is None:
            raise HTTPException(status_code=404, detail="Participant not registered")
        return ParticipantResponse.model_validate(record)

    except HTTPException:
        raise
    except LotteryException as e:
        raise _to_http(e)
    except Exception as e:
        logger.error(f"Failed to get participant: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/events", response_model=List[EventResponse])
def list_events(
    since_id: Optional[int] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    """
    依發生順序列出事件（前端短輪詢用）

    參數：
        since_id: 只回傳此 id 之後的事件
        limit: 最多幾筆
    """
    try:
        events = get_events(db, since_id=since_id, limit=limit)
        return [EventResponse.model_validate(e) for e in events]

    except Exception as e:
        logger.error(f"Failed to list events: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
