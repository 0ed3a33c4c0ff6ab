"""
Ledger API Endpoints

只提供查詢：收款與轉帳只會經由 RoundEngine 發生
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from schemas import BalanceResponse
from core.round_engine import RoundEngine, get_round_engine

router = APIRouter(prefix="/api/ledger", tags=["ledger"])


@router.get("/{identity}", response_model=BalanceResponse)
def get_balance(
    identity: str,
    db: Session = Depends(get_db),
    engine: RoundEngine = Depends(get_round_engine)
):
    """查詢某個身分累計收到的獎金（沒有紀錄回傳 0）"""
    return BalanceResponse(identity=identity, balance=engine.ledger.get_balance(db, identity))
