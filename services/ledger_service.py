"""
帳本服務：收取報名費、發放獎金

RoundEngine 只依賴 ValueLedger 介面。DatabaseLedger 把餘額與流水帳寫在
和回合狀態同一個 SQLAlchemy session 裡，所以結算失敗時，
同一次結算已經轉出的獎金也會一起 rollback
"""
import logging
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from models import LedgerAccount, LedgerEntry, LedgerDirection
from core.exceptions import TransferFailed

logger = logging.getLogger(__name__)


class ValueLedger(Protocol):
    def receive(self, db: Session, identity: str, amount: int,
                round_number: Optional[int] = None) -> None:
        ...

    def transfer(self, db: Session, identity: str, amount: int,
                 round_number: Optional[int] = None) -> None:
        """把 amount 轉給 identity；無法送達時拋出 TransferFailed"""
        ...


class DatabaseLedger:
    """以資料庫保存的帳本（只 add / flush，commit 由呼叫端負責）"""

    def receive(self, db: Session, identity: str, amount: int,
                round_number: Optional[int] = None) -> None:
        """
        記錄一筆報名費收入

        參數：
            db: SQLAlchemy Session
            identity: 付款的玩家
            amount: 金額（wei）
            round_number: 所屬回合
        """
        db.add(LedgerEntry(
            identity=identity,
            direction=LedgerDirection.IN,
            amount=amount,
            round_number=round_number
        ))

    def transfer(self, db: Session, identity: str, amount: int,
                 round_number: Optional[int] = None) -> None:
        """
        發放獎金給某個身分

        流程：
        1. 取得（或建立）收款帳戶
        2. 帳戶拒收就中止
        3. 增加餘額並記錄一筆支出

        異常：
            TransferFailed: 收款帳戶拒收（accepts_payments = False）
        """
        account = self._get_or_create_account(db, identity)
        if not account.accepts_payments:
            raise TransferFailed(identity, amount)

        account.balance = account.balance + amount
        db.add(LedgerEntry(
            identity=identity,
            direction=LedgerDirection.OUT,
            amount=amount,
            round_number=round_number
        ))
        logger.info(f"Transferred {amount} to {identity} (round {round_number})")

    def get_balance(self, db: Session, identity: str) -> int:
        """累計收到的獎金，沒有帳戶時回傳 0"""
        account = db.get(LedgerAccount, identity)
        return account.balance if account else 0

    def set_accepts_payments(self, db: Session, identity: str, accepts: bool) -> None:
        """
        收款開關：設定帳戶是否接受轉帳

        對應鏈上「收款方拒收」的情況。關閉後，結算轉給此帳戶時會拋出
        TransferFailed，整個結算 rollback。由帳戶持有者的整合端呼叫，
        不屬於 RoundEngine 的操作，也不提供 HTTP route（沒有管理員覆寫功能）

        參數：
            db: SQLAlchemy Session
            identity: 帳戶身分
            accepts: False 表示拒收

        注意：
            只 flush，不 commit（交由呼叫端處理）
        """
        account = self._get_or_create_account(db, identity)
        account.accepts_payments = accepts
        db.flush()

    @staticmethod
    def _get_or_create_account(db: Session, identity: str) -> LedgerAccount:
        account = db.get(LedgerAccount, identity)
        if account is None:
            account = LedgerAccount(identity=identity, balance=0, accepts_payments=True)
            db.add(account)
            db.flush()
        return account
