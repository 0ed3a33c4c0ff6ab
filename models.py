"""
資料模型

所有金額欄位都以最小貨幣單位（wei）存放，使用 WeiAmount 以字串保存，
避免超過 64-bit 整數或被 SQLite 轉成浮點數
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    JSON,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator

from database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class WeiAmount(TypeDecorator):
    """非負整數金額，以十進位字串存放"""
    impl = String(78)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = int(value)
        if value < 0:
            raise ValueError(f"Amount cannot be negative: {value}")
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


class RoundStatus(str, enum.Enum):
    OPEN = "OPEN"          # 接受報名與猜測
    SETTLING = "SETTLING"  # 結算中（只存在於結算 transaction 內）


class EventType(str, enum.Enum):
    ROUND_OPENED = "ROUND_OPENED"
    PLAYER_REGISTERED = "PLAYER_REGISTERED"
    GUESS_SUBMITTED = "GUESS_SUBMITTED"
    WINNER_ADDED = "WINNER_ADDED"
    PRIZES_DISTRIBUTED = "PRIZES_DISTRIBUTED"
    ROUND_RESET = "ROUND_RESET"


class LedgerDirection(str, enum.Enum):
    IN = "IN"    # 報名費收入
    OUT = "OUT"  # 獎金支出


class LotteryRound(Base):
    __tablename__ = "lottery_rounds"

    id = Column(Integer, primary_key=True, index=True)
    # 固定為 1 的唯一欄位：整張表最多一列，多個 worker 同時開局只有一個會成功
    slot = Column(Integer, nullable=False, default=1, unique=True)
    round_number = Column(Integer, nullable=False, default=1)
    owner = Column(String, nullable=False)
    target_number = Column(Integer, nullable=False)
    status = Column(Enum(RoundStatus), nullable=False, default=RoundStatus.OPEN)
    pool = Column(WeiAmount, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    participants = relationship(
        "ParticipantRecord",
        back_populates="round",
        order_by="ParticipantRecord.id",
        cascade="all, delete-orphan",
    )
    winners = relationship(
        "WinnerEntry",
        back_populates="round",
        order_by="WinnerEntry.position",
        cascade="all, delete-orphan",
    )

    @property
    def active(self) -> bool:
        return self.status == RoundStatus.OPEN


class ParticipantRecord(Base):
    __tablename__ = "participant_records"
    __table_args__ = (
        UniqueConstraint("round_id", "participant", name="uq_round_participant"),
    )

    id = Column(Integer, primary_key=True, index=True)
    round_id = Column(Integer, ForeignKey("lottery_rounds.id"), nullable=False)
    participant = Column(String, nullable=False, index=True)
    attempt_count = Column(Integer, nullable=False, default=0)
    registered = Column(Boolean, nullable=False, default=True)

    round = relationship("LotteryRound", back_populates="participants")


class WinnerEntry(Base):
    """
    猜中紀錄

    同一位玩家兩次都猜中會有兩筆（position 不同）
    """
    __tablename__ = "winner_entries"

    id = Column(Integer, primary_key=True, index=True)
    round_id = Column(Integer, ForeignKey("lottery_rounds.id"), nullable=False)
    position = Column(Integer, nullable=False)
    participant = Column(String, nullable=False)

    round = relationship("LotteryRound", back_populates="winners")


class PreviousWinner(Base):
    """最近一次結算時的 winners 快照"""
    __tablename__ = "previous_winners"

    id = Column(Integer, primary_key=True, index=True)
    round_number = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False)
    participant = Column(String, nullable=False)


class EventLog(Base):
    __tablename__ = "event_logs"

    id = Column(Integer, primary_key=True, index=True)
    round_number = Column(Integer, nullable=False)
    event_type = Column(String, nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class LedgerAccount(Base):
    __tablename__ = "ledger_accounts"

    identity = Column(String, primary_key=True)
    balance = Column(WeiAmount, nullable=False, default=0)
    accepts_payments = Column(Boolean, nullable=False, default=True)


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True, index=True)
    identity = Column(String, nullable=False, index=True)
    direction = Column(Enum(LedgerDirection), nullable=False)
    amount = Column(WeiAmount, nullable=False)
    round_number = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
