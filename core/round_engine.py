"""
Round Engine：管理樂透回合的完整生命週期

職責：
1. 開局（抽目標數字、記錄 owner）
2. 報名（收取固定報名費）
3. 猜測（每人每回合最多 MAX_ATTEMPTS 次）
4. 結算（平分獎金池、快照得獎者、重置回合）
5. 查詢上一次結算的得獎者

原則：
- 先檢查所有前置條件，全部通過才修改狀態
- 每個操作都是 @serialized + @transactional：要嘛全部生效，要嘛什麼都沒發生
- 外部協作者（亂數、帳本）由建構子注入，方便測試
"""
from functools import lru_cache
from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import (
    LotteryRound,
    ParticipantRecord,
    WinnerEntry,
    PreviousWinner,
    RoundStatus,
    EventType,
)
from core.constants import REGISTRATION_FEE, MAX_ATTEMPTS, MIN_GUESS, MAX_GUESS
from core.exceptions import (
    RoundNotFound,
    RoundAlreadyOpen,
    InactiveRound,
    WrongFeeAmount,
    AlreadyRegistered,
    NotRegistered,
    MaxAttemptsExceeded,
    GuessOutOfRange,
    NoWinnersToSettle,
)
from core.locks import serialized, with_round_lock
from core.state_machine import RoundStateMachine
from services.randomness_service import RandomnessSource, EntropyRandomness, derive_target_number
from services.ledger_service import ValueLedger, DatabaseLedger
from services.prize_service import split_pool
from services.event_service import record_event
from database import transactional

logger = logging.getLogger(__name__)


class RoundEngine:
    """樂透回合狀態機"""

    def __init__(self, randomness: RandomnessSource, ledger: ValueLedger):
        self.randomness = randomness
        self.ledger = ledger

    # ---------- Round lifecycle ----------

    @serialized
    @transactional
    def open_round(self, db: Session, owner: str) -> LotteryRound:
        """
        建立回合（整個系統只建立一次，之後靠結算重置循環）

        流程：
        1. 確認尚未有回合
        2. 抽目標數字
        3. 建立回合（active、pool = 0）
        4. 記錄事件

        參數：
            db: SQLAlchemy Session
            owner: 建立者身分（僅供顯示，沒有任何操作限定 owner）

        返回：
            新建立的 LotteryRound

        異常：
            RoundAlreadyOpen: 已經有回合了
        """
        existing = with_round_lock(db).first()
        if existing:
            raise RoundAlreadyOpen(existing.round_number)

        round_obj = LotteryRound(
            round_number=1,
            owner=owner,
            status=RoundStatus.OPEN,
            pool=0,
            target_number=self._draw_target(owner, 1)
        )
        db.add(round_obj)
        try:
            db.flush()
        except IntegrityError:
            # 另一個 process 搶先建立了回合（空表時 FOR UPDATE 鎖不到任何列）
            raise RoundAlreadyOpen()

        record_event(db, EventType.ROUND_OPENED, round_obj.round_number, owner=owner)
        logger.info(f"Opened lottery round {round_obj.round_number} (owner={owner})")

        return round_obj

    @serialized
    @transactional
    def register(self, db: Session, participant: str, paid_amount: int) -> None:
        """
        報名本回合

        前置條件（依序檢查，第一個失敗就中止，不保留任何費用）：
        1. 回合是 active
        2. paid_amount 必須剛好等於 REGISTRATION_FEE
        3. 玩家本回合尚未報名

        效果：
        - 帳本收下報名費
        - 建立 ParticipantRecord（attempt_count = 0）
        - 獎金池增加 paid_amount

        異常：
            RoundNotFound, InactiveRound, WrongFeeAmount, AlreadyRegistered
        """
        round_obj = self._lock_round(db)

        if not round_obj.active:
            raise InactiveRound()

        if paid_amount != REGISTRATION_FEE:
            raise WrongFeeAmount(paid_amount, REGISTRATION_FEE)

        record = self._find_record(db, round_obj, participant)
        if record is not None and record.registered:
            raise AlreadyRegistered(participant)

        self.ledger.receive(db, participant, paid_amount, round_number=round_obj.round_number)

        round_obj.participants.append(
            ParticipantRecord(participant=participant, attempt_count=0, registered=True)
        )
        round_obj.pool = round_obj.pool + paid_amount

        record_event(
            db, EventType.PLAYER_REGISTERED, round_obj.round_number,
            participant=participant
        )
        logger.info(
            f"Participant {participant} registered for round {round_obj.round_number} "
            f"(pool={round_obj.pool})"
        )

    @serialized
    @transactional
    def submit_guess(self, db: Session, participant: str, guess: int) -> None:
        """
        提交一次猜測

        前置條件（依序）：
        1. 回合是 active
        2. 玩家已報名
        3. attempt_count < MAX_ATTEMPTS
        4. MIN_GUESS <= guess <= MAX_GUESS

        效果：
        - attempt_count + 1
        - 猜中的話加入 winners（不回傳結果給呼叫者）

        注意：
            同一位玩家兩次都猜中會在 winners 出現兩次，結算時也會拿兩份獎金

        異常：
            RoundNotFound, InactiveRound, NotRegistered,
            MaxAttemptsExceeded, GuessOutOfRange
        """
        round_obj = self._lock_round(db)

        if not round_obj.active:
            raise InactiveRound()

        record = self._find_record(db, round_obj, participant)
        if record is None or not record.registered:
            raise NotRegistered(participant)

        if record.attempt_count >= MAX_ATTEMPTS:
            raise MaxAttemptsExceeded(participant, MAX_ATTEMPTS)

        if not MIN_GUESS <= guess <= MAX_GUESS:
            raise GuessOutOfRange(guess, MIN_GUESS, MAX_GUESS)

        record.attempt_count += 1
        record_event(
            db, EventType.GUESS_SUBMITTED, round_obj.round_number,
            participant=participant, guess=guess
        )

        if guess == round_obj.target_number:
            already_won = any(w.participant == participant for w in round_obj.winners)
            if already_won:
                logger.warning(
                    f"Participant {participant} guessed correctly again in round "
                    f"{round_obj.round_number}; it will be paid twice"
                )

            round_obj.winners.append(
                WinnerEntry(position=len(round_obj.winners), participant=participant)
            )
            record_event(
                db, EventType.WINNER_ADDED, round_obj.round_number,
                participant=participant
            )

        logger.info(
            f"Participant {participant} submitted guess "
            f"{record.attempt_count}/{MAX_ATTEMPTS} in round {round_obj.round_number}"
        )

    @serialized
    @transactional
    def settle_round(self, db: Session) -> int:
        """
        結算回合並重置

        前置條件：
        1. 回合是 active
        2. winners 不是空的（否則什麼都不改，回合繼續開放）

        流程：
        1. OPEN -> SETTLING
        2. prize = pool // len(winners)，依 winners 順序逐筆轉帳
        3. 快照 winners 到 PreviousWinner（取代舊快照）
        4. 重置：pool = 0、新目標數字、清空報名與 winners、round_number + 1
        5. SETTLING -> OPEN

        任何一筆轉帳失敗（TransferFailed）整個結算 rollback，
        已經轉出的金額也一起撤銷

        返回：
            得獎紀錄數（同一人兩次猜中算兩筆）

        異常：
            RoundNotFound, InactiveRound, NoWinnersToSettle, TransferFailed
        """
        round_obj = self._lock_round(db)

        if not round_obj.active:
            raise InactiveRound()

        winners = [w.participant for w in round_obj.winners]
        if not winners:
            raise NoWinnersToSettle()

        RoundStateMachine.transition(round_obj, RoundStatus.SETTLING)

        settled_round = round_obj.round_number
        prize_per_winner, remainder = split_pool(round_obj.pool, len(winners))

        for winner in winners:
            self.ledger.transfer(db, winner, prize_per_winner, round_number=settled_round)

        self._snapshot_winners(db, settled_round, winners)

        record_event(
            db, EventType.PRIZES_DISTRIBUTED, settled_round,
            prize_per_winner=prize_per_winner,
            winner_count=len(winners),
            remainder=remainder
        )
        logger.info(
            f"Round {settled_round} settled: {len(winners)} winner(s), "
            f"{prize_per_winner} each, {remainder} undistributed"
        )

        self._reset(round_obj)
        record_event(db, EventType.ROUND_RESET, round_obj.round_number)

        return len(winners)

    # ---------- Queries ----------

    def get_previous_winners(self, db: Session) -> List[str]:
        """上一次結算的得獎者（原始順序，可能有重複）"""
        rows = db.query(PreviousWinner).order_by(PreviousWinner.position).all()
        return [row.participant for row in rows]

    def get_previous_round_number(self, db: Session) -> Optional[int]:
        row = db.query(PreviousWinner).first()
        return row.round_number if row else None

    def get_round(self, db: Session) -> LotteryRound:
        round_obj = db.query(LotteryRound).order_by(LotteryRound.id).first()
        if not round_obj:
            raise RoundNotFound()
        return round_obj

    def get_participant(self, db: Session, participant: str) -> Optional[ParticipantRecord]:
        return self._find_record(db, self.get_round(db), participant)

    # ---------- helpers ----------

    def _lock_round(self, db: Session) -> LotteryRound:
        round_obj = with_round_lock(db).first()
        if not round_obj:
            raise RoundNotFound()
        return round_obj

    @staticmethod
    def _find_record(db: Session, round_obj: LotteryRound, participant: str) -> Optional[ParticipantRecord]:
        return db.query(ParticipantRecord).filter(
            ParticipantRecord.round_id == round_obj.id,
            ParticipantRecord.participant == participant
        ).first()

    def _draw_target(self, owner: str, round_number: int, participant_count: int = 0) -> int:
        raw = self.randomness.draw(f"{owner}|{round_number}|{participant_count}")
        return derive_target_number(raw)

    @staticmethod
    def _snapshot_winners(db: Session, round_number: int, winners: List[str]) -> None:
        db.query(PreviousWinner).delete()
        for position, participant in enumerate(winners):
            db.add(PreviousWinner(
                round_number=round_number,
                position=position,
                participant=participant
            ))

    def _reset(self, round_obj: LotteryRound) -> None:
        participant_count = len(round_obj.participants)

        round_obj.participants.clear()
        round_obj.winners.clear()
        round_obj.pool = 0
        round_obj.round_number += 1
        round_obj.target_number = self._draw_target(
            round_obj.owner, round_obj.round_number, participant_count
        )

        RoundStateMachine.transition(round_obj, RoundStatus.OPEN)
        logger.info(f"Round reset, now accepting entries for round {round_obj.round_number}")


@lru_cache()
def get_round_engine() -> RoundEngine:
    """FastAPI dependency：整個 process 共用同一個 RoundEngine"""
    return RoundEngine(randomness=EntropyRandomness(), ledger=DatabaseLedger())
