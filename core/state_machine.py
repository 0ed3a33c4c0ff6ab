"""
回合狀態機

OPEN -> SETTLING -> OPEN

SETTLING 只存在於 settle_round 的 transaction 內部，
外部永遠只會看到 OPEN（回合在結算的同一個呼叫內就重新開放）
"""
import logging

from models import LotteryRound, RoundStatus
from core.exceptions import InvalidStateTransition

logger = logging.getLogger(__name__)


class RoundStateMachine:
    TRANSITIONS = {
        RoundStatus.OPEN: {RoundStatus.SETTLING},
        RoundStatus.SETTLING: {RoundStatus.OPEN},
    }

    @classmethod
    def can_transition(cls, current: RoundStatus, target: RoundStatus) -> bool:
        return target in cls.TRANSITIONS.get(current, set())

    @classmethod
    def transition(cls, round_obj: LotteryRound, target: RoundStatus) -> LotteryRound:
        """
        轉換回合狀態

        異常：
            InvalidStateTransition: 不允許的轉換
        """
        current = round_obj.status
        if not cls.can_transition(current, target):
            raise InvalidStateTransition(
                f"Cannot transition round {round_obj.round_number} "
                f"from {current.value} to {target.value}"
            )

        round_obj.status = target
        logger.debug(
            f"Round {round_obj.round_number}: {current.value} -> {target.value}"
        )
        return round_obj
