"""
隨機來源：產生回合的目標數字

注意：這不是密碼學安全的亂數。種子來自時間與執行環境的資訊，
只求參與者無法事先預測
"""
import hashlib
import os
import time
from typing import Protocol

from core.constants import MIN_GUESS, MAX_GUESS


class RandomnessSource(Protocol):
    def draw(self, context: str) -> int:
        """回傳一個大整數，context 是呼叫端提供的回合資訊（會混進種子）"""
        ...


class EntropyRandomness:
    """用時間戳記 + process 資訊 + 回合資訊雜湊出亂數"""

    def draw(self, context: str) -> int:
        seed = f"{time.time_ns()}|{time.perf_counter_ns()}|{os.getpid()}|{context}"
        digest = hashlib.sha256(seed.encode("utf-8")).hexdigest()
        return int(digest, 16)


def derive_target_number(raw: int) -> int:
    """
    把亂數限制到 [MIN_GUESS, MAX_GUESS]

    公式：(raw mod 範圍大小) + MIN_GUESS

    範例：
        derive_target_number(0) -> 1
        derive_target_number(8) -> 9
        derive_target_number(9) -> 1
    """
    span = MAX_GUESS - MIN_GUESS + 1
    return (raw % span) + MIN_GUESS
