"""
獎金服務：計算每位得獎者的獎金

純計算邏輯，不涉及狀態轉換
"""
from typing import Tuple


def split_pool(pool: int, winner_count: int) -> Tuple[int, int]:
    """
    平分獎金池

    規則：
    - 每筆得獎紀錄拿 floor(pool / winner_count)
    - 整數除法的餘數不發放（結算後重置時歸零）
    - winner_count 是得獎「紀錄」數，同一人猜中兩次算兩筆

    參數：
        pool: 獎金池（wei）
        winner_count: 得獎紀錄數

    返回：
        (prize_per_winner, remainder)

    異常：
        ValueError: winner_count <= 0 或 pool < 0

    範例：
        split_pool(100, 3) -> (33, 1)
        split_pool(40, 2)  -> (20, 0)
    """
    if winner_count <= 0:
        raise ValueError(f"winner_count must be positive, got {winner_count}")
    if pool < 0:
        raise ValueError(f"pool cannot be negative, got {pool}")

    return divmod(pool, winner_count)
