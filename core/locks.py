"""
並發控制工具

所有會修改回合狀態的操作都必須序列化執行：
1. Process 內：engine_lock（單一寫入者）
2. Database：SELECT ... FOR UPDATE 鎖住回合那一列（SQLite 會忽略，由 engine_lock 負責）
"""
import threading
from functools import wraps

from sqlalchemy.orm import Session, Query

from models import LotteryRound

engine_lock = threading.RLock()


def serialized(func):
    """
    讓被裝飾的操作在 engine_lock 內完整執行

    必須放在 @transactional 外層，確保 commit 也在鎖內完成：

        @serialized
        @transactional
        def register(self, db, ...):
            ...
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        with engine_lock:
            return func(*args, **kwargs)

    return wrapper


def with_round_lock(db: Session) -> Query:
    """
    鎖定目前的回合（行級鎖）

    使用場景：
    - 檢查並修改回合狀態時（報名、猜測、結算）
    - 需要確保回合在整個 transaction 期間不被其他請求修改

    範例：
        round_obj = with_round_lock(db).first()
        if not round_obj:
            raise RoundNotFound()

    參數：
        db: SQLAlchemy Session

    返回：
        Query object（需要呼叫 .first() 來取得結果）

    注意：
        - nowait=False 表示如果鎖被佔用，會等待
        - 必須在 transaction 內使用（確保有 commit 或 rollback）
    """
    return db.query(LotteryRound).order_by(
        LotteryRound.id
    ).with_for_update(nowait=False)
