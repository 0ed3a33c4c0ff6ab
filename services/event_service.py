"""
事件服務：記錄與查詢回合事件

事件寫在呼叫端的 transaction 內，操作失敗時事件也一起 rollback，
所以事件紀錄只會包含真正生效的操作
"""
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from models import EventLog, EventType


def record_event(db: Session, event_type: EventType, round_number: int, **data: Any) -> EventLog:
    """
    新增一筆事件（只 add，不 commit）

    範例：
        record_event(db, EventType.PLAYER_REGISTERED, 3, participant="0xabc")
    """
    event = EventLog(
        round_number=round_number,
        event_type=event_type.value,
        data=data
    )
    db.add(event)
    return event


def get_events(db: Session, since_id: Optional[int] = None, limit: Optional[int] = None) -> List[EventLog]:
    """
    依發生順序取得事件

    參數：
        since_id: 只回傳 id 大於此值的事件（短輪詢用）
        limit: 最多回傳幾筆
    """
    query = db.query(EventLog)
    if since_id is not None:
        query = query.filter(EventLog.id > since_id)
    query = query.order_by(EventLog.id)
    if limit is not None:
        query = query.limit(limit)
    return query.all()
