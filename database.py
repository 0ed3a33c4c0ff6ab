from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings
from functools import lru_cache, wraps
import logging

from core.exceptions import LotteryException

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./lottery.db"
    owner_address: str = "owner"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()

# SQLite 需要特殊設定：connect_args={"check_same_thread": False}
# 這允許多執行緒存取同一個 SQLite 連線（FastAPI 的多執行緒環境需要）
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
    pool_pre_ping=True
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """
    FastAPI dependency：提供 Database Session

    使用 yield 確保 session 在請求結束後會被關閉
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _find_session(args, kwargs):
    if 'db' in kwargs and isinstance(kwargs['db'], Session):
        return kwargs['db']
    for arg in args:
        if isinstance(arg, Session):
            return arg
    return None


def transactional(func):
    """
    Transaction decorator：確保一次操作的所有效果一起 commit 或一起 rollback

    使用方式：
        class RoundEngine:
            @transactional
            def register(self, db: Session, participant, paid_amount):
                # 所有 DB 操作（含 ledger 轉帳）都在同一個 transaction 內
                ...

    如果函式內發生異常：
        - 自動 rollback（已寫入的 ledger 轉帳也一起撤銷）
        - 異常會被重新拋出（讓上層處理）

    注意：
        - 參數中必須有一個 db: Session（位置參數或 keyword 皆可）
        - 不要在函式內手動 commit（decorator 會處理）
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        db = _find_session(args, kwargs)

        if db is None:
            raise ValueError(
                f"@transactional requires a 'db: Session' argument, "
                f"but got args={args}, kwargs={kwargs}"
            )

        try:
            result = func(*args, **kwargs)
            db.commit()
            return result
        except LotteryException as e:
            # 業務規則拒絕：不需要 traceback
            logger.warning(f"{func.__name__} rejected: {e}")
            db.rollback()
            raise
        except Exception as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            db.rollback()
            raise

    return wrapper
