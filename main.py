from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from database import Base, engine, SessionLocal, get_settings
from api import lottery, ledger
from core.round_engine import get_round_engine
from core.exceptions import RoundAlreadyOpen

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def ensure_round_open() -> None:
    """第一次啟動時建立回合；之後回合靠結算自行循環"""
    db = SessionLocal()
    try:
        get_round_engine().open_round(db, settings.owner_address)
    except RoundAlreadyOpen:
        logger.info("Lottery round already exists, resuming")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: 在應用啟動時建立資料庫表並確保有回合
    Base.metadata.create_all(bind=engine)
    ensure_round_open()
    yield


app = FastAPI(
    title="Guessing Lottery API",
    description="Backend API for a repeatable fixed-fee number guessing lottery",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure this properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(lottery.router)
app.include_router(ledger.router)


@app.get("/")
def root():
    return {"message": "Guessing Lottery API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
