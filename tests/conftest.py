import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
import models  # noqa: F401  (register tables)
from core.round_engine import RoundEngine
from services.ledger_service import DatabaseLedger


class SequenceRandomness:
    """Returns the given raw values in order, repeating the last one."""

    def __init__(self, *raw_values):
        self.raw_values = list(raw_values)
        self.contexts = []

    def draw(self, context):
        self.contexts.append(context)
        if len(self.raw_values) > 1:
            return self.raw_values.pop(0)
        return self.raw_values[0]


def randomness_for_targets(*targets):
    # target = raw % 9 + 1
    return SequenceRandomness(*[t - 1 for t in targets])


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def ledger():
    return DatabaseLedger()


@pytest.fixture
def randomness():
    # first round target 7, every later round target 3
    return randomness_for_targets(7, 3)


@pytest.fixture
def lottery(db, randomness, ledger):
    engine = RoundEngine(randomness=randomness, ledger=ledger)
    engine.open_round(db, "owner")
    return engine
