from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from core.constants import REGISTRATION_FEE, MAX_ATTEMPTS
from core.round_engine import RoundEngine
from models import ParticipantRecord, WinnerEntry
from services.ledger_service import DatabaseLedger
from tests.conftest import randomness_for_targets

PLAYERS = 30


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'lottery.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def test_parallel_players_are_serialized(session_factory):
    lottery = RoundEngine(randomness=randomness_for_targets(7), ledger=DatabaseLedger())
    db = session_factory()
    lottery.open_round(db, "owner")
    db.close()

    def play(i):
        # one session per thread, like one request per worker
        session = session_factory()
        try:
            participant = f"0x{i:040x}"
            lottery.register(session, participant, REGISTRATION_FEE)
            for _ in range(MAX_ATTEMPTS):
                lottery.submit_guess(session, participant, 7)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=10) as pool:
        futures = [pool.submit(play, i) for i in range(PLAYERS)]
    errors = [f.exception() for f in futures if f.exception() is not None]
    assert errors == []

    db = session_factory()
    try:
        round_obj = lottery.get_round(db)
        assert round_obj.pool == PLAYERS * REGISTRATION_FEE
        assert len(round_obj.participants) == PLAYERS
        assert len(round_obj.winners) == PLAYERS * MAX_ATTEMPTS
        assert sorted(w.position for w in round_obj.winners) == list(range(PLAYERS * MAX_ATTEMPTS))

        assert lottery.settle_round(db) == PLAYERS * MAX_ATTEMPTS

        round_obj = lottery.get_round(db)
        assert round_obj.pool == 0
        assert db.query(ParticipantRecord).count() == 0
        assert db.query(WinnerEntry).count() == 0
        # two winning entries per player, each worth half a fee
        assert lottery.ledger.get_balance(db, f"0x{0:040x}") == REGISTRATION_FEE
    finally:
        db.close()
