import pytest

from core.exceptions import InvalidStateTransition, TransferFailed
from core.state_machine import RoundStateMachine
from models import EventType, LotteryRound, RoundStatus
from services.prize_service import split_pool
from services.randomness_service import EntropyRandomness, derive_target_number
from services.event_service import record_event, get_events


@pytest.mark.parametrize("pool,count,expected", [
    (100, 1, (100, 0)),
    (100, 3, (33, 1)),
    (40, 2, (20, 0)),
    (0, 4, (0, 0)),
])
def test_split_pool(pool, count, expected):
    assert split_pool(pool, count) == expected


def test_split_pool_requires_winners():
    with pytest.raises(ValueError):
        split_pool(100, 0)


def test_derived_target_always_in_range():
    for raw in range(0, 50):
        assert 1 <= derive_target_number(raw) <= 9


def test_entropy_randomness_yields_targets_in_range():
    source = EntropyRandomness()
    targets = {derive_target_number(source.draw(f"owner|{i}|0")) for i in range(200)}
    assert targets <= set(range(1, 10))
    assert len(targets) > 1


def test_state_machine_cycle():
    round_obj = LotteryRound(round_number=1, owner="o", target_number=1, status=RoundStatus.OPEN, pool=0)
    RoundStateMachine.transition(round_obj, RoundStatus.SETTLING)
    assert not round_obj.active
    RoundStateMachine.transition(round_obj, RoundStatus.OPEN)
    assert round_obj.active


def test_state_machine_rejects_self_transition():
    round_obj = LotteryRound(round_number=1, owner="o", target_number=1, status=RoundStatus.OPEN, pool=0)
    with pytest.raises(InvalidStateTransition):
        RoundStateMachine.transition(round_obj, RoundStatus.OPEN)


def test_ledger_transfer_and_refusal(db, ledger):
    ledger.transfer(db, "alice", 5, round_number=1)
    ledger.transfer(db, "alice", 7, round_number=1)
    assert ledger.get_balance(db, "alice") == 12

    ledger.set_accepts_payments(db, "bob", False)
    with pytest.raises(TransferFailed):
        ledger.transfer(db, "bob", 1)
    assert ledger.get_balance(db, "bob") == 0


def test_large_amounts_survive_storage(db, ledger):
    huge = 10 ** 30
    ledger.transfer(db, "whale", huge)
    db.commit()
    db.expire_all()
    assert ledger.get_balance(db, "whale") == huge


def test_events_paging(db):
    for i in range(5):
        record_event(db, EventType.GUESS_SUBMITTED, 1, participant="p", guess=i + 1)
    db.commit()

    events = get_events(db)
    assert [e.data["guess"] for e in events] == [1, 2, 3, 4, 5]
    assert [e.data["guess"] for e in get_events(db, since_id=events[1].id, limit=2)] == [3, 4]
