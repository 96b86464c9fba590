import threading

import numpy as np

from luckyday.draw.engine import NO_CANDIDATES_NAME, DrawEngine, DrawFailure, SynchronizedDrawEngine
from luckyday.models.schema import Participant, Prize, WinningRecord


def make_participants(count):
    return [Participant(id=i + 1, name=f"User{i + 1}") for i in range(count)]


def make_prizes():
    return [
        Prize(id=1, name="一等奖", level=1, count=1),
        Prize(id=2, name="二等奖", level=2, count=3),
        Prize(id=3, name="三等奖", level=3, count=10),
    ]


def make_engine(count=20, prizes=None, seed=42):
    return DrawEngine(make_participants(count), prizes or make_prizes(), current_year=2025, seed=seed)


def _state(engine):
    return (
        sorted(p.id for p in engine.eligible_participants()),
        {k: [w.id for w in v] for k, v in engine.all_winners().items()},
        [(p.id, p.drawn_count) for p in engine.prizes()],
    )


def test_fast_path_when_pool_is_small():
    engine = DrawEngine(make_participants(2), [Prize(id=9, name="p", count=3)], current_year=2025, seed=1)
    winners, ok = engine.draw(9)
    assert ok
    assert sorted(w.id for w in winners) == [1, 2]
    assert engine.prizes()[0].drawn_count == 2
    assert engine.eligible_participants() == []


def test_sampling_draws_distinct_winners():
    engine = make_engine()
    winners, ok = engine.draw(2)
    assert ok
    ids = [w.id for w in winners]
    assert len(ids) == len(set(ids)) == 3
    eligible = {p.id for p in engine.eligible_participants()}
    assert eligible.isdisjoint(ids)
    assert len(eligible) == 17


def test_pool_and_winners_stay_disjoint():
    engine = make_engine()
    for prize_id in (1, 2, 3):
        assert engine.draw(prize_id)[1]
    won = [w.id for ws in engine.all_winners().values() for w in ws]
    eligible = [p.id for p in engine.eligible_participants()]
    assert len(won) == len(set(won)) == 14
    assert set(won).isdisjoint(eligible)
    assert len(won) + len(eligible) == 20
    for prize in engine.prizes():
        assert prize.drawn_count == len(engine.winners(prize.id)) <= prize.count


def test_partial_fill_then_top_up():
    engine = DrawEngine(make_participants(2), [Prize(id=1, name="p", count=3)], current_year=2025)
    assert engine.draw(1)[1]
    assert engine.check_draw(1) is DrawFailure.NO_ELIGIBLE_CANDIDATES
    assert engine.draw(1) == ([], False)
    engine.reset_prize(1)
    winners, ok = engine.draw(1)
    assert ok and len(winners) == 2


def test_reset_round_trip():
    engine = make_engine()
    before = sorted(p.id for p in engine.eligible_participants())
    assert engine.draw(3)[1]
    engine.reset_prize(3)
    assert sorted(p.id for p in engine.eligible_participants()) == before
    assert engine.winners(3) == []
    assert [p.drawn_count for p in engine.prizes() if p.id == 3] == [0]
    winners, ok = engine.draw(3)
    assert ok and len(winners) == 10
    assert engine.check_draw(3) is DrawFailure.PRIZE_EXHAUSTED


def test_reset_without_winners_is_noop():
    engine = make_engine()
    before = _state(engine)
    engine.reset_prize(1)
    engine.reset_prize(404)
    assert _state(engine) == before


def test_failed_draws_change_nothing():
    engine = make_engine()
    assert engine.draw(1)[1]
    before = _state(engine)

    assert engine.check_draw(404) is DrawFailure.UNKNOWN_PRIZE
    assert engine.draw(404) == ([], False)
    assert engine.check_draw(1) is DrawFailure.PRIZE_EXHAUSTED
    assert engine.draw(1) == ([], False)
    assert _state(engine) == before


def test_empty_pool_fails():
    engine = DrawEngine([], make_prizes(), current_year=2025)
    assert engine.check_draw(1) is DrawFailure.NO_ELIGIBLE_CANDIDATES
    assert engine.draw(1) == ([], False)


def test_zero_probability_falls_back_to_equal_weights():
    engine = DrawEngine(make_participants(10), [Prize(id=1, name="p", count=2, probability=0.0)], current_year=2025)
    winners, ok = engine.draw(1)
    assert ok and len(winners) == 2


def test_recent_winners_are_disadvantaged():
    veteran = Participant(id=1, name="Veteran", winning_history=[WinningRecord(year=2024, prize_level=0)])
    newcomer = Participant(id=2, name="Newcomer")
    engine = DrawEngine([veteran, newcomer], [Prize(id=1, name="p", count=1)], current_year=2025, seed=5)
    wins = 0
    for _ in range(200):
        winners, ok = engine.draw(1)
        assert ok
        wins += winners[0].id == 2
        engine.reset_prize(1)
    assert wins > 180


def test_same_seed_same_winners():
    first = make_engine(seed=11).draw(3)[0]
    second = make_engine(seed=11).draw(3)[0]
    assert [w.id for w in first] == [w.id for w in second]


def test_injected_rng_is_used():
    rng = np.random.default_rng(99)
    engine = DrawEngine(make_participants(20), make_prizes(), current_year=2025, rng=rng)
    expected = DrawEngine(make_participants(20), make_prizes(), current_year=2025, seed=99).draw(2)[0]
    assert [w.id for w in engine.draw(2)[0]] == [w.id for w in expected]


def test_accessors_return_copies():
    engine = make_engine()
    engine.eligible_participants().clear()
    engine.prizes()[0].drawn_count = 1
    engine.all_winners()[1] = make_participants(1)
    engine.winners(1).append(make_participants(1)[0])
    assert len(engine.eligible_participants()) == 20
    assert engine.prizes()[0].drawn_count == 0
    assert engine.all_winners() == {}
    assert engine.draw(1)[1]


def test_engine_does_not_share_caller_prizes():
    prizes = make_prizes()
    engine = DrawEngine(make_participants(5), prizes, current_year=2025)
    engine.draw(1)
    assert prizes[0].drawn_count == 0


def test_random_names():
    engine = make_engine(count=3)
    names = engine.random_names(30)
    assert len(names) == 30
    assert set(names) <= {"User1", "User2", "User3"}

    empty = DrawEngine([], make_prizes())
    assert empty.random_names(5) == [NO_CANDIDATES_NAME]
    assert empty.random_names(5, placeholder="No candidates") == ["No candidates"]


def test_synchronized_engine_under_threads():
    engine = SynchronizedDrawEngine(make_engine(count=100))
    results = []

    def worker(prize_id):
        results.append(engine.draw(prize_id))

    threads = [threading.Thread(target=worker, args=(pid,)) for pid in (1, 2, 3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert all(ok for _, ok in results)
    won = [w.id for winners, _ in results for w in winners]
    assert len(won) == len(set(won)) == 14
    assert len(engine.eligible_participants()) == 86
    assert engine.current_year == 2025
