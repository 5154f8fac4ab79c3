import random
from unittest.mock import MagicMock, patch

from app.services.candidate_selector import PlacementContext, legal_candidates, select_next
from app.services.slot_constraints import is_legal
from app.services.timetable_grid import Teacher, TimetableGrid


def _context(teachers=(), constraints=None, busy=None):
    return PlacementContext(teachers=tuple(teachers), teacher_constraints=constraints or {}, busy_teachers=busy or {})


def test_no_candidates_returns_none(rng):
    grid = TimetableGrid(5, 1)
    for day in range(5):
        grid.place(day, 0, 1)
    assert select_next(grid, 2, _context(), rng) is None


def test_prefers_days_with_fewer_sessions(rng):
    grid = TimetableGrid(5, 3)
    for day in range(4):
        grid.place(day, 0, 7)
    assert select_next(grid, 7, _context(), rng)[0] == 4


def test_candidates_carry_daily_count():
    grid = TimetableGrid(5, 2)
    grid.place(0, 0, 7)
    candidates = legal_candidates(grid, 7, _context())
    assert [(item.day, item.period, item.daily_count) for item in candidates[:2]] == [(0, 1, 1), (1, 0, 0)]
    assert len(candidates) == 9


def test_ties_are_broken_by_injected_random():
    grid = TimetableGrid(5, 2)
    fake_random = MagicMock()
    fake_random.choice.side_effect = lambda items: items[-1]
    assert select_next(grid, 3, _context(), fake_random) == (4, 1)
    tied = fake_random.choice.call_args[0][0]
    assert len(tied) == 10


def test_single_best_candidate_skips_random():
    grid = TimetableGrid(5, 1)
    for day in range(4):
        grid.place(day, 0, 9)
    fake_random = MagicMock()
    assert select_next(grid, 1, _context(), fake_random) == (4, 0)
    fake_random.choice.assert_not_called()


def test_same_seed_same_choice():
    grid = TimetableGrid(5, 6)
    picks_a = [select_next(grid, 1, _context(), random.Random(seed)) for seed in range(10)]
    picks_b = [select_next(grid, 1, _context(), random.Random(seed)) for seed in range(10)]
    assert picks_a == picks_b


def test_blocked_teacher_cells_are_never_selected(rng):
    teacher = Teacher(id=9, fullname="Blocked")
    grid = TimetableGrid(5, 2)
    blocked = frozenset(f"{day}-{period}" for day in range(4) for period in range(2))
    context = _context(teachers=[teacher], constraints={9: blocked})
    for _ in range(5):
        assert select_next(grid, 1, context, rng)[0] == 4


def test_days_at_daily_cap_are_skipped_without_cell_checks():
    grid = TimetableGrid(5, 6)
    for day in range(4):
        grid.place(day, 0, 7)
        grid.place(day, 1, 7)
    with patch("app.services.candidate_selector.is_legal", wraps=is_legal) as checked:
        candidates = legal_candidates(grid, 7, _context())
    assert {item.day for item in candidates} == {4}
    assert {call.args[1] for call in checked.call_args_list} == {4}
    assert all(call.kwargs["daily_count"] == 0 for call in checked.call_args_list)
