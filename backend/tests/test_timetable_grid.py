import pytest

from app.core.exceptions import SchedulerError
from app.services.timetable_grid import Slot, TimetableGrid, slot_key


def test_new_grid_is_empty_and_rectangular():
    grid = TimetableGrid(5, 4)
    assert len(grid) == 20
    assert all(grid.is_free(day, period) for day, period in grid.cells())
    assert grid.flatten() == []


def test_grid_rejects_non_positive_dimensions():
    with pytest.raises(SchedulerError):
        TimetableGrid(5, 0)


def test_seed_locked_marks_cells_and_keeps_slot():
    grid = TimetableGrid(5, 3)
    seeded = grid.seed_locked([Slot(day=1, period=2, course_id=7, is_locked=False, cohort_id=4)])
    assert seeded == 1
    assert grid.is_locked(1, 2)
    assert not grid.is_free(1, 2)
    assert grid.flatten() == [Slot(day=1, period=2, course_id=7, is_locked=True, cohort_id=4)]


def test_seed_locked_drops_out_of_range_slots(caplog):
    grid = TimetableGrid(5, 3)
    seeded = grid.seed_locked([
        Slot(day=5, period=0, course_id=1, is_locked=True),
        Slot(day=0, period=3, course_id=2, is_locked=True),
        Slot(day=-1, period=0, course_id=3, is_locked=True),
        Slot(day=0, period=0, course_id=4, is_locked=True),
    ])
    assert seeded == 1
    assert [slot.course_id for slot in grid.flatten()] == [4]
    assert "Dropping locked slot" in caplog.text


def test_locked_slot_without_course_blocks_cell_but_is_not_emitted():
    grid = TimetableGrid(5, 2)
    grid.seed_locked([Slot(day=0, period=0, course_id=None, is_locked=True)])
    assert not grid.is_free(0, 0)
    assert grid.flatten() == []


def test_place_refuses_occupied_cells():
    grid = TimetableGrid(5, 2)
    grid.place(0, 1, 11)
    with pytest.raises(SchedulerError):
        grid.place(0, 1, 12)
    assert grid.course_at(0, 1) == 11


def test_daily_count_scans_one_day_only():
    grid = TimetableGrid(5, 4)
    grid.place(2, 0, 9)
    grid.place(2, 3, 9)
    grid.place(3, 0, 9)
    assert grid.daily_count(2, 9) == 2
    assert grid.daily_count(3, 9) == 1
    assert grid.daily_count(1, 9) == 0


def test_flatten_is_row_major():
    grid = TimetableGrid(5, 3)
    grid.place(4, 0, 1)
    grid.place(0, 2, 2)
    grid.place(0, 1, 3)
    grid.seed_locked([Slot(day=2, period=1, course_id=4, is_locked=True)])
    assert [(slot.day, slot.period) for slot in grid.flatten()] == [(0, 1), (0, 2), (2, 1), (4, 0)]


def test_slot_key_format():
    assert slot_key(3, 7) == "3-7"
    assert Slot(day=0, period=4).key == "0-4"
