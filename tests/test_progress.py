from progress import (
    reset,
    set_candidates,
    set_done,
    set_placed,
    set_solutions_found,
    snapshot,
    start_run,
)


def test_set_done_no_args_defaults_to_solved():
    reset()
    set_done()
    snap = snapshot()
    assert snap["status"] == "Solved"
    assert snap["percent"] == 100.0
    assert snap["done"] is True
    assert snap["ok"] is True


def test_set_done_failure_records_reason():
    reset()
    start_run("solve")
    set_done(False, reason="boom")
    snap = snapshot()
    assert snap["status"] == "Error"
    assert snap["message"] == "boom"
    assert snap["done"] is True
    assert snap["ok"] is False


def test_reset_increments_run_identifier():
    reset()
    first = snapshot()["run_id"]
    reset()
    second = snapshot()["run_id"]
    assert isinstance(first, int)
    assert second == first + 1


def test_start_run_marks_mode_and_status():
    reset()
    start_run("fits")
    snap = snapshot()
    assert snap["mode"] == "fits"
    assert snap["status"] == "Solving"
    assert snap["done"] is False


def test_set_placed_tracks_depth_percentage():
    reset()
    set_placed(3, 4)
    snap = snapshot()
    assert snap["placed_count"] == 3
    assert snap["total_pieces"] == 4
    assert snap["percent"] == 75.0


def test_setters_tolerate_bad_values():
    reset()
    set_placed("x", None)
    set_solutions_found("many")
    snap = snapshot()
    assert snap["placed_count"] == 0
    assert snap["percent"] == 0.0
    assert snap["solutions_found"] == 0


def test_snapshot_copies_fitting_list():
    reset()
    set_candidates(2, 4, ["a"])
    snap = snapshot()
    snap["fitting"].append("tampered")
    again = snapshot()
    assert again["fitting"] == ["a"]
    assert again["percent"] == 50.0
    assert "elapsed_start" not in again
    assert again["elapsed_str"].endswith("s")
