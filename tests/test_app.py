import pytest

import app as app_module


@pytest.fixture
def client():
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as c:
        yield c


def test_pieces_lists_builtin_catalogue(client):
    resp = client.get("/pieces")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["gridSize"] == 9
    ids = [p["id"] for p in data["pieces"]]
    assert "normal_I" in ids
    normal_i = next(p for p in data["pieces"] if p["id"] == "normal_I")
    assert normal_i["shape"] == [[1, 1, 1, 1]]
    assert normal_i["cells"] == 4


def test_solve_four_i_pieces(client):
    payload = {
        "pieces": [{"id": f"I{i}", "shapeName": "normal_I", "atk": 10, "hp": 1} for i in range(4)],
        "timeoutMs": 5000,
    }
    resp = client.post("/solve", json=payload)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["ok"] is True
    assert data["status"] == "solved"
    assert len(data["solutions"]) == 1
    sol = data["solutions"][0]
    assert [p["pieceId"] for p in sol["placements"]] == ["I0", "I1", "I2", "I3"]
    assert sol["totalScore"] == {"atk": 40.0, "hp": 4.0}
    assert len(data["grid"]) == 9
    assert data["grid"][0][:4] == ["I0"] * 4

    snap = client.get("/progress").get_json()
    assert snap["mode"] == "solve"
    assert snap["status"] == "Solved"
    assert snap["solutions_found"] == 1


def test_solve_enumerate_returns_several(client):
    payload = {"pieces": [{"id": "a", "shape": [[1]]}], "enumerate": True, "timeoutMs": 5000}
    data = client.post("/solve", json=payload).get_json()
    assert len(data["solutions"]) == 5


def test_solve_oversize_piece_is_not_an_error(client):
    payload = {"pieces": [{"id": "bar", "shape": [[1] * 10]}], "timeoutMs": 5000}
    resp = client.post("/solve", json=payload)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["ok"] is False
    assert data["status"] == "unsolvable"
    assert data["solutions"] == []
    assert data["grid"] is None


def test_solve_with_nothing_selected(client):
    payload = {"pieces": ["normal_I"], "selected": []}
    data = client.post("/solve", json=payload).get_json()
    assert data["status"] == "no_pieces"
    assert data["ok"] is False


def test_solve_rejects_bad_pieces(client):
    resp = client.post("/solve", json={"pieces": ["not_a_shape"]})
    assert resp.status_code == 400
    assert "unknown shape" in resp.get_json()["message"]

    snap = client.get("/progress").get_json()
    assert snap["status"] == "Error"


def test_fits_requires_selection(client):
    resp = client.post("/fits", json={"pieces": ["normal_O"]})
    assert resp.status_code == 400


def test_fits_reports_candidates_that_still_fit(client):
    payload = {
        "pieces": [
            "legendary_square",
            "normal_O",
            {"id": "bar", "shape": [[1] * 10]},
            {"id": "locked", "shapeName": "normal_I", "enabled": False},
        ],
        "selected": ["legendary_square"],
        "timeoutMs": 2000,
    }
    resp = client.post("/fits", json=payload)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["fitting"] == ["normal_O"]
    assert data["tested"] == 2

    snap = client.get("/progress").get_json()
    assert snap["mode"] == "fits"
    assert snap["fitting"] == ["normal_O"]
    assert snap["candidates_tested"] == 2


def test_progress_is_never_cached(client):
    resp = client.get("/progress")
    assert resp.headers["Cache-Control"] == "no-store, max-age=0"
    assert "run_id" in resp.get_json()


@pytest.mark.parametrize("route, body", [
    ("/solve", '{"pieces": ["normal_I"], "timeoutMs": 1e999}'),
    ("/solve", '{"pieces": ["normal_I"], "maxSolutions": -1e999}'),
    ("/fits", '{"pieces": ["normal_I", "normal_O"], "selected": ["normal_I"], "timeoutMs": 1e999}'),
])
def test_overflowing_numbers_fall_back_to_defaults(client, route, body):
    resp = client.post(route, data=body, content_type="application/json")
    assert resp.status_code == 200

    snap = client.get("/progress").get_json()
    assert snap["done"] is True
    assert snap["status"] != "Solving"


@pytest.mark.parametrize("selected", [["ghost"], ["locked"]])
def test_fits_rejects_unknown_or_locked_selection(client, selected):
    payload = {
        "pieces": ["normal_O", {"id": "locked", "shapeName": "normal_I", "enabled": False}],
        "selected": selected,
    }
    resp = client.post("/fits", json=payload)
    assert resp.status_code == 400
    assert selected[0] in resp.get_json()["message"]

    snap = client.get("/progress").get_json()
    assert snap["status"] == "Error"
    assert snap["done"] is True
