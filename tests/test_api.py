import json
from pathlib import Path

from stopboard.app import create_app
from stopboard.config import load_system
from stopboard.store import TransitStore

SYSTEM_JSON = Path(__file__).with_name("system.json")


def load_app(**kwargs):
    store = TransitStore(load_system(str(SYSTEM_JSON)))
    kwargs.setdefault("cors_origins", ["http://allowed.test"])
    return create_app(store, **kwargs), store


def post_update(client, body):
    return client.post("/update", data=json.dumps(body), content_type="application/json")


def test_info_returns_whole_system():
    app, _ = load_app()
    resp = app.test_client().get("/info")
    assert resp.status_code == 200
    assert resp.get_json() == json.loads(SYSTEM_JSON.read_text(encoding="utf-8"))


def test_stop_info():
    app, _ = load_app()
    resp = app.test_client().get("/stop?id=harbor")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["id"] == "harbor"
    assert data["lines"][0]["b"]["times"] == [1, 11, 21]
    assert data["lines"][1] == {}


def test_stop_requires_exactly_one_id(monkeypatch):
    app, store = load_app()

    def no_lock():
        raise AssertionError("lock taken for a bad request")

    monkeypatch.setattr(store.lock, "read", no_lock)
    client = app.test_client()

    resp = client.get("/stop")
    assert resp.status_code == 400
    assert resp.get_data(as_text=True) == "400 Bad Request: Missing stop ID\n"

    resp = client.get("/stop?id=tee&id=harbor")
    assert resp.status_code == 400
    assert resp.get_data(as_text=True) == "400 Bad Request: Missing stop ID\n"


def test_unknown_stop():
    app, _ = load_app()
    resp = app.test_client().get("/stop?id=nowhere")
    assert resp.status_code == 400
    assert resp.get_data(as_text=True) == "400 Bad Request: Invalid stop id (nowhere)\n"
    assert resp.mimetype == "text/plain"


def test_update_then_read_back():
    app, _ = load_app()
    client = app.test_client()

    resp = post_update(
        client, {"stops": [{"stationID": "tee", "lines": [{"lineID": "sh", "index": 0, "times": [3, 12, 27]}]}]}
    )
    assert resp.status_code == 200
    assert resp.get_data(as_text=True) == ""

    data = client.get("/stop?id=tee").get_json()
    assert data["lines"][0]["sh"]["times"] == [3, 12, 27]

    resp = post_update(
        client, {"stops": [{"stationID": "tee", "lines": [{"lineID": "sh", "index": 5, "times": [1]}]}]}
    )
    assert resp.status_code == 400
    assert resp.get_data(as_text=True) == "400 Bad Request: Line index out of bounds\n"

    data = client.get("/stop?id=tee").get_json()
    assert data["lines"][0]["sh"]["times"] == [3, 12, 27]


def test_rejected_update_messages(caplog):
    app, _ = load_app()
    client = app.test_client()

    resp = post_update(client, {"stops": [{"stationID": "ghost", "lines": []}]})
    assert resp.get_data(as_text=True) == "400 Bad Request: Invalid station ID\n"

    resp = post_update(
        client, {"stops": [{"stationID": "harbor", "lines": [{"lineID": "b", "index": 1, "times": []}]}]}
    )
    assert resp.status_code == 400
    assert resp.get_data(as_text=True) == "400 Bad Request: Invalid line ID\n"
    assert "Rejected update" in caplog.text


def test_partial_envelope_is_not_applied():
    app, _ = load_app()
    client = app.test_client()

    resp = post_update(
        client,
        {
            "stops": [
                {"stationID": "harbor", "lines": [{"lineID": "b", "index": 0, "times": [2]}]},
                {"stationID": "tee", "lines": [{"lineID": "r", "index": 2, "times": [2]}]},
            ]
        },
    )
    assert resp.status_code == 400
    data = client.get("/stop?id=harbor").get_json()
    assert data["lines"][0]["b"]["times"] == [1, 11, 21]


def test_update_requires_post():
    app, _ = load_app()
    resp = app.test_client().get("/update")
    assert resp.status_code == 400
    assert resp.mimetype == "text/html"
    assert "must be sent as a <code>POST</code>" in resp.get_data(as_text=True)


def test_update_with_unreadable_body():
    app, _ = load_app()
    client = app.test_client()

    deep = "{\"stops\": " + "[" * 100000 + "]" * 100000 + "}"
    nan = "{\"stops\": [{\"stationID\": \"tee\", \"lines\": [{\"lineID\": \"sh\", \"times\": [NaN]}]}]}"
    for body in ["{\"stops\": [", "", "[1, 2]", deep, nan, "{\"stops\": [{\"stationID\": \"tee\", \"lines\": [{\"index\": \"0\"}]}]}"]:
        resp = client.post("/update", data=body, content_type="application/json")
        assert resp.status_code == 400
        assert "could not be read" in resp.get_data(as_text=True)


def test_update_with_null_body_is_a_no_op():
    app, _ = load_app()
    resp = app.test_client().post("/update", data="null", content_type="application/json")
    assert resp.status_code == 200


def test_missing_static_page(tmp_path):
    app, _ = load_app(static_dir=str(tmp_path))
    resp = app.test_client().get("/update")
    assert resp.status_code == 500
    assert resp.get_data(as_text=True) == "500 Internal Server Error\n"


def test_serialization_failure(monkeypatch):
    app, store = load_app()
    monkeypatch.setattr(store, "system_snapshot", lambda: {"name": object()})

    resp = app.test_client().get("/info")
    assert resp.status_code == 500
    assert resp.get_data(as_text=True) == "Internal Server Error\n"


def test_cors_allow_deny():
    app, _ = load_app()
    client = app.test_client()

    resp = client.get("/info", headers={"Origin": "http://allowed.test"})
    assert resp.headers.get("Access-Control-Allow-Origin") == "http://allowed.test"

    resp = client.get("/info", headers={"Origin": "http://blocked.test"})
    assert "Access-Control-Allow-Origin" not in resp.headers


def test_cors_origins_from_env(monkeypatch):
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "http://board.test")
    app, _ = load_app(cors_origins=None)
    resp = app.test_client().get("/info", headers={"Origin": "http://board.test"})
    assert resp.headers.get("Access-Control-Allow-Origin") == "http://board.test"


def test_preflight_and_security_headers():
    app, _ = load_app()
    client = app.test_client()

    resp = client.options("/update", headers={"Origin": "http://allowed.test"})
    assert resp.status_code == 204
    assert "POST" in resp.headers["Access-Control-Allow-Methods"]

    resp = client.get("/stop?id=tee")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_queries_answer_any_method():
    app, _ = load_app()
    client = app.test_client()

    resp = client.post("/info")
    assert resp.status_code == 200
    assert resp.get_json()["name"] == "Lakeside Transit"

    resp = client.put("/stop?id=tee")
    assert resp.status_code == 200
    assert resp.get_json()["id"] == "tee"
