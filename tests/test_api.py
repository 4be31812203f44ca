"""HTTP surface: menu, status, sessions, cart and order submission."""

import pytest
from fastapi.testclient import TestClient

import canteen.main
from canteen.core.config import Settings
from canteen.main import create_app
from canteen.ordering.availability import AvailabilityClock
from canteen.ordering.cart import DUPLICATE_MESSAGE, CLOSED_MESSAGE
from canteen.ordering.errors import AvailabilityError, PersistenceError
from canteen.ordering.workflow import INVALID_NAME, ORDER_PLACED
from canteen.services.store.mock import MockMenuStore

from conftest import MONDAY, SUNDAY, at


def build_client(store, moment, **overrides):
    app_settings = Settings(excel_export_enabled=False, **overrides)
    clock = AvailabilityClock(store.get_opening_window, now=lambda: moment)
    return TestClient(create_app(app_settings, store=store, clock=clock))


@pytest.fixture
def client(mock_store):
    with build_client(mock_store, at(MONDAY, 12, 0)) as client:
        yield client


@pytest.fixture
def session_id(client):
    return client.post("/api/sessions").json()["session_id"]


def fill(client, session_id, item_id="optional-1"):
    client.post(f"/api/sessions/{session_id}/cart", json={"item_id": item_id})
    client.patch(
        f"/api/sessions/{session_id}/submitter",
        json={"name": "João Silva", "registration": "1234"},
    )


class TestMenu:

    def test_six_days_with_three_sections(self, client):
        body = client.get("/api/menu").json()

        assert [day["day"] for day in body["days"]] == [1, 2, 3, 4, 5, 6]
        monday = body["days"][0]
        assert monday["name"] == "Segunda-feira"
        assert monday["is_current"]
        assert [item["id"] for item in monday["optional"]] == ["optional-1"]
        assert len(monday["main"]) == len(monday["salad"]) == 1

    def test_sunday_highlights_saturday(self, mock_store):
        with build_client(mock_store, SUNDAY) as client:
            days = client.get("/api/menu").json()["days"]
        assert [day["day"] for day in days if day["is_current"]] == [6]

    def test_status(self, client):
        body = client.get("/api/status").json()
        assert body["is_open"] is True
        assert body["opening_time"] == "09:00"
        assert body["closing_time"] == "14:00"

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "operational"
        assert body["redis"] == "disabled"
        assert body["availability_clock"] == "running"


class TestSessions:

    def test_create_get_delete(self, client):
        created = client.post("/api/sessions")
        assert created.status_code == 201
        session = created.json()
        assert session["cart"] == []
        assert session["state"] == "idle"
        assert session["can_submit"] is False

        sid = session["session_id"]
        assert client.get(f"/api/sessions/{sid}").status_code == 200
        assert client.delete(f"/api/sessions/{sid}").status_code == 204
        assert client.get(f"/api/sessions/{sid}").status_code == 404

    def test_unknown_session(self, client):
        assert client.get("/api/sessions/nope").status_code == 404
        assert client.post("/api/sessions/nope/orders").status_code == 404


class TestCart:

    def test_add_and_duplicate(self, client, session_id):
        url = f"/api/sessions/{session_id}/cart"

        first = client.post(url, json={"item_id": "optional-2"}).json()
        assert first["changed"] is True
        assert first["session"]["cart"] == [{"id": "optional-2", "name": "Bife Acebolado"}]
        assert first["session"]["cart_open"] is True

        second = client.post(url, json={"item_id": "optional-2"})
        assert second.status_code == 200
        assert second.json()["changed"] is False
        assert second.json()["notice"] == {"level": "error", "message": DUPLICATE_MESSAGE}
        assert len(second.json()["session"]["cart"]) == 1

    def test_only_optional_dishes_are_orderable(self, client, session_id):
        response = client.post(f"/api/sessions/{session_id}/cart", json={"item_id": "main-1"})
        assert response.status_code == 404

    def test_closed_add_is_refused(self, mock_store):
        with build_client(mock_store, at(MONDAY, 15, 0)) as client:
            sid = client.post("/api/sessions").json()["session_id"]
            body = client.post(f"/api/sessions/{sid}/cart", json={"item_id": "optional-1"}).json()
        assert body["changed"] is False
        assert body["notice"]["message"] == CLOSED_MESSAGE

    def test_remove_and_panel(self, client, session_id):
        client.post(f"/api/sessions/{session_id}/cart", json={"item_id": "optional-1"})

        removed = client.delete(f"/api/sessions/{session_id}/cart/optional-1").json()
        assert removed["changed"] is True
        assert removed["session"]["cart"] == []

        panel = client.put(f"/api/sessions/{session_id}/cart-panel", json={"open": False}).json()
        assert panel["cart_open"] is False


class TestSubmitter:

    def test_rejected_drafts_keep_previous_values(self, client, session_id):
        url = f"/api/sessions/{session_id}/submitter"
        client.patch(url, json={"name": "Ana", "registration": "12"})

        body = client.patch(url, json={"name": "Ana1", "registration": "12a", "notes": "Ok."}).json()

        assert sorted(body["rejected"]) == ["name", "registration"]
        assert body["session"]["name"] == "Ana"
        assert body["session"]["registration"] == "12"
        assert body["session"]["notes"] == "Ok."


class TestSubmitOrder:

    def test_committed(self, client, session_id, mock_store):
        fill(client, session_id)

        response = client.post(f"/api/sessions/{session_id}/orders")

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["notice"]["message"] == ORDER_PLACED
        assert body["session"]["cart"] == []
        assert body["session"]["name"] == ""
        assert mock_store.orders[body["order_id"]].item_ids == ["optional-1"]

    def test_validation_failure(self, client, session_id):
        client.post(f"/api/sessions/{session_id}/cart", json={"item_id": "optional-1"})

        response = client.post(f"/api/sessions/{session_id}/orders")

        assert response.status_code == 422
        assert response.json()["field"] == "name"
        assert response.json()["notice"]["message"] == INVALID_NAME

    def test_persistence_failure_keeps_session(self, window):
        store = MockMenuStore(opening_window=window, failing_steps={"items"})
        with build_client(store, at(MONDAY, 12, 0)) as client:
            sid = client.post("/api/sessions").json()["session_id"]
            fill(client, sid)
            response = client.post(f"/api/sessions/{sid}/orders")

        assert response.status_code == 502
        body = response.json()
        assert body["notice"]["message"] == PersistenceError.user_message
        assert body["session"]["cart"] == [{"id": "optional-1", "name": "Omelete"}]
        assert body["session"]["state"] == "idle"
        assert len(store.orphaned_orders) == 1

    def test_closed_submit_is_refused(self, window):
        state = {"now": at(MONDAY, 12, 0)}
        store = MockMenuStore(opening_window=window)
        app_settings = Settings(excel_export_enabled=False)
        clock = AvailabilityClock(store.get_opening_window, now=lambda: state["now"])

        with TestClient(create_app(app_settings, store=store, clock=clock)) as client:
            sid = client.post("/api/sessions").json()["session_id"]
            fill(client, sid)
            state["now"] = at(MONDAY, 14, 1)
            clock.evaluate()
            response = client.post(f"/api/sessions/{sid}/orders")

        assert response.status_code == 409
        assert response.json()["notice"]["message"] == AvailabilityError.user_message
        assert store.orders == {}

    def test_atomic_write_mode(self, window):
        store = MockMenuStore(opening_window=window, failing_steps={"items"})
        with build_client(store, at(MONDAY, 12, 0), order_write_mode="atomic") as client:
            sid = client.post("/api/sessions").json()["session_id"]
            fill(client, sid)
            response = client.post(f"/api/sessions/{sid}/orders")

        assert response.status_code == 502
        assert store.orders == {}


class TestExportQueue:

    class RecordingTask:
        def __init__(self, fail=False):
            self.calls = []
            self.fail = fail

        def delay(self, payload):
            if self.fail:
                raise ConnectionError("broker down")
            self.calls.append(payload)

    def test_committed_order_is_queued(self, monkeypatch, mock_store):
        task = self.RecordingTask()
        monkeypatch.setattr(canteen.main, "export_order_to_excel", task)
        app_settings = Settings(excel_export_enabled=True)
        clock = AvailabilityClock(mock_store.get_opening_window, now=lambda: at(MONDAY, 12, 0))

        with TestClient(create_app(app_settings, store=mock_store, clock=clock)) as client:
            sid = client.post("/api/sessions").json()["session_id"]
            fill(client, sid)
            order_id = client.post(f"/api/sessions/{sid}/orders").json()["order_id"]

        assert len(task.calls) == 1
        payload = task.calls[0]
        assert payload["order_id"] == order_id
        assert payload["registration"] == "1234"
        assert payload["dishes"] == [{"id": "optional-1", "name": "Omelete"}]

    def test_broker_outage_does_not_fail_the_order(self, monkeypatch, mock_store):
        monkeypatch.setattr(canteen.main, "export_order_to_excel", self.RecordingTask(fail=True))
        app_settings = Settings(excel_export_enabled=True)
        clock = AvailabilityClock(mock_store.get_opening_window, now=lambda: at(MONDAY, 12, 0))

        with TestClient(create_app(app_settings, store=mock_store, clock=clock)) as client:
            sid = client.post("/api/sessions").json()["session_id"]
            fill(client, sid)
            response = client.post(f"/api/sessions/{sid}/orders")

        assert response.status_code == 201
        assert len(mock_store.orders) == 1


def test_session_idle_timeout_comes_from_settings(mock_store):
    app = create_app(
        Settings(excel_export_enabled=False, session_idle_timeout_seconds=5),
        store=mock_store,
        clock=AvailabilityClock(mock_store.get_opening_window, now=lambda: at(MONDAY, 12, 0)),
    )
    assert app.state.sessions.idle_timeout == 5
