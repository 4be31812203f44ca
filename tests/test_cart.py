"""Cart uniqueness and session-level cart behaviour."""

from canteen.ordering.cart import (
    ADDED_MESSAGE,
    CLOSED_MESSAGE,
    DUPLICATE_MESSAGE,
    CartStore,
)
from canteen.ordering.entities import CartEntry, NoticeLevel
from canteen.ordering.session import OrderSession, SessionRegistry
from canteen.ordering.workflow import SubmissionState

from conftest import dish


class TestCartStore:

    def test_add_appends_projection(self):
        cart = CartStore(lambda: True)
        change = cart.add(dish("x1", "Feijoada"))

        assert change.changed
        assert change.open_panel
        assert change.notice.message == ADDED_MESSAGE
        assert cart.entries == [CartEntry("x1", "Feijoada")]

    def test_duplicate_add_is_ignored(self):
        cart = CartStore(lambda: True)
        cart.add(dish("x1", "Feijoada"))

        change = cart.add(dish("x1", "Feijoada com farofa"))

        assert len(cart) == 1
        assert not change.changed
        assert not change.open_panel
        assert change.notice.level == NoticeLevel.ERROR
        assert change.notice.message == DUPLICATE_MESSAGE
        assert cart.entries[0].name == "Feijoada"

    def test_closed_store_rejects_add(self):
        cart = CartStore(lambda: False)
        change = cart.add(dish("x1"))

        assert len(cart) == 0
        assert not change.changed
        assert change.notice.message == CLOSED_MESSAGE

    def test_closed_check_comes_before_duplicate_check(self):
        state = {"open": True}
        cart = CartStore(lambda: state["open"])
        cart.add(dish("x1"))
        state["open"] = False

        assert cart.add(dish("x1")).notice.message == CLOSED_MESSAGE

    def test_insertion_order_is_display_order(self):
        cart = CartStore(lambda: True)
        for item_id in ["c", "a", "b"]:
            cart.add(dish(item_id))
        cart.remove("a")
        cart.add(dish("a"))

        assert cart.item_ids == ["c", "b", "a"]

    def test_remove_absent_id_is_a_noop(self):
        cart = CartStore(lambda: True)
        cart.add(dish("x1"))

        change = cart.remove("nope")

        assert not change.changed
        assert cart.item_ids == ["x1"]

    def test_remove_and_clear(self):
        cart = CartStore(lambda: True)
        cart.add(dish("x1"))
        cart.add(dish("x2"))

        assert cart.remove("x1").changed
        assert "x1" not in cart
        cart.clear()
        assert len(cart) == 0

    def test_ids_stay_unique_under_any_sequence(self):
        cart = CartStore(lambda: True)
        for item_id in ["a", "b", "a", "c", "b", "a"]:
            cart.add(dish(item_id))

        assert len(cart.item_ids) == len(set(cart.item_ids)) == 3


class TestOrderSession:

    def test_add_opens_cart_panel(self, open_session):
        assert not open_session.cart_open
        open_session.add_to_cart(dish("x1"))
        assert open_session.cart_open

    def test_rejected_add_leaves_panel_closed(self):
        session = OrderSession(lambda: False)
        session.add_to_cart(dish("x1"))
        assert not session.cart_open

    def test_rejected_draft_keeps_previous_value(self, open_session):
        assert open_session.update_field("name", "João")
        assert not open_session.update_field("name", "João1")
        assert open_session.name == "João"

        assert open_session.update_field("registration", "12")
        assert not open_session.update_field("registration", "12345")
        assert open_session.registration == "12"

        assert open_session.update_field("name", "")
        assert open_session.name == ""

    def test_can_submit(self, open_session):
        assert not open_session.can_submit
        open_session.add_to_cart(dish("x1"))
        assert open_session.can_submit

        closed = OrderSession(lambda: False)
        assert not closed.can_submit

    def test_reset(self, filled_session):
        filled_session.reset()
        assert len(filled_session.cart) == 0
        assert filled_session.submitter_snapshot().to_dict() == {
            "name": "", "registration": "", "notes": "",
        }
        assert not filled_session.cart_open


class TestSessionRegistry:

    def test_create_get_discard(self):
        registry = SessionRegistry(lambda: True)
        session = registry.create()

        assert registry.get(session.id) is session
        assert len(registry) == 1
        assert registry.discard(session.id)
        assert registry.get(session.id) is None
        assert not registry.discard(session.id)

    def test_sessions_are_independent(self):
        registry = SessionRegistry(lambda: True)
        first, second = registry.create(), registry.create()
        first.add_to_cart(dish("x1"))

        assert first.id != second.id
        assert len(second.cart) == 0

    def test_idle_sessions_are_evicted(self):
        now = {"t": 0.0}
        registry = SessionRegistry(lambda: True, idle_timeout=60, clock=lambda: now["t"])
        stale, fresh = registry.create(), registry.create()

        now["t"] = 50.0
        registry.get(fresh.id)
        now["t"] = 100.0

        assert registry.evict_idle() == 1
        assert registry.get(stale.id) is None
        assert registry.get(fresh.id) is fresh

    def test_in_flight_session_is_not_evicted(self):
        now = {"t": 0.0}
        registry = SessionRegistry(lambda: True, idle_timeout=60, clock=lambda: now["t"])
        session = registry.create()
        session.state = SubmissionState.PERSISTING_ITEMS

        now["t"] = 1000.0

        assert registry.evict_idle() == 0
        assert registry.get(session.id) is session

        session.state = SubmissionState.IDLE
        now["t"] = 2000.0
        assert registry.evict_idle() == 1
