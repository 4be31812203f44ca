"""Settings validation and store selection."""

import pytest
from pydantic import ValidationError

from canteen.core.config import EnvironmentMode, OrderWriteMode, Settings
from canteen.services.store import get_menu_store, reset_menu_store
from canteen.services.store.mock import MockMenuStore


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.order_write_mode == OrderWriteMode.TWO_STEP
        assert 0 < settings.availability_poll_seconds <= 60

    @pytest.mark.parametrize("value", [0, -1, 61, 3600])
    def test_poll_interval_must_be_within_a_minute(self, value):
        with pytest.raises(ValidationError):
            Settings(availability_poll_seconds=value)

    @pytest.mark.parametrize("value", [0.5, 1, 60])
    def test_sub_second_and_full_minute_intervals_are_accepted(self, value):
        assert Settings(availability_poll_seconds=value).availability_poll_seconds == value

    def test_write_mode_parses_case_insensitively(self):
        assert Settings(order_write_mode="ATOMIC").order_write_mode == OrderWriteMode.ATOMIC

    @pytest.mark.parametrize("field", ["session_idle_timeout_seconds", "session_sweep_seconds"])
    def test_session_timers_must_be_positive(self, field):
        with pytest.raises(ValidationError):
            Settings(**{field: 0})

    def test_unknown_write_mode(self):
        with pytest.raises(ValidationError):
            Settings(order_write_mode="eventually")

    def test_env_mode(self):
        settings = Settings(env_mode="Production")
        assert settings.env_mode == EnvironmentMode.PRODUCTION
        assert settings.use_sql_store

    def test_mock_window_times(self):
        assert Settings(mock_opening_time="").mock_opening_time is None
        with pytest.raises(ValidationError):
            Settings(mock_opening_time="25:00")


class TestStoreFactory:

    def test_development_uses_mock_store(self):
        reset_menu_store()
        try:
            store = get_menu_store()
            assert isinstance(store, MockMenuStore)
            assert store is get_menu_store()
            assert store.opening_window is not None
        finally:
            reset_menu_store()
