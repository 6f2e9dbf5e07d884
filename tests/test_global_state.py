"""Tests for GlobalState."""

import pytest

from traceviz.errors import ConfigurationError, Severity
from traceviz.global_state import GlobalState
from traceviz.testing import int_, str_


class TestGlobalState:
    def test_set_and_get(self):
        gs = GlobalState()
        v = str_("a")
        gs.set("filter", v)
        assert gs.get("filter") is v
        assert "filter" in gs

    def test_set_twice_is_fatal(self):
        gs = GlobalState()
        gs.set("filter", str_("a"))
        with pytest.raises(ConfigurationError) as exc_info:
            gs.set("filter", str_("b"))
        assert exc_info.value.severity == Severity.FATAL
        assert exc_info.value.source == "global_state"

    def test_get_unset_is_fatal(self):
        with pytest.raises(ConfigurationError, match="Global state key 'nope' is not set") as exc_info:
            GlobalState().get("nope")
        assert exc_info.value.severity == Severity.FATAL

    def test_keys_channel(self):
        gs = GlobalState()
        log = []
        gs.keys.subscribe(log.append)
        gs.set("a", int_(1))
        gs.set("b", int_(2))
        gs.reset()
        assert log == [[], ["a"], ["a", "b"], []]
        assert "a" not in gs

    def test_value_map_shares_values(self):
        gs = GlobalState()
        v = int_(1)
        gs.set("count", v)
        vm = gs.value_map()
        assert vm.get("count") is v
        vm.update_from_exported_key_value_map({"count": 5})
        assert gs.get("count").val == 5
