"""Tests for MapNotifier."""

import pytest

from listenit import DisposedError, MapNotifier, NotifierMode, TransactionError


def counting(notifier):
    calls = []
    notifier.add_listener(lambda: calls.append(dict(notifier.value)))
    return calls


class TestMutationsNotify:
    def test_setitem(self):
        m = MapNotifier({"a": 1})
        calls = counting(m)
        m["b"] = 2
        assert calls == [{"a": 1, "b": 2}]

    def test_add_all_and_entries(self):
        m = MapNotifier()
        calls = counting(m)
        m.add_all({"a": 1})
        m.add_entries([("b", 2)])
        m.update({"c": 3}, d=4)
        assert calls[-1] == {"a": 1, "b": 2, "c": 3, "d": 4}
        assert len(calls) == 3

    def test_remove_returns_value_or_none(self):
        m = MapNotifier({"a": 1})
        assert m.remove("a") == 1
        assert m.remove("a") is None

    def test_pop_and_del(self):
        m = MapNotifier({"a": 1, "b": 2, "c": 3})
        calls = counting(m)
        assert m.pop("a") == 1
        assert m.pop("zz", 0) == 0
        del m["b"]
        assert m.popitem() == ("c", 3)
        assert len(m) == 0
        assert len(calls) == 4
        with pytest.raises(KeyError):
            m.pop("missing")
        with pytest.raises(KeyError):
            del m["missing"]

    def test_remove_where(self):
        m = MapNotifier({"a": 1, "b": 2, "c": 3})
        m.remove_where(lambda k, v: v % 2 == 1)
        assert m == {"b": 2}

    def test_update_all(self):
        m = MapNotifier({"a": 1, "b": 2})
        calls = counting(m)
        m.update_all(lambda k, v: v * 10)
        assert calls == [{"a": 10, "b": 20}]

    def test_update_all_failure_leaves_map_untouched(self):
        m = MapNotifier({"a": 1, "b": 0, "c": 3})
        calls = counting(m)
        with pytest.raises(ZeroDivisionError):
            m.update_all(lambda k, v: 6 // v)
        assert m == {"a": 1, "b": 0, "c": 3}
        assert calls == []


class TestUpdateValue:
    def test_existing_key(self):
        m = MapNotifier({"a": 1})
        assert m.update_value("a", lambda v: v + 1) == 2
        assert m["a"] == 2

    def test_absent_key_uses_if_absent(self):
        m = MapNotifier()
        assert m.update_value("a", lambda v: v + 1, if_absent=lambda: 0) == 0
        assert m["a"] == 0

    def test_absent_key_without_fallback_raises(self):
        m = MapNotifier()
        calls = counting(m)
        with pytest.raises(KeyError):
            m.update_value("a", lambda v: v + 1)
        assert calls == []


class TestPutIfAbsent:
    def test_adds_missing_key(self):
        m = MapNotifier(notification_mode=NotifierMode.NORMAL)
        calls = counting(m)
        assert m.put_if_absent("a", lambda: 1) == 1
        assert calls == [{"a": 1}]

    def test_existing_key_normal_mode_is_silent(self):
        m = MapNotifier({"a": 1}, notification_mode=NotifierMode.NORMAL)
        calls = counting(m)
        assert m.put_if_absent("a", lambda: 2) == 1
        assert calls == []

    def test_existing_key_always_mode_notifies(self):
        m = MapNotifier({"a": 1})
        calls = counting(m)
        assert m.put_if_absent("a", lambda: 2) == 1
        assert len(calls) == 1

    def test_setdefault(self):
        m = MapNotifier({"a": 1})
        assert m.setdefault("a", 99) == 1
        assert m.setdefault("b", 42) == 42
        assert m["b"] == 42


class TestNormalMode:
    def make(self, data=None, **kwargs):
        m = MapNotifier(data or {"a": 1, "b": 2}, notification_mode=NotifierMode.NORMAL, **kwargs)
        return m, counting(m)

    def test_equal_value_is_silent(self):
        m, calls = self.make()
        m["a"] = 1
        assert calls == []

    def test_new_key_notifies(self):
        m, calls = self.make()
        m["c"] = None
        assert len(calls) == 1

    def test_custom_equality(self):
        m, calls = self.make(
            {"a": 1.0}, custom_equality=lambda x, y: abs(x - y) < 0.1
        )
        m["a"] = 1.05
        assert calls == []
        m["a"] = 2.0
        assert len(calls) == 1

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda m: m.remove("zz"),
            lambda m: m.remove_where(lambda k, v: False),
            lambda m: m.update_all(lambda k, v: v),
            lambda m: m.update_value("a", lambda v: v),
        ],
    )
    def test_noops_are_silent(self, mutate):
        m, calls = self.make()
        mutate(m)
        assert calls == []

    def test_clear_empty_is_silent(self):
        m = MapNotifier(notification_mode=NotifierMode.NORMAL)
        calls = counting(m)
        m.clear()
        assert calls == []

    def test_bulk_add_with_empty_input_notifies(self):
        m, calls = self.make()
        m.add_all({})
        m.add_entries([])
        assert len(calls) == 2


class TestTransactions:
    def test_single_notification(self):
        m = MapNotifier()
        calls = counting(m)
        with m.transaction():
            m["a"] = 1
            m["b"] = 2
            m.remove("a")
        assert calls == [{"b": 2}]

    def test_nested_transaction_fails(self):
        m = MapNotifier()
        m.start_transaction()
        with pytest.raises(TransactionError):
            m.start_transaction()
        m.end_transaction()


class TestValueView:
    def test_read_only(self):
        m = MapNotifier({"a": 1})
        with pytest.raises(TypeError):
            m.value["a"] = 2
        assert m["a"] == 1

    def test_live(self):
        m = MapNotifier({"a": 1})
        view = m.value
        m["b"] = 2
        assert dict(view) == {"a": 1, "b": 2}


class TestDisposed:
    def test_mutation_after_dispose_raises(self):
        m = MapNotifier()
        m.dispose()
        with pytest.raises(DisposedError):
            m["a"] = 1
