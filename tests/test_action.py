"""Tests for Updates and Actions."""

import pytest

from traceviz.action import Action, Update, UpdateKind, apply_update
from traceviz.documentation import pretty_print
from traceviz.errors import ConfigurationError
from traceviz.reaction import Predicate
from traceviz.testing import dbl, int_, int_set, ints, str_, str_set, strs, value_map
from traceviz.value_reference import FixedValue, LocalValue


class TestClear:
    def test_clears_fixed_values(self):
        labels = strs("a", "b")
        Update.clear([FixedValue(labels)]).update()
        assert labels.val == []

    def test_clears_local_values(self):
        ids = strs("a", "b")
        Update.clear([LocalValue("ids")]).update(value_map(ids=ids))
        assert ids.val == []

    def test_stops_at_first_unresolved(self):
        a, b = str_("a"), str_("b")
        Update.clear([FixedValue(a), LocalValue("missing"), FixedValue(b)]).update()
        assert a.val == ""
        assert b.val == "b"


class TestFolds:
    def test_sets_fixed_values(self):
        labels = strs("a", "b")
        Update.set(FixedValue(labels), FixedValue(strs("c", "d"))).update()
        assert labels.val == ["c", "d"]

    def test_sets_local_values(self):
        ids = strs("a", "b")
        vm = value_map(ids=ids, other_ids=strs("c", "d"))
        Update.set(LocalValue("ids"), LocalValue("other_ids")).update(vm)
        assert ids.val == ["c", "d"]

    def test_unresolved_ref_is_noop(self):
        ids = strs("a")
        Update.set(FixedValue(ids), LocalValue("missing")).update(value_map())
        assert ids.val == ["a"]

    def test_toggles(self):
        labels = str_set("a", "b")
        Update.toggle(FixedValue(labels), FixedValue(str_set("b", "c"))).update()
        assert labels.val == {"a", "c"}

    def test_toggles_scalars(self):
        id_ = int_(3)
        tog = Update.toggle(FixedValue(id_), FixedValue(int_(3)))
        tog.update()
        assert id_.val == 0
        tog.update()
        assert id_.val == 3

    def test_set_or_clear(self):
        ids = strs("a")
        soc = Update.set_or_clear(FixedValue(ids), FixedValue(strs("a")))
        soc.update()
        assert ids.val == []
        soc.update()
        assert ids.val == ["a"]

    def test_extends(self):
        labels = strs("a", "b")
        Update.extend(FixedValue(labels), FixedValue(strs("c", "d"))).update()
        assert labels.val == ["a", "b", "c", "d"]

    def test_set_if_empty(self):
        labels = strs()
        Update.set_if_empty(FixedValue(labels), FixedValue(strs("a", "b"))).update()
        assert labels.val == ["a", "b"]
        Update.set_if_empty(FixedValue(labels), FixedValue(strs("c", "d"))).update()
        assert labels.val == ["a", "b"]

    def test_type_mismatch_raises(self):
        upd = Update.set(FixedValue(str_("a"), "name"), FixedValue(dbl(1.0), "weight"))
        with pytest.raises(ConfigurationError, match="Can't set value 'name' from value 'weight'."):
            upd.update()

    def test_wrong_arity_raises_on_use(self):
        upd = Update(UpdateKind.SET, refs=[FixedValue(str_("a"))])
        with pytest.raises(ConfigurationError, match="exactly two"):
            upd.update()


class TestSwap:
    def test_swaps_compatible_values(self):
        a, b = str_("a"), str_("b")
        Update.swap(FixedValue(a), FixedValue(b)).update()
        assert (a.val, b.val) == ("b", "a")

    def test_swaps_sets(self):
        a, b = int_set(1), int_set(2, 3)
        Update.swap(FixedValue(a), FixedValue(b)).update()
        assert (a.val, b.val) == ({2, 3}, {1})

    def test_incompatible_raises(self):
        with pytest.raises(ConfigurationError, match="for swap"):
            Update.swap(FixedValue(str_("a")), FixedValue(int_(1))).update()


class TestListUpdates:
    def test_pushes_compatible_values(self):
        s_ids = strs("a")
        Update.push_left([FixedValue(s_ids), FixedValue(str_("b")), FixedValue(strs("c", "d"))]).update()
        assert s_ids.val == ["b", "c", "d", "a"]

        i_ids = ints(0)
        Update.push_left([FixedValue(i_ids), FixedValue(int_(1)), FixedValue(ints(2, 3))]).update()
        assert i_ids.val == [1, 2, 3, 0]

    @pytest.mark.parametrize(
        "values",
        [
            [],
            [strs("a"), int_(0)],
            [str_("a"), str_("b")],
            [ints(0), dbl(1.5)],
            [int_(0), int_(1)],
        ],
    )
    def test_push_incompatible_raises(self, values):
        with pytest.raises(ConfigurationError, match="PushLeft"):
            Update.push_left([FixedValue(v) for v in values]).update()

    def test_pops(self):
        s_ids = strs("a", "b", "c")
        Update.pop_left(FixedValue(s_ids)).update()
        assert s_ids.val == ["b", "c"]
        i_ids = ints(0, 1, 2)
        Update.pop_left(FixedValue(i_ids)).update()
        assert i_ids.val == [1, 2]

    def test_pop_non_list_raises(self):
        with pytest.raises(ConfigurationError, match="PopLeft"):
            Update.pop_left(FixedValue(str_("a"))).update()

    def test_concats(self):
        id_ = str_("a")
        Update.concat([FixedValue(id_), FixedValue(str_("b")), FixedValue(str_("c"))]).update()
        assert id_.val == "abc"

    def test_concat_non_string_raises(self):
        with pytest.raises(ConfigurationError, match="Can't concatenate"):
            Update.concat([FixedValue(str_("a")), FixedValue(int_(1))]).update()


class TestControlFlow:
    def test_do_runs_in_order(self):
        log = []
        Update.do(
            [
                Update.call(lambda ls: log.append(1), "one"),
                Update.call(lambda ls: log.append(2), "two"),
            ]
        ).update()
        assert log == [1, 2]

    def test_if(self):
        number_text = str_("")
        text = FixedValue(number_text)
        val = int_(0)
        val_ref = FixedValue(val)
        cond = Update.if_(
            Predicate.equals(val_ref, FixedValue(int_(0))),
            Update.set(text, FixedValue(str_("none"))),
            Update.if_(
                Predicate.equals(val_ref, FixedValue(int_(1))),
                Update.set(text, FixedValue(str_("one"))),
                Update.set(text, FixedValue(str_("several"))),
            ),
        )
        assert number_text.val == ""
        cond.update()
        assert number_text.val == "none"
        val.val = 3
        cond.update()
        assert number_text.val == "several"
        val.val = 1
        cond.update()
        assert number_text.val == "one"

    def test_if_without_else(self):
        text = str_("")
        Update.if_(Predicate.false(), Update.set(FixedValue(text), FixedValue(str_("x")))).update()
        assert text.val == ""

    def test_if_over_unresolved_ref_takes_else(self):
        text = str_("")
        Update.if_(
            Predicate.equals(LocalValue("missing"), FixedValue(int_(0))),
            Update.set(FixedValue(text), FixedValue(str_("then"))),
            Update.set(FixedValue(text), FixedValue(str_("else"))),
        ).update(value_map())
        assert text.val == "else"

    def test_if_needs_then(self):
        upd = Update(UpdateKind.IF, predicate=Predicate.true())
        with pytest.raises(ConfigurationError, match="If must have"):
            upd.update()

    def test_switch(self):
        number_text = str_("")
        text = FixedValue(number_text)
        val = int_(0)
        val_ref = FixedValue(val)
        cond = Update.switch(
            [
                Update.case(Predicate.equals(val_ref, FixedValue(int_(0))), [Update.set(text, FixedValue(str_("none")))]),
                Update.case(Predicate.equals(val_ref, FixedValue(int_(1))), [Update.set(text, FixedValue(str_("one")))]),
                Update.case(Predicate.true(), [Update.set(text, FixedValue(str_("several")))]),
            ]
        )
        assert number_text.val == ""
        cond.update()
        assert number_text.val == "none"
        val.val = 3
        cond.update()
        assert number_text.val == "several"
        val.val = 1
        cond.update()
        assert number_text.val == "one"

    def test_case_reports_match(self):
        assert Update.case(Predicate.true(), []).execute() is True
        assert Update.case(Predicate.false(), []).execute() is False

    def test_switch_children_must_be_cases(self):
        upd = Update.switch([Update.clear([])])
        with pytest.raises(ConfigurationError, match="Cases"):
            upd.update()

    def test_call_receives_local_state(self):
        seen = []
        vm = value_map(x=int_(1))
        apply_update(Update.call(seen.append, "records"), vm)
        assert seen == [vm]


class TestAction:
    def test_runs_updates(self):
        a, b = strs("a"), strs("b")
        Action("row", "click", [Update.clear([FixedValue(a)]), Update.clear([FixedValue(b)])]).update()
        assert (a.val, b.val) == ([], [])

    def test_documentation(self):
        action = Action(
            "row",
            "click",
            [
                Update.set(FixedValue(str_(""), "selection"), LocalValue("id")),
                Update.set_or_clear(LocalValue("a"), LocalValue("b")),
                Update.set_if_empty(LocalValue("a"), LocalValue("b")),
                Update.swap(LocalValue("a"), LocalValue("b")),
                Update.push_left([LocalValue("a"), LocalValue("b"), LocalValue("c")]),
                Update.pop_left(LocalValue("a")),
                Update.concat([LocalValue("a"), LocalValue("b")]),
                Update.if_(Predicate.true(), Update.call(lambda ls: None, "custom")),
            ],
        )
        assert pretty_print(action) == [
            "Upon 'click' on 'row' (Action)",
            "  sets value 'selection' from local value 'id'. (Update)",
            "  sets-or-clears local value 'a' from local value 'b'. (Update)",
            "  sets local value 'a', if empty, from local value 'b'. (Update)",
            "  swaps local value 'a' and local value 'b'. (Update)",
            "  pushes [local value 'b', local value 'c'] on the left of local value 'a' (Update)",
            "  pops the leftmost value of local value 'a' (Update)",
            "  concatenates [local value 'a', local value 'b'] (Update)",
            "  conditionally updates (Update)",
            "    TRUE (Predicate)",
            "    custom (Update)",
        ]

    def test_help_text_hides_children(self):
        action = Action("row", "click", [Update.clear([LocalValue("a")])]).with_help_text(
            "Clears a.", document_children=False
        )
        assert pretty_print(action) == ["Clears a. (Action)"]
