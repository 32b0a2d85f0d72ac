"""Tests for the Rule model and precedence ordering."""

import random
import re

import pytest

from retryrules.core.rules import (
    Action,
    DatabaseError,
    Rule,
    SQLStateError,
    compare_rules,
    precedence_key,
    sort_rules,
)
from tests.helpers import BareError, SibError, SubError, SubSubError, SuperError


class AlphaBase(Exception):
    pass


class ZuluChild(AlphaBase):
    pass


class MikeUnrelated(Exception):
    pass


def _rule(target: type, action: Action = Action.RETRY, code: str | None = None,
          pattern: str | None = None) -> Rule:
    return Rule(
        action=action,
        target=target,
        error_code=code,
        pattern=re.compile(pattern) if pattern is not None else None,
    )


# =============================================================================
# Rule
# =============================================================================


class TestRuleMatching:
    """Tests for Rule.applies_to(), evaluate() and decide()."""

    def test_applies_to_subclasses(self) -> None:
        rule = _rule(SubError)
        assert rule.applies_to(SubError)
        assert rule.applies_to(SubSubError)
        assert not rule.applies_to(SuperError)
        assert not rule.applies_to(SibError)

    def test_plain_rule_matches_any_message(self) -> None:
        rule = _rule(SuperError, Action.THROW)
        assert rule.evaluate(SubError, None, None) is Action.THROW
        assert rule.evaluate(SubError, "40001", "anything") is Action.THROW

    def test_wrong_type_ignored(self) -> None:
        assert _rule(SubError).evaluate(SibError, None, "sib") is Action.IGNORE

    def test_code_must_match(self) -> None:
        rule = _rule(SQLStateError, code="40001")
        assert rule.evaluate(DatabaseError, "40001", None) is Action.RETRY
        assert rule.evaluate(DatabaseError, "40002", None) is Action.IGNORE
        assert rule.evaluate(DatabaseError, None, None) is Action.IGNORE

    def test_code_compared_case_insensitively(self) -> None:
        rule = _rule(SQLStateError, code="40p01")
        assert rule.evaluate(DatabaseError, "40P01", None) is Action.RETRY

    def test_pattern_searched_in_message(self) -> None:
        rule = _rule(SuperError, pattern="dead.ock")
        assert rule.evaluate(SuperError, None, "ERROR: deadlock detected") is Action.RETRY
        assert rule.evaluate(SuperError, None, "syntax error") is Action.IGNORE

    def test_pattern_requires_message(self) -> None:
        rule = _rule(SuperError, pattern=".*")
        assert rule.evaluate(SuperError, None, None) is Action.IGNORE
        assert rule.evaluate(SuperError, None, "") is Action.RETRY

    def test_decide_reads_error_code(self) -> None:
        rule = _rule(SQLStateError, code="40001", pattern="restart")
        exc = DatabaseError("restart transaction", "40001")
        assert rule.decide(exc, "restart transaction") is Action.RETRY
        assert rule.decide(exc, "something else") is Action.IGNORE

    def test_decide_uses_given_message(self) -> None:
        """The message argument is trusted; the exception is not re-rendered."""
        rule = _rule(BareError, pattern="injected")
        assert rule.decide(BareError(), "injected") is Action.RETRY


class TestRuleRendering:
    """Tests for Rule.key, match_key and str()."""

    def test_type_key(self) -> None:
        rule = _rule(SuperError, Action.THROW)
        assert rule.key == "tests.helpers.SuperError"
        assert str(rule) == "tests.helpers.SuperError=THROW"

    def test_sqlstate_key_with_pattern(self) -> None:
        rule = _rule(SQLStateError, code="40001", pattern="restart transaction")
        assert rule.key == "sqlState.40001;restart transaction"
        assert str(rule) == "sqlState.40001;restart transaction=RETRY"

    def test_builtin_target_name(self) -> None:
        assert _rule(ValueError).target_name == "builtins.ValueError"

    def test_match_key_ignores_action_and_code_case(self) -> None:
        a = _rule(SQLStateError, Action.RETRY, code="40p01")
        b = _rule(SQLStateError, Action.THROW, code="40P01")
        assert a.match_key == b.match_key

    def test_rules_are_frozen(self) -> None:
        rule = _rule(SuperError)
        with pytest.raises(AttributeError):
            rule.action = Action.THROW  # type: ignore[misc]


# =============================================================================
# compare_rules
# =============================================================================


class TestCompareRules:
    """Tests for the pairwise precedence comparator."""

    def test_subclass_first(self) -> None:
        assert compare_rules(_rule(SubError), _rule(SuperError)) < 0
        assert compare_rules(_rule(SuperError), _rule(SubError)) > 0

    def test_same_rule_is_equal(self) -> None:
        assert compare_rules(_rule(SuperError), _rule(SuperError)) == 0

    def test_unrelated_by_name(self) -> None:
        assert compare_rules(_rule(SibError), _rule(SubError)) < 0
        assert compare_rules(_rule(SubError), _rule(SibError)) > 0

    def test_code_before_no_code(self) -> None:
        assert compare_rules(_rule(SQLStateError, code="40001"), _rule(SQLStateError)) < 0

    def test_codes_ascending(self) -> None:
        first = _rule(SQLStateError, code="40001")
        second = _rule(SQLStateError, code="40P01")
        assert compare_rules(first, second) < 0

    def test_pattern_before_no_pattern(self) -> None:
        assert compare_rules(_rule(SuperError, pattern="x"), _rule(SuperError)) < 0

    def test_patterns_ascending(self) -> None:
        assert compare_rules(_rule(SuperError, pattern="a"), _rule(SuperError, pattern="b")) < 0

    def test_action_breaks_final_tie(self) -> None:
        retry = _rule(SuperError, Action.RETRY)
        throw = _rule(SuperError, Action.THROW)
        assert compare_rules(retry, throw) < 0
        assert compare_rules(throw, retry) > 0

    def test_specificity_beats_name(self) -> None:
        """ZuluChild sorts after AlphaBase by name but is more specific."""
        assert compare_rules(_rule(ZuluChild), _rule(AlphaBase)) < 0

    @pytest.mark.parametrize("catch_all", [Exception, BaseException])
    def test_code_rule_before_catch_all(self, catch_all: type) -> None:
        """Error-code rules refine the catch-all exception types."""
        code_rule = _rule(SQLStateError, code="40001")
        assert compare_rules(code_rule, _rule(catch_all, Action.THROW)) < 0
        assert compare_rules(_rule(catch_all, Action.THROW), code_rule) > 0

    def test_code_rule_unrelated_to_other_types(self) -> None:
        """Only the catch-all types rank below the capability; others sort by name."""
        assert compare_rules(_rule(SQLStateError), _rule(RuntimeError)) > 0

    def test_antisymmetric(self) -> None:
        rules = [
            _rule(SuperError),
            _rule(SubError, Action.THROW),
            _rule(SubError, pattern="x"),
            _rule(SQLStateError, code="40001"),
            _rule(MikeUnrelated),
        ]
        for a in rules:
            for b in rules:
                assert compare_rules(a, b) == -compare_rules(b, a)


# =============================================================================
# sort_rules
# =============================================================================


class TestSortRules:
    """Tests for the evaluation order of a rule set."""

    def test_hierarchy_order(self) -> None:
        rules = [_rule(SuperError), _rule(SibError), _rule(SubError), _rule(SubSubError)]
        ordered = [rule.target for rule in sort_rules(rules)]
        assert ordered == [SibError, SubSubError, SubError, SuperError]

    def test_matches_sorted_for_consistent_sets(self) -> None:
        rules = [_rule(SuperError), _rule(SibError), _rule(SubError), _rule(SubSubError)]
        assert sort_rules(rules) == sorted(rules, key=precedence_key)

    def test_independent_of_input_order(self) -> None:
        rules = [
            _rule(SuperError, Action.THROW),
            _rule(SibError),
            _rule(SubError),
            _rule(SubError, Action.THROW, pattern="fatal"),
            _rule(SubSubError, Action.THROW),
            _rule(SQLStateError, code="40001"),
            _rule(SQLStateError, Action.THROW, code="40001", pattern="read only"),
        ]
        expected = sort_rules(rules)
        shuffled = rules[:]
        rng = random.Random(1234)
        for _ in range(20):
            rng.shuffle(shuffled)
            assert sort_rules(shuffled) == expected

    def test_unrelated_type_between_base_and_child(self) -> None:
        """A name-ordered unrelated type must not pull the base ahead of its child."""
        rules = [_rule(AlphaBase), _rule(MikeUnrelated), _rule(ZuluChild)]
        for permutation in (rules, rules[::-1], [rules[1], rules[0], rules[2]]):
            ordered = [rule.target for rule in sort_rules(permutation)]
            assert ordered.index(ZuluChild) < ordered.index(AlphaBase)

    def test_subclass_always_before_base(self) -> None:
        rules = [
            _rule(AlphaBase),
            _rule(ZuluChild),
            _rule(MikeUnrelated),
            _rule(SuperError),
            _rule(SubSubError),
            _rule(SQLStateError, code="40001"),
            _rule(DatabaseError),
        ]
        ordered = sort_rules(rules)
        for i, earlier in enumerate(ordered):
            for later in ordered[i + 1:]:
                assert not (
                    later.target is not earlier.target
                    and issubclass(later.target, earlier.target)
                ), f"{later} should precede {earlier}"

    def test_coded_type_before_capability(self) -> None:
        ordered = sort_rules([_rule(SQLStateError, code="40001"), _rule(DatabaseError)])
        assert [rule.target for rule in ordered] == [DatabaseError, SQLStateError]

    def test_catch_all_sorted_after_code_rules(self) -> None:
        rules = [
            _rule(Exception, Action.THROW),
            _rule(BaseException, Action.THROW),
            _rule(SQLStateError, code="40001"),
            _rule(SQLStateError, code="40P01"),
            _rule(DatabaseError, Action.THROW),
        ]
        ordered = [rule.target for rule in sort_rules(rules)]
        assert ordered == [
            DatabaseError,
            SQLStateError,
            SQLStateError,
            Exception,
            BaseException,
        ]

    def test_empty(self) -> None:
        assert sort_rules([]) == []
