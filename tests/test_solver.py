"""Tests for the rule-simplifying constraint solver."""

import pytest

from typers.checker.constraints import Rule
from typers.checker.errors import (
    CycleDetected,
    GoalNotFound,
    IncompatibleConstraint,
    RecursiveDefinition,
    StepLimitExceeded,
)
from typers.checker.solver import Solver, decompose, solve_constraints
from typers.checker.types import TBool, TFun, TInt, TTuple, TVar


class TestDecompose:
    """Tests for deriving rules from two right-hand sides."""

    def test_identical_sides_need_no_rules(self) -> None:
        assert decompose(TInt(), TInt()) == []
        assert decompose(TFun(TVar(1), TInt()), TFun(TVar(1), TInt())) == []

    def test_variable_on_left(self) -> None:
        assert decompose(TVar(3), TFun(TInt(), TBool())) == [
            Rule(3, TFun(TInt(), TBool())),
        ]

    def test_variable_on_right(self) -> None:
        assert decompose(TInt(), TVar(2)) == [Rule(2, TInt())]

    def test_functions_componentwise(self) -> None:
        result = decompose(TFun(TVar(1), TInt()), TFun(TVar(2), TVar(3)))
        assert result == [Rule(1, TVar(2)), Rule(3, TInt())]

    def test_tuples_componentwise(self) -> None:
        result = decompose(TTuple(TInt(), TVar(4)), TTuple(TVar(5), TBool()))
        assert result == [Rule(5, TInt()), Rule(4, TBool())]

    def test_mismatched_shapes(self) -> None:
        assert decompose(TInt(), TBool()) is None
        assert decompose(TFun(TInt(), TInt()), TTuple(TInt(), TInt())) is None

    def test_mismatch_in_nested_component(self) -> None:
        assert decompose(TFun(TVar(1), TInt()), TFun(TVar(2), TBool())) is None

    def test_variable_inside_its_own_structure(self) -> None:
        with pytest.raises(RecursiveDefinition) as exc_info:
            decompose(TFun(TVar(3), TVar(2)), TVar(3))
        assert exc_info.value == RecursiveDefinition(3)

    def test_nested_occurrence_is_recursive(self) -> None:
        with pytest.raises(RecursiveDefinition):
            decompose(TFun(TVar(1), TInt()), TFun(TTuple(TVar(1), TInt()), TInt()))


class TestSubstitutePhase:
    def test_identity_function(self) -> None:
        rules = [Rule(0, TFun(TVar(1), TVar(2))), Rule(1, TVar(2))]
        solution = solve_constraints(rules)
        assert solution.success
        assert solution.result == TFun(TVar(2), TVar(2))
        assert solution.accumulate_steps == []
        assert solution.remove_steps == []
        assert len(solution.substitute_steps) == 1

    def test_rules_are_used_in_list_order(self) -> None:
        rules = [
            Rule(0, TFun(TVar(1), TVar(2))),
            Rule(1, TInt()),
            Rule(2, TBool()),
        ]
        solution = solve_constraints(rules)
        assert solution.result == TFun(TInt(), TBool())
        used = [step.rule_used for step in solution.substitute_steps]
        assert used == [Rule(1, TInt()), Rule(2, TBool())]
        first = solution.substitute_steps[0]
        assert first.rule_goal_before == Rule(0, TFun(TVar(1), TVar(2)))
        assert first.rule_goal_after == Rule(0, TFun(TInt(), TVar(2)))

    def test_substitution_follows_chains(self) -> None:
        rules = [
            Rule(0, TFun(TVar(1), TVar(2))),
            Rule(2, TFun(TVar(3), TVar(4))),
            Rule(1, TFun(TVar(5), TVar(4))),
            Rule(3, TVar(5)),
        ]
        solution = solve_constraints(rules)
        inner = TFun(TVar(5), TVar(4))
        assert solution.result == TFun(inner, inner)
        assert [s.rule_used.var for s in solution.substitute_steps] == [2, 1, 3]

    def test_goal_without_rule(self) -> None:
        solution = solve_constraints([Rule(1, TInt())])
        assert not solution.success
        assert solution.error == GoalNotFound(0)
        assert solution.result is None


class TestAccumulateAndRemove:
    def test_equal_rules_merge_without_new_rules(self) -> None:
        solution = solve_constraints([Rule(0, TInt()), Rule(0, TInt())])
        assert solution.result == TInt()
        (step,) = solution.accumulate_steps
        assert step.id == 0
        assert step.rules_added == ()
        assert step.rules_compared == (Rule(0, TInt()), Rule(0, TInt()))
        assert step.rules_after == (Rule(0, TInt()),)
        assert solution.remove_steps == []

    def test_accumulate_then_remove(self) -> None:
        rules = [Rule(0, TFun(TVar(1), TInt())), Rule(0, TFun(TVar(2), TVar(3)))]
        solution = solve_constraints(rules)

        (accumulate,) = solution.accumulate_steps
        assert accumulate.id == 0
        assert accumulate.rules_added == (Rule(1, TVar(2)), Rule(3, TInt()))

        (remove,) = solution.remove_steps
        assert remove.id == 1
        assert remove.rules_removed == (Rule(1, TVar(2)),)
        assert (remove.replaced, remove.replacement) == (2, 1)
        assert remove.describe() == "Replacing t2 with t1 in all rules"
        assert remove.rules_after == (Rule(0, TFun(TVar(1), TInt())), Rule(3, TInt()))

        assert solution.result == TFun(TVar(1), TInt())

    def test_remove_renames_the_larger_id(self) -> None:
        rules = [Rule(1, TVar(0)), Rule(1, TInt())]
        solution = solve_constraints(rules)
        (remove,) = solution.remove_steps
        assert (remove.replaced, remove.replacement) == (1, 0)
        assert remove.rules_after == (Rule(0, TInt()),)
        assert solution.result == TInt()

    def test_incompatible_rules(self) -> None:
        rules = [Rule(1, TInt()), Rule(1, TBool()), Rule(0, TBool())]
        solution = solve_constraints(rules)
        assert solution.error == IncompatibleConstraint(
            Rule(1, TInt()),
            Rule(1, TBool()),
        )
        assert solution.error.message == (
            "impossible to combine these rules: t1 = Int and t1 = Bool"
        )
        assert solution.steps == []

    def test_self_application_is_recursive(self) -> None:
        rules = [
            Rule(0, TFun(TVar(1), TVar(2))),
            Rule(1, TFun(TVar(3), TVar(2))),
            Rule(1, TVar(3)),
        ]
        solution = solve_constraints(rules)
        assert solution.error == RecursiveDefinition(3)
        assert str(solution.error) == "recursive definition of t3!"
        assert solution.steps == []

    def test_consumed_rule_is_replaced_by_last(self) -> None:
        rules = [Rule(1, TInt()), Rule(1, TInt()), Rule(2, TVar(3)), Rule(0, TVar(2))]
        solution = solve_constraints(rules)

        (accumulate,) = solution.accumulate_steps
        assert accumulate.rules_after == (
            Rule(1, TInt()),
            Rule(0, TVar(2)),
            Rule(2, TVar(3)),
        )

        (remove,) = solution.remove_steps
        assert remove.rules_removed == (Rule(0, TVar(2)),)
        assert (remove.replaced, remove.replacement) == (2, 0)
        assert remove.rules_after == (Rule(1, TInt()), Rule(0, TVar(3)))

        assert solution.result == TVar(3)

    def test_trivial_self_rule_is_recursive(self) -> None:
        rules = [Rule(0, TInt()), Rule(0, TInt()), Rule(2, TVar(2))]
        solution = solve_constraints(rules)
        assert solution.error == RecursiveDefinition(2)


class TestCycleCheck:
    def test_indirect_cycle(self) -> None:
        rules = [
            Rule(1, TFun(TVar(2), TInt())),
            Rule(2, TFun(TVar(1), TInt())),
            Rule(0, TVar(1)),
        ]
        solution = solve_constraints(rules)
        assert solution.error == CycleDetected((1, 2))
        assert "t1, t2" in solution.error.message

    def test_self_reference_in_input_is_a_cycle(self) -> None:
        rules = [Rule(0, TVar(1)), Rule(1, TFun(TVar(1), TInt()))]
        solution = solve_constraints(rules)
        assert solution.error == CycleDetected((1,))

    def test_shared_subterms_are_not_cycles(self) -> None:
        rules = [
            Rule(0, TTuple(TVar(1), TVar(2))),
            Rule(1, TVar(3)),
            Rule(2, TVar(3)),
            Rule(3, TInt()),
        ]
        solution = solve_constraints(rules)
        assert solution.result == TTuple(TInt(), TInt())


class TestSolverContract:
    def test_goal_must_be_lowest_variable(self) -> None:
        with pytest.raises(ValueError, match="lowest ID"):
            Solver([Rule(0, TInt()), Rule(1, TVar(0))], goal=1)

    def test_other_goal(self) -> None:
        rules = [Rule(2, TFun(TVar(3), TInt())), Rule(3, TBool())]
        solution = solve_constraints(rules, goal=2)
        assert solution.goal == 2
        assert solution.result == TFun(TBool(), TInt())

    def test_step_ids_are_contiguous(self) -> None:
        rules = [
            Rule(0, TFun(TVar(1), TInt())),
            Rule(0, TFun(TVar(2), TVar(3))),
            Rule(1, TBool()),
        ]
        solution = solve_constraints(rules)
        assert [step.id for step in solution.steps] == list(
            range(len(solution.steps)),
        )
        assert [step.kind for step in solution.steps] == [
            "accumulate",
            "remove",
            "substitute",
        ]
        assert solution.result == TFun(TBool(), TInt())

    def test_resolving_final_rules_is_a_fixpoint(self) -> None:
        rules = [Rule(0, TFun(TVar(1), TInt())), Rule(0, TFun(TVar(2), TVar(3)))]
        first = solve_constraints(rules)
        again = solve_constraints(first.final_rules)
        assert again.steps == []
        assert again.result == first.result

    def test_solution_records_inputs(self) -> None:
        rules = [Rule(0, TVar(4)), Rule(4, TInt())]
        solution = solve_constraints(rules)
        assert solution.rules == rules
        assert solution.variables == [0, 4]

    def test_solve_is_repeatable(self) -> None:
        solver = Solver([Rule(0, TVar(1)), Rule(1, TInt())])
        assert solver.solve() == solver.solve()

    def test_step_limit(self) -> None:
        rules = [
            Rule(0, TFun(TVar(1), TVar(2))),
            Rule(1, TInt()),
            Rule(2, TBool()),
        ]
        solution = solve_constraints(rules, max_steps=1)
        assert solution.error == StepLimitExceeded(1)
        assert not solution.success
        assert len(solution.substitute_steps) == 2
