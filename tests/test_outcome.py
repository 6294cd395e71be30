"""Unit tests for ValidationOutcome.

Tests cover:
- The failed-rules map (including concatenated failures)
- assert_passes / assert_fails with strings, rule classes, and enums
- assert_has_rule and assert_has_message
- assert_rules_without_failures and assertion counting
- Consistency between the captured error and the validator
"""

import json

import pytest

from formrequest import EnumRule, Validator, ValidationError, make_form_request
from formrequest.config import FormRequestSettings
from formrequest.outcome import ValidationOutcome

from tests.app import CodeRequest, Priority, Status, StoreOrderRequest, SubscribeRequest, Uppercase

VALID_ORDER = {"email": "a@b.com", "sku": "ABC-1", "quantity": 5}


@pytest.fixture
def orders():
    return make_form_request(StoreOrderRequest)


class TestFailedRules:
    """Test get_failed_rules()."""

    def test_email_scenario(self):
        """Should report the failing rule for each payload shape."""
        tester = make_form_request(SubscribeRequest)

        assert tester.validate({"email": "not-an-email"}).get_failed_rules() == {"email": "email"}
        assert tester.validate({}).get_failed_rules() == {"email": "required"}
        tester.validate({"email": "a@b.com"}).assert_passes()

    def test_passing_outcome_has_no_failed_rules(self, orders):
        """Should return an empty map when nothing failed."""
        assert orders.validate(VALID_ORDER).get_failed_rules() == {}

    def test_parameters_are_appended(self, orders):
        """Should render parameters as :p1,p2."""
        outcome = orders.validate({**VALID_ORDER, "quantity": 500})

        assert outcome.get_failed_rules() == {"quantity": "max:100"}

    def test_multiple_failures_concatenate_without_separator(self):
        """Should join several failing rules on one field directly."""
        outcome = make_form_request(CodeRequest).validate({"code": "ab1"})

        assert outcome.get_failed_rules() == {"code": "min:5alpha"}

    def test_rule_objects_use_lowercased_type_name(self, orders):
        """Should lower-case a custom rule's qualified name."""
        outcome = orders.validate({**VALID_ORDER, "sku": "abc"})

        assert outcome.get_failed_rules() == {"sku": "tests.app.uppercase"}

    def test_missing_required_fields(self, orders):
        """Should report required for each missing field."""
        assert orders.validate({}).get_failed_rules() == {
            "email": "required",
            "sku": "required",
            "quantity": "required",
        }


class TestAssertPasses:
    """Test assert_passes()."""

    def test_passes(self, orders):
        """Should succeed and count one assertion."""
        outcome = orders.validate(VALID_ORDER).assert_passes()

        assert outcome.assertions.count == 1

    def test_failure_message_includes_payload_and_failed_rules(self, orders):
        """Should dump the payload and the failed rules as JSON."""
        outcome = orders.validate({**VALID_ORDER, "email": "not-an-email"})

        with pytest.raises(AssertionError) as exc_info:
            outcome.assert_passes()

        message = str(exc_info.value)
        assert "did not pass validation rules" in message
        assert '"email": "not-an-email"' in message
        assert json.dumps({"email": "email"}, indent=4) in message

    def test_dump_indent_comes_from_settings(self):
        """Should indent dumps using the configured width."""
        tester = make_form_request(SubscribeRequest, settings=FormRequestSettings(dump_indent=2))
        outcome = tester.validate({})

        with pytest.raises(AssertionError) as exc_info:
            outcome.assert_passes()

        assert json.dumps({"email": "required"}, indent=2) in str(exc_info.value)


class TestAssertFails:
    """Test assert_fails()."""

    def test_fails_without_expectations(self, orders):
        """Should only check that validation failed."""
        orders.validate({}).assert_fails()

    def test_fails_on_passing_outcome(self, orders):
        """Should raise when validation passed."""
        with pytest.raises(AssertionError, match="passed but was expected to fail"):
            orders.validate(VALID_ORDER).assert_fails()

    def test_expected_string_constraints(self, orders):
        """Should match constraints as substrings of the field's failed rules."""
        outcome = orders.validate({"quantity": 0})

        outcome.assert_fails({"email": "required", "quantity": "min:1"})
        outcome.assert_fails({"quantity": "min"})

    def test_field_that_did_not_fail(self, orders):
        """Should raise when the field is not among the failures."""
        outcome = orders.validate({**VALID_ORDER, "email": "nope"})

        with pytest.raises(AssertionError, match="Field 'quantity' did not fail validation"):
            outcome.assert_fails({"quantity": "required"})

    def test_wrong_rule_on_failed_field(self, orders):
        """Should raise when the field failed on a different rule."""
        outcome = orders.validate({**VALID_ORDER, "email": "nope"})

        with pytest.raises(AssertionError, match="did not fail on 'required'"):
            outcome.assert_fails({"email": "required"})

    def test_list_of_constraints(self):
        """Should check every constraint in a list."""
        outcome = make_form_request(CodeRequest).validate({"code": "ab1"})

        outcome.assert_fails({"code": ["min:5", "alpha"]})
        with pytest.raises(AssertionError):
            outcome.assert_fails({"code": ["min:5", "string"]})

    def test_rule_class_constraint(self, orders):
        """Should find a rule class by its lower-cased type name."""
        outcome = orders.validate({**VALID_ORDER, "sku": "abc"})

        outcome.assert_fails({"sku": Uppercase})

    def test_rule_class_constraint_not_failed(self, orders):
        """Should raise when the rule class did not fail."""
        outcome = orders.validate({**VALID_ORDER, "email": "nope"})

        with pytest.raises(AssertionError, match="tests.app.uppercase"):
            outcome.assert_fails({"sku": Uppercase})

    def test_enum_constraint(self, orders):
        """Should match the enum type used by the declared enum rule."""
        outcome = orders.validate({**VALID_ORDER, "status": "lost"})

        outcome.assert_fails({"status": Status})
        outcome.assert_fails({"status": EnumRule})

    def test_enum_constraint_with_other_enum(self, orders):
        """Should name the declared enum on mismatch."""
        outcome = orders.validate({**VALID_ORDER, "status": "lost"})

        with pytest.raises(AssertionError, match="not validated against enum 'Priority'; declared enums: Status"):
            outcome.assert_fails({"status": Priority})


class TestAssertHasRule:
    """Test assert_has_rule()."""

    def test_declared_string_rule(self, orders):
        """Should find declared rules even when validation passed."""
        outcome = orders.validate(VALID_ORDER)

        outcome.assert_has_rule("quantity", "min:1")
        outcome.assert_has_rule("email", "required")

    def test_declared_rule_object_and_class(self, orders):
        """Should match rule instances by equality and classes by isinstance."""
        outcome = orders.validate({})

        outcome.assert_has_rule("sku", Uppercase())
        outcome.assert_has_rule("sku", Uppercase)
        outcome.assert_has_rule("status", EnumRule(Status))

    def test_undeclared_rule(self, orders):
        """Should raise when the rule is not declared for the field."""
        outcome = orders.validate(VALID_ORDER)

        with pytest.raises(AssertionError, match="Rule 'max:255' is not declared for field 'email'"):
            outcome.assert_has_rule("email", "max:255")

    def test_field_without_rules(self, orders):
        """Should raise when the field has no rules at all."""
        with pytest.raises(AssertionError, match="Field 'phone' has no rules declared"):
            orders.validate(VALID_ORDER).assert_has_rule("phone", "required")


class TestAssertHasMessage:
    """Test assert_has_message()."""

    def test_message_anywhere(self, orders):
        outcome = orders.validate({**VALID_ORDER, "quantity": 0})

        outcome.assert_has_message("The quantity field must be at least 1.")

    def test_message_for_field(self, orders):
        outcome = orders.validate({})

        outcome.assert_has_message("The email field is required.", "email")

    def test_message_for_other_field(self, orders):
        """Should not find a message under the wrong field."""
        outcome = orders.validate({})

        with pytest.raises(AssertionError) as exc_info:
            outcome.assert_has_message("The email field is required.", "sku")

        assert "was not contained in the failed sku validation messages" in str(exc_info.value)


class TestAssertRulesWithoutFailures:
    """Test assert_rules_without_failures()."""

    def test_passing_outcome_records_an_assertion(self, orders):
        """Should succeed vacuously and still count an assertion."""
        outcome = orders.validate(VALID_ORDER)

        outcome.assert_rules_without_failures()

        assert outcome.assertions.count == 1

    def test_absent_constraints(self, orders):
        """Should succeed when the listed constraints did not fail."""
        outcome = orders.validate({**VALID_ORDER, "quantity": 0})

        outcome.assert_rules_without_failures({"quantity": "max", "email": "email", "sku": Uppercase})

    def test_present_constraint(self, orders):
        """Should raise when a listed constraint failed."""
        outcome = orders.validate({**VALID_ORDER, "quantity": 0})

        with pytest.raises(AssertionError, match="Field 'quantity' failed on 'min'"):
            outcome.assert_rules_without_failures({"quantity": "min"})

    def test_present_rule_class(self, orders):
        outcome = orders.validate({**VALID_ORDER, "sku": "abc"})

        with pytest.raises(AssertionError, match="Rule 'tests.app.uppercase' failed"):
            outcome.assert_rules_without_failures({"sku": Uppercase})


class TestOutcomeState:
    """Test outcome construction and state."""

    def test_passed_and_failed_flags(self, orders):
        assert orders.validate(VALID_ORDER).passed is True
        assert orders.validate({}).failed is True

    def test_missing_error_for_failed_validator(self):
        """Should refuse an outcome without an error for a failing validator."""
        with pytest.raises(ValueError):
            ValidationOutcome(Validator({}, {"email": "required"}))

    def test_error_for_passing_validator(self):
        """Should refuse an outcome with an error for a passing validator."""
        failing = Validator({}, {"email": "required"})
        passing = Validator({"email": "a@b.com"}, {"email": "required"})

        with pytest.raises(ValueError):
            ValidationOutcome(passing, ValidationError(failing))

    def test_chained_assertions(self, orders):
        """Should return the outcome from each assertion."""
        outcome = orders.validate({})

        result = outcome.assert_fails({"email": "required"}).assert_has_message("The sku field is required.")

        assert result is outcome

    def test_dd_failed_rules_prints_and_exits(self, orders, capsys):
        """Should print the failed rules and stop the session."""
        outcome = orders.validate({"email": "a@b.com", "sku": "ABC", "quantity": 1, "status": "lost"})

        with pytest.raises(pytest.exit.Exception):
            outcome.dd_failed_rules()

        assert json.loads(capsys.readouterr().out) == {"status": "enum"}
