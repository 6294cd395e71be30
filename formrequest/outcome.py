"""Assertions over the result of validating a form request.

A ValidationOutcome wraps a validator that has already run, plus the
ValidationError it raised when validation failed. Its assertions speak in
terms of the failed-rules map: each failed field mapped to the lower-cased
names of its failing rules, with parameters appended as ``:p1,p2``:

    {"email": "email", "name": "max:255", "code": "min:3alpha"}

Several failing rules on one field are concatenated without a separator
(``"min:3alpha"`` above); substring matching in ``assert_fails`` still finds
each of them.
"""

import enum
import json
from typing import Any, Dict, Mapping, NoReturn, Optional

import pytest
from typing_extensions import Self

from formrequest.assertions import Assertions
from formrequest.config import FormRequestSettings, get_settings
from formrequest.errors import ValidationError
from formrequest.rules import EnumRule, Rule
from formrequest.types import FailedRules, RuleFailure
from formrequest.validation import Validator


def _is_rule_class(constraint: Any) -> bool:
    return isinstance(constraint, type) and issubclass(constraint, Rule)


def _is_enum_class(constraint: Any) -> bool:
    return isinstance(constraint, type) and issubclass(constraint, enum.Enum)


class ValidationOutcome:
    """Result of ``FormRequestTester.validate``, with fluent assertions.

    Attributes:
        validator: The validator that ran
        failed_with: The captured ValidationError, or None if validation passed
        assertions: Counter of the checks performed so far

    Raises:
        ValueError: If ``failed_with`` disagrees with the validator's result
    """

    def __init__(
        self,
        validator: Validator,
        failed_with: Optional[ValidationError] = None,
        settings: Optional[FormRequestSettings] = None,
    ) -> None:
        if (failed_with is None) != validator.passes():
            raise ValueError(
                "Captured validation error does not agree with the validator's result"
            )
        self.validator = validator
        self.failed_with = failed_with
        self.settings = settings or get_settings()
        self.assertions = Assertions()

    @property
    def passed(self) -> bool:
        return self.failed_with is None

    @property
    def failed(self) -> bool:
        return self.failed_with is not None

    def _dump(self, value: Any) -> str:
        return json.dumps(value, indent=self.settings.dump_indent, default=str)

    def assert_passes(self) -> Self:
        """Assert the payload satisfied every rule."""
        __tracebackhide__ = True
        self.assertions.true(
            self.validator.passes(),
            "Validation of the payload:\n{}\ndid not pass validation rules\n{}\n".format(
                self._dump(self.validator.get_data()),
                self._dump(self.get_failed_rules()),
            ),
        )
        return self

    def assert_fails(self, expected_failed_rules: Optional[Mapping[str, Any]] = None) -> Self:
        """Assert validation failed, optionally on specific rules.

        Args:
            expected_failed_rules: Field to constraint. A constraint is a rule
                string matched as a substring of the field's failed rules, a
                ``Rule`` subclass whose failure name must be among the failed
                rules, an ``Enum`` subclass that an ``EnumRule`` declared for
                the field must use, or a list of any of these.
        """
        __tracebackhide__ = True
        self.assertions.true(
            self.validator.fails(),
            "Validation of the payload:\n{}\npassed but was expected to fail".format(
                self._dump(self.validator.get_data())
            ),
        )

        if not expected_failed_rules:
            return self

        failed_rules = self.get_failed_rules()
        for field, constraints in expected_failed_rules.items():
            if not isinstance(constraints, (list, tuple)):
                constraints = [constraints]
            for constraint in constraints:
                self._assert_rule_failed(field, constraint, failed_rules)
        return self

    def _assert_rule_failed(self, field: str, constraint: Any, failed_rules: FailedRules) -> None:
        __tracebackhide__ = True
        if _is_rule_class(constraint):
            name = constraint.failure_name().lower()
            self.assertions.contains(
                name,
                list(failed_rules.values()),
                f"Rule '{name}' did not fail\n{self._dump(failed_rules)}",
            )
            return

        if _is_enum_class(constraint):
            self._assert_enum_rule_failed(field, constraint, failed_rules)
            return

        self.assertions.contains(
            field,
            failed_rules,
            f"Field '{field}' did not fail validation\n{self._dump(failed_rules)}",
        )
        self.assertions.contains(
            str(constraint),
            failed_rules[field],
            f"Field '{field}' did not fail on '{constraint}'; failed rules: '{failed_rules[field]}'",
        )

    def _assert_enum_rule_failed(self, field: str, enum_type: type, failed_rules: FailedRules) -> None:
        __tracebackhide__ = True
        self.assertions.contains(
            field,
            failed_rules,
            f"Field '{field}' did not fail validation\n{self._dump(failed_rules)}",
        )
        enum_rules = [rule for rule in self.validator.rules_for(field) if isinstance(rule, EnumRule)]
        used = [rule.enum_type.__name__ for rule in enum_rules]
        self.assertions.true(
            any(rule.enum_type is enum_type for rule in enum_rules),
            f"Field '{field}' is not validated against enum '{enum_type.__name__}'"
            + (f"; declared enums: {', '.join(used)}" if used else ""),
        )

    def assert_has_rule(self, field: str, rule: Any) -> Self:
        """Assert ``rule`` is declared for ``field``, whether or not it ran.

        Args:
            field: The field name
            rule: A rule string (``"max:255"``), a rule instance, or a rule class
        """
        __tracebackhide__ = True
        declared = self.validator.declared_rules()
        self.assertions.contains(
            field,
            declared,
            f"Field '{field}' has no rules declared\n{self._dump(sorted(declared))}",
        )

        field_rules = declared[field]
        if _is_rule_class(rule):
            found = any(isinstance(r, rule) for r in field_rules)
        else:
            found = rule in field_rules
        self.assertions.true(
            found,
            "Rule {!r} is not declared for field '{}'\n{}".format(
                rule, field, self._dump([str(r) for r in field_rules])
            ),
        )
        return self

    def assert_has_message(self, message: str, field: Optional[str] = None) -> Self:
        """Assert ``message`` is among the rendered messages, optionally for one field."""
        __tracebackhide__ = True
        messages = self.validator.messages()
        if field is not None:
            candidates = messages.get(field, [])
        else:
            candidates = [m for field_messages in messages.values() for m in field_messages]

        self.assertions.contains(
            message,
            candidates,
            '"{}" was not contained in the failed{} validation messages\n{}'.format(
                message,
                f" {field}" if field else "",
                self._dump(candidates),
            ),
        )
        return self

    def assert_rules_without_failures(self, expected_rules: Optional[Mapping[str, Any]] = None) -> Self:
        """Assert none of the given constraints failed.

        A passing validator satisfies this trivially; the check is still
        counted so the test does not look assertion-free.
        """
        __tracebackhide__ = True
        if self.validator.passes():
            self.assertions.record()
            return self

        failed_rules = self.get_failed_rules()
        for field, constraints in (expected_rules or {}).items():
            if not isinstance(constraints, (list, tuple)):
                constraints = [constraints]
            for constraint in constraints:
                if _is_rule_class(constraint):
                    name = constraint.failure_name().lower()
                    self.assertions.not_contains(
                        name,
                        list(failed_rules.values()),
                        f"Rule '{name}' failed\n{self._dump(failed_rules)}",
                    )
                else:
                    self.assertions.not_contains(
                        str(constraint),
                        failed_rules.get(field, ""),
                        f"Field '{field}' failed on '{constraint}'; failed rules: '{failed_rules.get(field)}'",
                    )
        return self

    def get_failed_rules(self) -> FailedRules:
        """Return field -> concatenated ``rule[:params]`` strings; ``{}`` if validation passed."""
        if self.failed_with is None:
            return {}

        failed_rules: Dict[str, str] = {}
        for field, records in self.validator.failed().items():
            failed_rules[field] = "".join(
                RuleFailure(rule=rule, parameters=parameters).canonical()
                for rule, parameters in records.items()
            )
        return failed_rules

    def dd_failed_rules(self) -> NoReturn:
        """Print the failed-rules map and stop the test session."""
        print(self._dump(self.get_failed_rules()))
        pytest.exit("dd_failed_rules", returncode=1)


__all__ = [
    "ValidationOutcome",
]
