"""Rule-based validation engine for form requests.

This module provides a Validator that checks request data against per-field
rule declarations and records structured failures: for every failed field,
the StudlyCase name of each failing rule and that rule's parameters. The
failure records feed both the rendered messages and the failed-rules map the
testing helpers assert on.

Rules run lazily on the first query (``passes``, ``fails``, ``failed``,
``messages``, ``validate``) and the outcome is cached for the lifetime of the
validator.
"""

import copy
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import structlog

from formrequest.errors import ValidationError
from formrequest.messages import default_template, placeholders, render
from formrequest.rules import (
    MARKER_RULES,
    DeclaredRule,
    ParsedRule,
    Rule,
    is_implicit,
    parse_rules,
    run_rule,
    size_kind,
)
from formrequest.types import FailureRecords, MessageMap, RuleSet

logger = structlog.get_logger(__name__)

_MISSING = object()


def data_get(data: Any, key: str, default: Any = None) -> Any:
    """Read a dot-notation key (``"address.city"``, ``"items.0"``) from nested data."""
    current = data
    for segment in key.split("."):
        if isinstance(current, Mapping) and segment in current:
            current = current[segment]
        elif isinstance(current, (list, tuple)) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return default
    return current


def data_set(target: Dict[str, Any], key: str, value: Any) -> None:
    """Write a dot-notation key into nested data, creating dict levels as needed.

    Numeric segments index into existing lists. A key that cannot be reached
    (a non-numeric segment on a list, an index out of range, a scalar level)
    is left unwritten.
    """
    segments = key.split(".")
    current: Any = target
    for segment in segments[:-1]:
        if isinstance(current, list):
            if not segment.isdigit() or int(segment) >= len(current):
                return
            current = current[int(segment)]
        elif isinstance(current, dict):
            current = current.setdefault(segment, {})
        else:
            return

    last = segments[-1]
    if isinstance(current, list):
        if last.isdigit() and int(last) < len(current):
            current[int(last)] = value
    elif isinstance(current, dict):
        current[last] = value


class Validator:
    """Validates a data mapping against per-field rules.

    Attributes:
        data: The data under validation
        custom_messages: Message overrides keyed by ``"field.rule"`` or ``"rule"``
        custom_attributes: Display names for fields used in messages

    Examples:
        >>> validator = Validator({"email": "not-an-email"}, {"email": "required|email"})
        >>> validator.fails()
        True
        >>> validator.failed()
        {'email': {'Email': []}}
        >>> validator.messages()
        {'email': ['The email field must be a valid email address.']}
    """

    def __init__(
        self,
        data: Optional[Mapping[str, Any]],
        rules: RuleSet,
        messages: Optional[Mapping[str, str]] = None,
        attributes: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Initialize the validator and parse the rule declarations.

        Args:
            data: The data to validate
            rules: Field name to rule declaration (string or list)
            messages: Optional message overrides
            attributes: Optional field display names

        Raises:
            InvalidRuleError: If a declaration names an unknown rule
        """
        self.data: Dict[str, Any] = dict(data or {})
        self._rules: Dict[str, List[DeclaredRule]] = {
            field: parse_rules(field, declaration) for field, declaration in rules.items()
        }
        self.custom_messages: Dict[str, str] = dict(messages or {})
        self.custom_attributes: Dict[str, str] = dict(attributes or {})
        self._failures: Optional[FailureRecords] = None
        self._messages: MessageMap = {}
        self._validated: Dict[str, Any] = {}

    # Data access used by rules

    def has_value(self, attribute: str) -> bool:
        return data_get(self.data, attribute, _MISSING) is not _MISSING

    def get_value(self, attribute: str) -> Any:
        return data_get(self.data, attribute)

    def has_rule(self, attribute: str, names: Iterable[str]) -> bool:
        names = set(names)
        return any(
            isinstance(rule, ParsedRule) and rule.name in names
            for rule in self._rules.get(attribute, [])
        )

    def get_data(self) -> Dict[str, Any]:
        return self.data

    # Results

    def passes(self) -> bool:
        self._run()
        return not self._failures

    def fails(self) -> bool:
        return not self.passes()

    def validate(self) -> Dict[str, Any]:
        """Run validation, returning the validated data.

        Raises:
            ValidationError: If any rule failed
        """
        if self.fails():
            raise ValidationError(self)
        return self.validated()

    def validated(self) -> Dict[str, Any]:
        """Return the data for fields that have rules and passed them.

        Raises:
            ValidationError: If any rule failed
        """
        if self.fails():
            raise ValidationError(self)
        return copy.deepcopy(self._validated)

    def failed(self) -> FailureRecords:
        """Return failure records: field -> {StudlyRuleName: [parameters]}."""
        self._run()
        return copy.deepcopy(self._failures)

    def messages(self) -> MessageMap:
        self._run()
        return {field: list(messages) for field, messages in self._messages.items()}

    errors = messages

    def declared_rules(self) -> Dict[str, List[Union[str, Rule]]]:
        """Return the rules declared for every field, whether or not they ran.

        String rules are normalized to ``name`` or ``name:p1,p2``; rule objects
        are returned as-is. This is the entry point the testing helpers use
        to inspect declared rules.
        """
        return {
            field: [str(rule) if isinstance(rule, ParsedRule) else rule for rule in rules]
            for field, rules in self._rules.items()
        }

    def rules_for(self, attribute: str) -> List[DeclaredRule]:
        return list(self._rules.get(attribute, []))

    def display_name(self, attribute: str) -> str:
        if attribute in self.custom_attributes:
            return self.custom_attributes[attribute]
        return attribute.replace("_", " ")

    # Engine

    def _run(self) -> None:
        if self._failures is not None:
            return

        failures: FailureRecords = {}
        messages: MessageMap = {}
        validated: Dict[str, Any] = {}

        for attribute, rules in self._rules.items():
            markers = {rule.name for rule in rules if isinstance(rule, ParsedRule) and rule.name in MARKER_RULES}
            present = self.has_value(attribute)
            if "sometimes" in markers and not present:
                continue

            value = self.get_value(attribute)
            for rule in rules:
                if isinstance(rule, ParsedRule) and rule.name in MARKER_RULES:
                    continue
                if not self._should_run(rule, present, value, markers):
                    continue

                if isinstance(rule, Rule):
                    passed = rule.passes(attribute, value)
                    name, parameters = rule.failure_name(), rule.failure_parameters()
                else:
                    passed = run_rule(self, attribute, value, rule)
                    name, parameters = rule.studly, list(rule.parameters)
                if passed:
                    continue

                failures.setdefault(attribute, {})[name] = [str(p) for p in parameters]
                messages.setdefault(attribute, []).append(self._make_message(attribute, rule, value))
                if "bail" in markers:
                    break

            if attribute not in failures and present:
                data_set(validated, attribute, copy.deepcopy(value))

        self._failures = failures
        self._messages = messages
        self._validated = validated

        if failures:
            logger.debug("validation_failed", fields=list(failures))
        else:
            logger.debug("validation_passed", fields=list(self._rules))

    @staticmethod
    def _should_run(rule: DeclaredRule, present: bool, value: Any, markers: set) -> bool:
        if is_implicit(rule):
            return True
        if value is None and "nullable" in markers:
            return False
        if isinstance(value, str) and value.strip() == "":
            return False
        return present

    def _make_message(self, attribute: str, rule: DeclaredRule, value: Any) -> str:
        display = self.display_name(attribute)
        if isinstance(rule, Rule):
            return render(rule.message(), display)

        template = self.custom_messages.get(f"{attribute}.{rule.name}") or self.custom_messages.get(rule.name)
        if template is None:
            template = default_template(rule.name, size_kind(self, attribute, value))
        return render(template, display, placeholders(rule.name, rule.parameters, self.display_name))


__all__ = [
    "Validator",
    "data_get",
    "data_set",
]
