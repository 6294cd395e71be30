"""Validation rules for form requests.

Rules are declared per field either as a pipe-delimited string or as a list
mixing rule strings and rule objects:

    >>> rules = {
    ...     "email": "required|email|max:255",
    ...     "status": ["required", EnumRule(Status)],
    ... }

A rule string is ``name`` or ``name:param1,param2``. ``regex`` and
``date_format`` take everything after the first colon as one parameter so
patterns and formats may contain commas.

Format checks (email, uuid, ipv4, ipv6) are delegated to jsonschema's
FormatChecker and date parsing to python-dateutil, so the rules agree with
the rest of the validation stack on what a valid email or date is.
"""

import enum
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from dateutil import parser as date_parser
from jsonschema import FormatChecker

from formrequest.errors import InvalidRuleError
from formrequest.types import SizeKind, qualified_name

_format_checker = FormatChecker()

_NUMERIC_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

ACCEPTED_VALUES = ("yes", "on", "1", 1, True, "true")
BOOLEAN_VALUES = (True, False, 0, 1, "0", "1")

# Rules that only change how other rules run; they never fail.
MARKER_RULES = frozenset({"nullable", "sometimes", "bail"})

# Rules whose failure message depends on the size kind of the value.
SIZE_RULES = frozenset({"min", "max", "size", "between"})

NUMERIC_RULES = frozenset({"numeric", "integer"})

# Rules whose single parameter may contain commas.
_UNSPLIT_PARAMETER_RULES = frozenset({"regex", "date_format"})


class Rule:
    """Base class for rule objects.

    Subclasses implement ``passes``; failures are recorded under
    ``failure_name()`` and rendered with ``message()``. Implicit rules run
    even when the value is missing or empty.

    Examples:
        >>> class Uppercase(Rule):
        ...     def passes(self, attribute, value):
        ...         return isinstance(value, str) and value.upper() == value
        ...
        ...     def message(self):
        ...         return "The :attribute must be uppercase."
    """

    implicit = False

    def passes(self, attribute: str, value: Any) -> bool:
        raise NotImplementedError

    def message(self) -> str:
        return "The :attribute field is invalid."

    @classmethod
    def failure_name(cls) -> str:
        """Name the failure is recorded under in ``Validator.failed()``."""
        return qualified_name(cls)

    def failure_parameters(self) -> List[str]:
        return []

    def __eq__(self, other: Any) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash(type(self))

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({params})"


class EnumRule(Rule):
    """Require the value to be a member (or member value) of an enum type."""

    def __init__(self, enum_type: type):
        if not (isinstance(enum_type, type) and issubclass(enum_type, enum.Enum)):
            raise TypeError(f"{enum_type!r} is not an Enum type")
        self.enum_type = enum_type

    def passes(self, attribute: str, value: Any) -> bool:
        if isinstance(value, self.enum_type):
            return True
        return any(member.value == value for member in self.enum_type)

    def message(self) -> str:
        return "The selected :attribute is invalid."

    @classmethod
    def failure_name(cls) -> str:
        return "Enum"


@dataclass(frozen=True)
class ParsedRule:
    """A rule string split into its name and parameters.

    Attributes:
        name: snake_case rule name as declared (e.g., "date_format")
        parameters: Parameters in declaration order
    """
    name: str
    parameters: List[str] = field(default_factory=list)

    @property
    def studly(self) -> str:
        """StudlyCase name used as the failure key (``date_format`` -> ``DateFormat``)."""
        return "".join(part.capitalize() for part in self.name.split("_"))

    def __str__(self) -> str:
        if not self.parameters:
            return self.name
        return f"{self.name}:{','.join(self.parameters)}"


DeclaredRule = Union[ParsedRule, Rule]


@dataclass(frozen=True)
class _RuleDefinition:
    check: Callable[..., bool]
    implicit: bool = False
    min_parameters: int = 0


_REGISTRY: Dict[str, _RuleDefinition] = {}


def _rule(name: str, implicit: bool = False, min_parameters: int = 0):
    def decorator(func: Callable[..., bool]) -> Callable[..., bool]:
        _REGISTRY[name] = _RuleDefinition(check=func, implicit=implicit, min_parameters=min_parameters)
        return func
    return decorator


def is_known_rule(name: str) -> bool:
    return name in _REGISTRY or name in MARKER_RULES


def is_implicit(rule: DeclaredRule) -> bool:
    """Whether the rule runs when the value is missing or empty."""
    if isinstance(rule, Rule):
        return rule.implicit
    definition = _REGISTRY.get(rule.name)
    return definition is not None and definition.implicit


def parse_rule(field_name: str, rule: str) -> ParsedRule:
    """Parse one ``name:params`` rule string.

    Raises:
        InvalidRuleError: If the name is unknown or parameters are missing
    """
    name, _, raw = rule.strip().partition(":")
    name = name.strip().lower()
    if not is_known_rule(name):
        raise InvalidRuleError(rule, field_name)

    if not raw:
        parameters: List[str] = []
    elif name in _UNSPLIT_PARAMETER_RULES:
        parameters = [raw]
    else:
        parameters = [p.strip() for p in raw.split(",")]

    definition = _REGISTRY.get(name)
    if definition is not None and len(parameters) < definition.min_parameters:
        raise InvalidRuleError(
            rule,
            field_name,
            f"requires at least {definition.min_parameters} parameter(s)",
        )
    if name in SIZE_RULES and not all(is_numeric(p) for p in parameters):
        raise InvalidRuleError(rule, field_name, "size parameters must be numeric")
    return ParsedRule(name=name, parameters=parameters)


def parse_rules(field_name: str, declaration: Any) -> List[DeclaredRule]:
    """Normalize a field's rule declaration into a list of parsed rules.

    Args:
        field_name: Field the rules are declared for (used in error messages)
        declaration: ``"required|email"``, a rule object, or a list of both

    Returns:
        ParsedRule and Rule instances in declaration order
    """
    if isinstance(declaration, str):
        items: Sequence[Any] = [part for part in declaration.split("|") if part.strip()]
    elif isinstance(declaration, Rule):
        items = [declaration]
    else:
        items = list(declaration)

    parsed: List[DeclaredRule] = []
    for item in items:
        if isinstance(item, Rule):
            parsed.append(item)
        elif isinstance(item, str):
            # A pipe inside a list item still separates rules, except for regex.
            if "|" in item and not item.lstrip().lower().startswith("regex:"):
                parsed.extend(parse_rules(field_name, item))
            else:
                parsed.append(parse_rule(field_name, item))
        elif isinstance(item, type) and issubclass(item, Rule):
            raise InvalidRuleError(item, field_name, "rule classes must be instantiated")
        else:
            raise InvalidRuleError(item, field_name, "expected a rule string or Rule instance")
    return parsed


def run_rule(validator: Any, attribute: str, value: Any, rule: ParsedRule) -> bool:
    """Run a built-in rule against a value."""
    definition = _REGISTRY.get(rule.name)
    if definition is None:
        return True
    return bool(definition.check(validator, attribute, value, rule.parameters))


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_numeric(value: Any) -> bool:
    if _is_number(value):
        return True
    return isinstance(value, str) and bool(_NUMERIC_PATTERN.match(value.strip()))


def size_kind(validator: Any, attribute: str, value: Any) -> SizeKind:
    """Decide how size rules measure ``value``."""
    if isinstance(value, (list, tuple, dict, set)):
        return SizeKind.ARRAY
    if _is_number(value):
        return SizeKind.NUMERIC
    if validator.has_rule(attribute, NUMERIC_RULES) and is_numeric(value):
        return SizeKind.NUMERIC
    return SizeKind.STRING


def measure(validator: Any, attribute: str, value: Any) -> float:
    kind = size_kind(validator, attribute, value)
    if kind is SizeKind.NUMERIC:
        return float(value)
    if kind is SizeKind.ARRAY:
        return len(value)
    return len(str(value))


def parse_date(value: Any) -> Optional[datetime]:
    """Parse a date-like value with dateutil, returning None when unparseable."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError):
        return None


def _compare_dates(validator: Any, value: Any, reference: str) -> Optional[int]:
    left = parse_date(value)
    # The reference may name another field instead of a literal date.
    right = parse_date(validator.get_value(reference)) if validator.has_value(reference) else None
    if right is None:
        right = parse_date(reference)
    if left is None or right is None:
        return None
    if (left.tzinfo is None) != (right.tzinfo is None):
        left = left.replace(tzinfo=None)
        right = right.replace(tzinfo=None)
    return (left > right) - (left < right)


def _loose_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        value = value.value
    return str(value)


# Presence

@_rule("required", implicit=True)
def _required(validator, attribute, value, parameters) -> bool:
    return validator.has_value(attribute) and not is_empty(value)


@_rule("required_with", implicit=True, min_parameters=1)
def _required_with(validator, attribute, value, parameters) -> bool:
    others_present = any(not is_empty(validator.get_value(other)) for other in parameters)
    if not others_present:
        return True
    return not is_empty(value)


@_rule("required_if", implicit=True, min_parameters=2)
def _required_if(validator, attribute, value, parameters) -> bool:
    other, expected = parameters[0], parameters[1:]
    if _loose_string(validator.get_value(other)) not in expected:
        return True
    return not is_empty(value)


@_rule("accepted", implicit=True)
def _accepted(validator, attribute, value, parameters) -> bool:
    return value in ACCEPTED_VALUES


# Types

@_rule("string")
def _string(validator, attribute, value, parameters) -> bool:
    return isinstance(value, str)


@_rule("integer")
def _integer(validator, attribute, value, parameters) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and bool(_INTEGER_PATTERN.match(value.strip()))


@_rule("numeric")
def _numeric(validator, attribute, value, parameters) -> bool:
    return is_numeric(value)


@_rule("boolean")
def _boolean(validator, attribute, value, parameters) -> bool:
    return any(value is v or (type(value) is type(v) and value == v) for v in BOOLEAN_VALUES)


@_rule("array")
def _array(validator, attribute, value, parameters) -> bool:
    return isinstance(value, (list, tuple, dict))


# Formats

def _conforms(value: Any, format_name: str) -> bool:
    return isinstance(value, str) and _format_checker.conforms(value, format_name)


@_rule("email")
def _email(validator, attribute, value, parameters) -> bool:
    return _conforms(value, "email")


@_rule("uuid")
def _uuid(validator, attribute, value, parameters) -> bool:
    return _conforms(value, "uuid")


@_rule("ipv4")
def _ipv4(validator, attribute, value, parameters) -> bool:
    return _conforms(value, "ipv4")


@_rule("ipv6")
def _ipv6(validator, attribute, value, parameters) -> bool:
    return _conforms(value, "ipv6")


@_rule("alpha")
def _alpha(validator, attribute, value, parameters) -> bool:
    return isinstance(value, str) and value.isalpha()


@_rule("alpha_num")
def _alpha_num(validator, attribute, value, parameters) -> bool:
    return isinstance(value, str) and value.isalnum()


@_rule("regex", min_parameters=1)
def _regex(validator, attribute, value, parameters) -> bool:
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        return False
    return re.search(parameters[0], str(value)) is not None


# Dates

@_rule("date")
def _date(validator, attribute, value, parameters) -> bool:
    return parse_date(value) is not None


@_rule("date_format", min_parameters=1)
def _date_format(validator, attribute, value, parameters) -> bool:
    if not isinstance(value, str):
        return False
    try:
        datetime.strptime(value, parameters[0])
    except ValueError:
        return False
    return True


@_rule("after", min_parameters=1)
def _after(validator, attribute, value, parameters) -> bool:
    return _compare_dates(validator, value, parameters[0]) == 1


@_rule("before", min_parameters=1)
def _before(validator, attribute, value, parameters) -> bool:
    return _compare_dates(validator, value, parameters[0]) == -1


# Sizes

@_rule("min", min_parameters=1)
def _min(validator, attribute, value, parameters) -> bool:
    return measure(validator, attribute, value) >= float(parameters[0])


@_rule("max", min_parameters=1)
def _max(validator, attribute, value, parameters) -> bool:
    return measure(validator, attribute, value) <= float(parameters[0])


@_rule("size", min_parameters=1)
def _size(validator, attribute, value, parameters) -> bool:
    return measure(validator, attribute, value) == float(parameters[0])


@_rule("between", min_parameters=2)
def _between(validator, attribute, value, parameters) -> bool:
    size = measure(validator, attribute, value)
    return float(parameters[0]) <= size <= float(parameters[1])


# Membership and comparison

@_rule("in", min_parameters=1)
def _in(validator, attribute, value, parameters) -> bool:
    if isinstance(value, (list, tuple)):
        return all(_loose_string(item) in parameters for item in value)
    return _loose_string(value) in parameters


@_rule("not_in", min_parameters=1)
def _not_in(validator, attribute, value, parameters) -> bool:
    return not _in(validator, attribute, value, parameters)


@_rule("confirmed")
def _confirmed(validator, attribute, value, parameters) -> bool:
    return validator.get_value(f"{attribute}_confirmation") == value


@_rule("same", min_parameters=1)
def _same(validator, attribute, value, parameters) -> bool:
    return validator.get_value(parameters[0]) == value


@_rule("different", min_parameters=1)
def _different(validator, attribute, value, parameters) -> bool:
    return validator.get_value(parameters[0]) != value


__all__ = [
    "Rule",
    "EnumRule",
    "ParsedRule",
    "DeclaredRule",
    "MARKER_RULES",
    "SIZE_RULES",
    "NUMERIC_RULES",
    "parse_rule",
    "parse_rules",
    "run_rule",
    "is_implicit",
    "is_known_rule",
    "is_empty",
    "is_numeric",
    "size_kind",
    "measure",
    "parse_date",
]
