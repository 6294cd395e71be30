"""Core type definitions for formrequest.

This module defines the small vocabulary shared by the host layer and the
testing helpers:
- SizeKind: How size-based rules (min, max, size, between) measure a value
- RuleFailure: A single failed rule with its parameters
- ControllerAction: A resolved controller reference (class path + method)
- Type aliases for resolvers and rule declarations

These types keep the validator, the request, and the assertion helpers
speaking the same language about failures and routes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union


class SizeKind(str, Enum):
    """How a size rule measures the value under validation.

    Strings are measured by length, numbers by value, and lists or mappings
    by item count. The kind also selects which message template is rendered.
    """
    STRING = "string"
    NUMERIC = "numeric"
    ARRAY = "array"


@dataclass(frozen=True)
class RuleFailure:
    """One failed rule on one field.

    Attributes:
        rule: StudlyCase rule name (e.g., "Required", "Max", "DateFormat")
        parameters: Rule parameters in declaration order, as strings

    Examples:
        >>> failure = RuleFailure(rule="Max", parameters=["255"])
        >>> failure.canonical()
        'max:255'
    """
    rule: str
    parameters: List[str] = field(default_factory=list)

    def canonical(self) -> str:
        """Render as the lower-cased ``name:p1,p2`` form."""
        name = self.rule.lower()
        if self.parameters:
            name += ":" + ",".join(str(p) for p in self.parameters)
        return name


@dataclass(frozen=True)
class ControllerAction:
    """A controller reference split into its class path and method name.

    Attributes:
        controller: Dotted import path of the controller class, or the class
        method: Name of the action method ("__call__" for invokable controllers)
    """
    controller: Any
    method: str = "__call__"

    @classmethod
    def parse(cls, reference: str) -> "ControllerAction":
        """Split a ``"pkg.module.Controller@method"`` reference.

        A reference without ``@`` names an invokable controller.
        """
        if "@" in reference:
            controller, method = reference.split("@", 1)
            return cls(controller=controller, method=method)
        return cls(controller=reference)

    def __str__(self) -> str:
        controller = self.controller
        if isinstance(controller, type):
            controller = qualified_name(controller)
        return f"{controller}@{self.method}"


def qualified_name(obj: Any) -> str:
    """Return ``module.QualName`` for a class or function."""
    return f"{obj.__module__}.{obj.__qualname__}"


# A user resolver receives an optional guard name and returns a user or None.
UserResolver = Callable[..., Any]

# A route resolver returns the route bound to a request, if any.
RouteResolver = Callable[[], Any]

# Rules as declared by a form request: "required|email" or a list of
# strings and rule objects.
RuleDeclaration = Union[str, Sequence[Any]]
RuleSet = Mapping[str, RuleDeclaration]

# field -> {StudlyRuleName: [parameters]}
FailureRecords = Dict[str, Dict[str, List[str]]]

# field -> [rendered messages]
MessageMap = Dict[str, List[str]]

# field -> concatenated canonical failure strings
FailedRules = Dict[str, str]

Guard = Optional[str]


__all__ = [
    "SizeKind",
    "RuleFailure",
    "ControllerAction",
    "qualified_name",
    "UserResolver",
    "RouteResolver",
    "RuleDeclaration",
    "RuleSet",
    "FailureRecords",
    "MessageMap",
    "FailedRules",
    "Guard",
]
