"""Exception types raised by the formrequest host layer.

Two failure categories exist when testing a form request:

1. Expected validation failure: ``ValidationError`` is raised by
   ``Validator.validate()`` and captured by the testing harness as data.
2. Assertion failure: raised as ``AssertionError`` by the testing helpers.

Everything else in this module describes a misconfigured request, rule set,
or route table and is raised to the caller unchanged.
"""

from typing import Any, Dict, List, Optional


class FormRequestError(Exception):
    """Base class for all formrequest errors."""


class ValidationError(FormRequestError):
    """Raised when data fails its validation rules.

    Attributes:
        validator: The validator that produced the failure
        errors: Rendered messages per field

    Examples:
        >>> from formrequest.validation import Validator
        >>> validator = Validator({}, {"email": "required"})
        >>> try:
        ...     validator.validate()
        ... except ValidationError as exc:
        ...     exc.errors
        {'email': ['The email field is required.']}
    """

    def __init__(self, validator: Any, message: Optional[str] = None):
        self.validator = validator
        self.errors: Dict[str, List[str]] = validator.messages()
        super().__init__(message or self._summarize(self.errors))

    @staticmethod
    def _summarize(errors: Dict[str, List[str]]) -> str:
        messages = [m for field_messages in errors.values() for m in field_messages]
        if not messages:
            return "The given data was invalid."
        summary = messages[0]
        remaining = len(messages) - 1
        if remaining:
            plural = "error" if remaining == 1 else "errors"
            summary += f" (and {remaining} more {plural})"
        return summary


class AuthorizationError(FormRequestError):
    """Raised when a request or gate check denies the current user.

    Attributes:
        ability: The gate ability that was denied, if any
    """

    def __init__(self, message: str = "This action is unauthorized.", ability: Optional[str] = None):
        self.ability = ability
        super().__init__(message)


class RouteNotFoundError(FormRequestError):
    """Raised when no route matches a method and path."""

    def __init__(self, method: str, path: str):
        self.method = method
        self.path = path
        super().__init__(f"No route matches {method.upper()} {path}")


class InvalidRuleError(FormRequestError):
    """Raised when a rule declaration names an unknown rule or is malformed.

    Attributes:
        rule: The offending rule declaration
        field: The field the rule was declared for
    """

    def __init__(self, rule: Any, field: str, reason: str = "unknown rule"):
        self.rule = rule
        self.field = field
        super().__init__(f"Invalid rule {rule!r} for field '{field}': {reason}")


__all__ = [
    "FormRequestError",
    "ValidationError",
    "AuthorizationError",
    "RouteNotFoundError",
    "InvalidRuleError",
]
