"""formrequest: validated, authorized form requests and the tools to test them.

formrequest provides:
- FormRequest base class bundling input, route, user, rules, and authorization
- Rule-based Validator with structured failure records and rendered messages
- Gate authorization registry passed explicitly to each request
- Router route table mapping names and paths to controller actions
- Test helpers that exercise a form request without an HTTP server

Basic usage:
    >>> from formrequest import FormRequest, make_form_request
    >>> class SubscribeRequest(FormRequest):
    ...     def rules(self):
    ...         return {"email": "required|email"}
    >>> outcome = make_form_request(SubscribeRequest).validate({"email": "not-an-email"})
    >>> outcome.get_failed_rules()
    {'email': 'email'}
"""

__version__ = "0.1.0"

# Version info
VERSION = (0, 1, 0)

# Core exports
from formrequest.errors import (
    AuthorizationError,
    FormRequestError,
    InvalidRuleError,
    RouteNotFoundError,
    ValidationError,
)
from formrequest.gate import Gate
from formrequest.harness import FormRequestTester, make_form_request
from formrequest.outcome import ValidationOutcome
from formrequest.request import FormRequest
from formrequest.route_assertions import RouteBindingChecker
from formrequest.routing import Route, Router
from formrequest.rules import EnumRule, Rule
from formrequest.validation import Validator

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "FormRequest",
    "Validator",
    "Rule",
    "EnumRule",
    "Gate",
    "Route",
    "Router",
    "FormRequestTester",
    "make_form_request",
    "ValidationOutcome",
    "RouteBindingChecker",
    "FormRequestError",
    "ValidationError",
    "AuthorizationError",
    "RouteNotFoundError",
    "InvalidRuleError",
]
