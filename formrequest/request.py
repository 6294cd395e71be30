"""Form request base class.

A form request bundles everything needed to accept one kind of incoming
request: the input it carries, the route it arrived on, the user making it,
the rules its input must satisfy, and the authorization check the user must
pass.

Subclasses override ``rules`` and usually ``authorize``:

    >>> class StoreOrderRequest(FormRequest):
    ...     def authorize(self):
    ...         return self.user() is not None
    ...
    ...     def rules(self):
    ...         return {"sku": "required|string", "quantity": "required|integer|min:1"}

In application code ``validate_resolved()`` runs the normal pipeline
(authorize, then validate). Tests call the two entry points separately,
``passes_authorization()`` and ``make_validator()``, usually through
``formrequest.harness.FormRequestTester``.
"""

from typing import Any, Dict, Mapping, Optional

import structlog

from formrequest.errors import AuthorizationError
from formrequest.gate import Gate
from formrequest.routing import Route
from formrequest.types import Guard, RouteResolver, RuleSet, UserResolver
from formrequest.validation import Validator, data_get

logger = structlog.get_logger(__name__)


class FormRequest:
    """Base class for validated, authorized requests.

    Attributes:
        headers: Request headers (keys compared case-insensitively)
        query: Query string parameters
        gate: The authorization gate abilities are checked against
    """

    validator_class = Validator

    def __init__(
        self,
        data: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        gate: Optional[Gate] = None,
    ) -> None:
        self._input: Dict[str, Any] = dict(data or {})
        self.query: Dict[str, Any] = dict(query or {})
        self.headers: Dict[str, str] = {k.lower(): v for k, v in (headers or {}).items()}
        self.gate = gate if gate is not None else Gate()
        self._route_resolver: RouteResolver = lambda: None
        self._user_resolver: UserResolver = lambda guard=None: None
        self._validator: Optional[Validator] = None

    # Input

    def all(self) -> Dict[str, Any]:
        """Return query parameters merged with (and overridden by) the body input."""
        return {**self.query, **self._input}

    def input(self, key: Optional[str] = None, default: Any = None) -> Any:
        if key is None:
            return self.all()
        return data_get(self.all(), key, default)

    def has(self, key: str) -> bool:
        sentinel = object()
        return data_get(self.all(), key, sentinel) is not sentinel

    def replace(self, data: Mapping[str, Any]) -> "FormRequest":
        self._input = dict(data)
        return self

    def merge(self, data: Mapping[str, Any]) -> "FormRequest":
        self._input.update(data)
        return self

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)

    # Route and user

    def set_route_resolver(self, resolver: RouteResolver) -> "FormRequest":
        self._route_resolver = resolver
        return self

    def route(self, param: Optional[str] = None, default: Any = None) -> Any:
        """Return the bound route, or one of its parameters when ``param`` is given."""
        route: Optional[Route] = self._route_resolver()
        if param is None:
            return route
        if route is None:
            return default
        return route.parameter(param, default)

    def set_user_resolver(self, resolver: UserResolver) -> "FormRequest":
        self._user_resolver = resolver
        return self

    def get_user_resolver(self) -> UserResolver:
        return self._user_resolver

    def user(self, guard: Guard = None) -> Any:
        """Resolve the current user, optionally through a named guard."""
        return self._user_resolver(guard)

    # Hooks for subclasses

    def rules(self) -> RuleSet:
        return {}

    def authorize(self) -> bool:
        return True

    def messages(self) -> Mapping[str, str]:
        return {}

    def attributes(self) -> Mapping[str, str]:
        return {}

    def prepare_for_validation(self) -> None:
        """Adjust input before the validator is built (e.g. normalize casing)."""

    def validation_data(self) -> Dict[str, Any]:
        return self.all()

    # Entry points

    def make_validator(self) -> Validator:
        """Build a fresh validator from the current input and rules.

        This is the construction step of the normal pipeline, exposed so tests
        can inspect a validator without authorizing first.
        """
        self.prepare_for_validation()
        return self.validator_class(
            self.validation_data(),
            self.rules(),
            self.messages(),
            self.attributes(),
        )

    def passes_authorization(self) -> bool:
        """Run ``authorize`` and return its verdict as a bool."""
        return bool(self.authorize())

    def validate_resolved(self) -> Dict[str, Any]:
        """Authorize, then validate. Returns the validated data.

        Raises:
            AuthorizationError: If ``authorize`` denies the request
            ValidationError: If the input fails its rules
        """
        if not self.passes_authorization():
            logger.info("form_request_unauthorized", request=type(self).__name__)
            raise AuthorizationError()

        self._validator = self.make_validator()
        return self._validator.validate()

    def validated(self) -> Dict[str, Any]:
        """Return validated data, resolving the request first if needed."""
        if self._validator is None:
            return self.validate_resolved()
        return self._validator.validated()


__all__ = [
    "FormRequest",
]
