"""Test harness for exercising a form request in isolation.

The harness drives a FormRequest without dispatching an HTTP request: it
replaces the input, sets route parameters, impersonates a user, and calls
the request's validation and authorization entry points directly.

Usage:
    >>> from formrequest.harness import make_form_request
    >>> tester = make_form_request(StoreOrderRequest)  # doctest: +SKIP
    >>> tester.acting_as(user).assert_authorized()  # doctest: +SKIP
    >>> tester.validate({"sku": ""}).assert_fails({"sku": "required"})  # doctest: +SKIP
"""

from typing import Any, Mapping, Optional, Type
from unittest import mock

import structlog
from typing_extensions import Self

from formrequest.assertions import Assertions
from formrequest.config import FormRequestSettings, get_settings
from formrequest.errors import ValidationError
from formrequest.gate import Gate
from formrequest.outcome import ValidationOutcome
from formrequest.request import FormRequest
from formrequest.routing import Route
from formrequest.validation import Validator

logger = structlog.get_logger(__name__)


class FormRequestTester:
    """Fluent test wrapper around one form request.

    Attributes:
        request: The wrapped form request
        user_resolver: The recording resolver installed by ``by``/``acting_as``,
            or None if no user has been impersonated
        assertions: Counter of the checks performed so far
    """

    def __init__(self, request: FormRequest, settings: Optional[FormRequestSettings] = None) -> None:
        self.request = request
        self.settings = settings or get_settings()
        self.user_resolver: Optional[mock.Mock] = None
        self.assertions = Assertions()

    def validator(self, data: Optional[Mapping[str, Any]] = None) -> Validator:
        """Replace the request input with ``data`` and build its validator."""
        self.request.replace(data or {})
        return self.request.make_validator()

    def validate(self, data: Mapping[str, Any]) -> ValidationOutcome:
        """Validate ``data`` with the request's rules.

        Validation failure is captured on the outcome rather than raised.
        """
        validator = self.validator(data)
        try:
            validator.validate()
        except ValidationError as exc:
            logger.debug("form_request_validated", request=type(self.request).__name__, passed=False)
            return ValidationOutcome(validator, exc, settings=self.settings)

        logger.debug("form_request_validated", request=type(self.request).__name__, passed=True)
        return ValidationOutcome(validator, settings=self.settings)

    def by(self, user: Any = None) -> Self:
        """Impersonate ``user`` (None for a guest) for authorization checks.

        The installed resolver records its calls, so tests can check which
        guard the request resolved the user through.
        """
        self.user_resolver = mock.Mock(name="user_resolver", return_value=user)
        self.request.set_user_resolver(self.user_resolver)
        return self

    def acting_as(self, user: Any = None) -> Self:
        return self.by(user)

    def with_param(self, name: str, value: Any) -> Self:
        """Set a parameter on the request's bound route."""
        __tracebackhide__ = True
        route: Optional[Route] = self.request.route()
        if route is None:
            self.assertions.fail(
                f"Cannot set route parameter '{name}': the request has no bound route"
            )
        route.set_parameter(name, value)
        return self

    def with_params(self, params: Mapping[str, Any]) -> Self:
        for name, value in params.items():
            self.with_param(name, value)
        return self

    def assert_authorized(self) -> Self:
        __tracebackhide__ = True
        self.assertions.true(
            self.request.passes_authorization() is True,
            "The provided user is not authorized by this request",
        )
        return self

    def assert_not_authorized(self) -> Self:
        __tracebackhide__ = True
        self.assertions.true(
            self.request.passes_authorization() is False,
            "The provided user is authorized by this request",
        )
        return self

    def assert_calls_gate(self, action: str, params: Any, guard: Optional[str] = None) -> Self:
        """Assert authorization checks exactly one gate ability.

        The request's gate is swapped for a mock whose ``for_user`` returns
        itself and whose ``check`` allows everything; after ``authorize`` runs,
        ``check`` must have been called once with ``(action, params)``. With a
        ``guard``, the user must also have been resolved through that guard.
        """
        __tracebackhide__ = True
        gate = mock.create_autospec(Gate, instance=True)
        gate.for_user.return_value = gate
        gate.check.return_value = True

        if guard is not None and self.user_resolver is None:
            self.by(None)

        original_gate = self.request.gate
        self.request.gate = gate
        try:
            self.request.passes_authorization()
        finally:
            self.request.gate = original_gate

        self.assertions.record()
        gate.check.assert_called_once_with(action, params)

        if guard is not None:
            self.assertions.record()
            self.user_resolver.assert_any_call(guard)
        return self


def make_form_request(
    request_class: Type[FormRequest],
    headers: Optional[Mapping[str, str]] = None,
    gate: Optional[Gate] = None,
    settings: Optional[FormRequestSettings] = None,
) -> FormRequestTester:
    """Build a request of ``request_class`` bound to a synthetic route.

    The route (``POST /test/route`` unless configured otherwise) starts with
    no parameters; use ``with_param``/``with_params`` to add some.

    Args:
        request_class: The FormRequest subclass under test
        headers: Optional request headers
        gate: Gate to authorize against; a fresh empty Gate by default
        settings: Settings to use instead of the global ones

    Returns:
        A FormRequestTester wrapping the new request
    """
    settings = settings or get_settings()
    request = request_class(headers=headers, gate=gate)

    route = Route([settings.test_route_method], settings.test_route_uri)
    request.set_route_resolver(lambda: route)

    return FormRequestTester(request, settings=settings)


__all__ = [
    "FormRequestTester",
    "make_form_request",
]
