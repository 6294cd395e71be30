"""Assertions that a route's controller action takes a given form request.

Controller actions declare their form request as an annotated parameter:

    class OrdersController:
        def store(self, request: StoreOrderRequest): ...

    router.post("/orders", "app.controllers.OrdersController@store", name="orders.store")

The checks read the route table and introspect the action's signature; they
never validate anything.

    >>> checker = RouteBindingChecker(router)  # doctest: +SKIP
    >>> checker.assert_route_uses_form_request("orders.store", StoreOrderRequest)  # doctest: +SKIP
"""

import inspect
import pkgutil
import typing
from typing import Any, Callable, Dict, Optional

from formrequest.assertions import Assertions
from formrequest.request import FormRequest
from formrequest.routing import Route, Router
from formrequest.types import ControllerAction, qualified_name


def _type_name(value: Any) -> str:
    if isinstance(value, type):
        return qualified_name(value)
    return str(value)


def _annotations(func: Callable) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(func)
    except (NameError, TypeError):
        # Unresolvable forward references: fall back to the raw annotations.
        return {
            name: parameter.annotation
            for name, parameter in inspect.signature(func).parameters.items()
            if parameter.annotation is not inspect.Parameter.empty
        }


class RouteBindingChecker:
    """Checks which form request a route's controller action takes.

    Attributes:
        router: The route table to look routes up in
        assertions: Counter of the checks performed so far
    """

    def __init__(self, router: Router) -> None:
        self.router = router
        self.assertions = Assertions()

    def assert_route_uses_form_request(self, route_name: str, form_request: type) -> "RouteBindingChecker":
        """Assert the route named ``route_name`` takes ``form_request``."""
        __tracebackhide__ = True
        routes = [route for route in self.router.get_routes() if route.get_name() == route_name]

        self.assertions.true(routes, f'Route "{route_name}" is not defined.')
        self.assertions.true(
            len(routes) == 1,
            f'Route "{route_name}" is defined multiple times, route names should be unique.',
        )

        action = self._controller_action(routes[0], f'Route "{route_name}"')
        return self.assert_action_uses_form_request(action.controller, action.method, form_request)

    def assert_contains_form_request(self, form_request: type) -> "RouteBindingChecker":
        """Assert the router's current route takes ``form_request``."""
        __tracebackhide__ = True
        route = self.router.current_route()
        if route is None:
            self.assertions.fail("No route is currently active.")

        action = self._controller_action(route, "The current route")
        return self.assert_action_uses_form_request(action.controller, action.method, form_request)

    def assert_action_uses_form_request(self, controller: Any, method: str, form_request: type) -> "RouteBindingChecker":
        """Assert ``controller.method`` declares a parameter annotated with ``form_request``.

        Args:
            controller: Controller class or its dotted import path
            method: Action method name
            form_request: Expected FormRequest subclass
        """
        __tracebackhide__ = True
        self.assertions.true(
            isinstance(form_request, type)
            and issubclass(form_request, FormRequest)
            and form_request is not FormRequest,
            f"{_type_name(form_request)} is not a type of Form Request",
        )

        action = self._resolve_action(controller, method)
        if action is None:
            self.assertions.fail(
                f"Controller action could not be found: {_type_name(controller)}@{method}"
            )

        self.assertions.true(
            (not method.startswith("_") or method == "__call__") and callable(action),
            f'Action "{method}" is not public, controller actions must be public.',
        )

        annotations = _annotations(action)
        annotations.pop("return", None)
        self.assertions.true(
            any(annotation is form_request for annotation in annotations.values()),
            f'Action "{method}" does not have validation using the "{_type_name(form_request)}" Form Request.',
        )
        return self

    def _controller_action(self, route: Route, label: str) -> ControllerAction:
        __tracebackhide__ = True
        action = route.controller_action()
        if action is None:
            self.assertions.fail(f"{label} is not bound to a controller action.")
        return action

    @staticmethod
    def _resolve_action(controller: Any, method: str) -> Optional[Callable]:
        if isinstance(controller, str):
            try:
                controller = pkgutil.resolve_name(controller)
            except (ImportError, AttributeError, ValueError):
                return None
        if not isinstance(controller, type):
            return None
        # Only methods the controller defines count, not ones inherited from object.
        for klass in controller.__mro__:
            if klass is object:
                break
            if method in vars(klass):
                return getattr(controller, method)
        return None


def assert_route_uses_form_request(router: Router, route_name: str, form_request: type) -> None:
    __tracebackhide__ = True
    RouteBindingChecker(router).assert_route_uses_form_request(route_name, form_request)


def assert_contains_form_request(router: Router, form_request: type) -> None:
    __tracebackhide__ = True
    RouteBindingChecker(router).assert_contains_form_request(form_request)


def assert_action_uses_form_request(controller: Any, method: str, form_request: type) -> None:
    __tracebackhide__ = True
    RouteBindingChecker(Router()).assert_action_uses_form_request(controller, method, form_request)


__all__ = [
    "RouteBindingChecker",
    "assert_route_uses_form_request",
    "assert_contains_form_request",
    "assert_action_uses_form_request",
]
