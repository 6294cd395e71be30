"""Route table for mapping request paths to controller actions.

A Route pairs HTTP methods and a URI pattern with an action. Actions that
point at controllers are recorded as a controller reference the route
assertions can introspect:

- ``"pkg.module.OrdersController@store"``: a method on a controller class
- ``"pkg.module.ShowDashboard"``: an invokable controller (``__call__``)
- ``OrdersController`` or ``(OrdersController, "store")``: the class itself

URI patterns use Starlette's path syntax: ``{name}`` placeholders, typed
ones such as ``{order:int}`` whose values are converted when bound, and
``{name?}`` for an optional trailing segment. A route with optional segments
compiles to one path per omitted segment.

Usage:
    >>> router = Router()
    >>> router.post("/orders/{order}", "app.controllers.OrdersController@update", name="orders.update")
    Route(methods=('POST',), uri='/orders/{order}', name='orders.update')
    >>> router.match("POST", "/orders/42").parameter("order")
    '42'
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Pattern, Tuple

import structlog
from starlette.convertors import Convertor
from starlette.routing import compile_path

from formrequest.errors import RouteNotFoundError
from formrequest.types import ControllerAction, qualified_name

logger = structlog.get_logger(__name__)

_OPTIONAL_SEGMENT = re.compile(r"/\{(\w+(?::\w+)?)\?\}")

CompiledPath = Tuple[Pattern, str, Dict[str, Convertor]]


def _normalize(path: str) -> str:
    return "/" + path.strip("/") if path.strip("/") else "/"


def _expand_optional(uri: str) -> List[str]:
    """Expand ``{name?}`` segments into concrete paths, longest first."""
    paths = [_OPTIONAL_SEGMENT.sub(r"/{\1}", uri)]
    for match in reversed(list(_OPTIONAL_SEGMENT.finditer(uri))):
        paths.append(_normalize(_OPTIONAL_SEGMENT.sub(r"/{\1}", uri[:match.start()])))
    return paths


class Route:
    """A single route: methods, URI pattern, action, and bound parameters.

    Attributes:
        methods: Upper-cased HTTP methods
        uri: URI pattern with ``{param}`` placeholders (Starlette path syntax)
        action: Controller reference, controller class, (class, method) tuple, or callable
        parameters: Parameters bound by ``bind`` or set directly
    """

    def __init__(self, methods: Iterable[str], uri: str, action: Any = None, name: Optional[str] = None):
        if isinstance(methods, str):
            methods = [methods]
        self.methods: Tuple[str, ...] = tuple(m.upper() for m in methods)
        self.uri = _normalize(uri)
        self.action = action
        self.name = name
        self.parameters: Dict[str, Any] = {}
        self._paths: List[CompiledPath] = [compile_path(path) for path in _expand_optional(self.uri)]

    def named(self, name: str) -> "Route":
        self.name = name
        return self

    def get_name(self) -> Optional[str]:
        return self.name

    def _match(self, path: str) -> Optional[Dict[str, Any]]:
        path = _normalize(path)
        for regex, _, convertors in self._paths:
            match = regex.match(path)
            if match is not None:
                return {key: convertors[key].convert(value) for key, value in match.groupdict().items()}
        return None

    def matches(self, method: str, path: str) -> bool:
        if method.upper() not in self.methods:
            return False
        return self._match(path) is not None

    def bind(self, path: str) -> "Route":
        """Bind the path's placeholder values, converted by type, as route parameters."""
        parameters = self._match(path)
        if parameters is None:
            raise RouteNotFoundError(self.methods[0] if self.methods else "ANY", path)
        self.parameters = parameters
        return self

    def set_parameter(self, name: str, value: Any) -> None:
        self.parameters[name] = value

    def parameter(self, name: str, default: Any = None) -> Any:
        return self.parameters.get(name, default)

    def has_parameter(self, name: str) -> bool:
        return name in self.parameters

    def forget_parameter(self, name: str) -> None:
        self.parameters.pop(name, None)

    def parameter_names(self) -> List[str]:
        return list(self._paths[0][2])

    def controller_action(self) -> Optional[ControllerAction]:
        """Return the controller reference, or None for closure routes."""
        action = self.action
        if isinstance(action, str):
            return ControllerAction.parse(action)
        if isinstance(action, tuple) and len(action) == 2:
            return ControllerAction(controller=action[0], method=action[1])
        if isinstance(action, type):
            return ControllerAction(controller=action)
        return None

    def controller_reference(self) -> Optional[str]:
        """Return ``"pkg.module.Controller@method"`` for controller routes."""
        controller_action = self.controller_action()
        if controller_action is None:
            return None
        controller = controller_action.controller
        if isinstance(controller, type):
            controller = qualified_name(controller)
        if controller_action.method == "__call__":
            return controller
        return f"{controller}@{controller_action.method}"

    def get_action_method(self) -> str:
        controller_action = self.controller_action()
        return controller_action.method if controller_action else "__call__"

    def __repr__(self) -> str:
        return f"Route(methods={self.methods!r}, uri={self.uri!r}, name={self.name!r})"


class Router:
    """Ordered route table with name lookup and current-route tracking."""

    def __init__(self) -> None:
        self._routes: List[Route] = []
        self._current: Optional[Route] = None

    def add(self, methods: Iterable[str], uri: str, action: Any = None, name: Optional[str] = None) -> Route:
        route = Route(methods, uri, action, name=name)
        self._routes.append(route)
        return route

    def get(self, uri: str, action: Any = None, name: Optional[str] = None) -> Route:
        return self.add(["GET", "HEAD"], uri, action, name)

    def post(self, uri: str, action: Any = None, name: Optional[str] = None) -> Route:
        return self.add(["POST"], uri, action, name)

    def put(self, uri: str, action: Any = None, name: Optional[str] = None) -> Route:
        return self.add(["PUT"], uri, action, name)

    def patch(self, uri: str, action: Any = None, name: Optional[str] = None) -> Route:
        return self.add(["PATCH"], uri, action, name)

    def delete(self, uri: str, action: Any = None, name: Optional[str] = None) -> Route:
        return self.add(["DELETE"], uri, action, name)

    def get_routes(self) -> List[Route]:
        return list(self._routes)

    def get_by_name(self, name: str) -> Optional[Route]:
        """Return the last route registered under ``name``."""
        for route in reversed(self._routes):
            if route.get_name() == name:
                return route
        return None

    def has(self, name: str) -> bool:
        return self.get_by_name(name) is not None

    def match(self, method: str, path: str) -> Route:
        """Find the first route for ``method`` and ``path`` and bind its parameters.

        Raises:
            RouteNotFoundError: If no route matches
        """
        for route in self._routes:
            if route.matches(method, path):
                return route.bind(path)
        raise RouteNotFoundError(method, path)

    def dispatch(self, method: str, path: str) -> Route:
        """Match a route and make it the current route."""
        route = self.match(method, path)
        self.set_current_route(route)
        logger.debug("route_dispatched", method=method.upper(), path=path, route=route.get_name())
        return route

    def set_current_route(self, route: Optional[Route]) -> None:
        self._current = route

    def current_route(self) -> Optional[Route]:
        return self._current

    def current_route_name(self) -> Optional[str]:
        return self._current.get_name() if self._current else None


__all__ = [
    "Route",
    "Router",
]
