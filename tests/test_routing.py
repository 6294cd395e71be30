"""Unit tests for routes and the route table."""

import pytest

from formrequest.errors import RouteNotFoundError
from formrequest.routing import Route, Router
from formrequest.types import ControllerAction

from tests.app import OrdersController, ShowOrderController


@pytest.fixture
def routes():
    router = Router()
    router.post("/orders", "tests.app.OrdersController@store", name="orders.store")
    router.put("/orders/{order}", (OrdersController, "update"), name="orders.update")
    router.get("/orders/{order}/{tab?}", ShowOrderController, name="orders.show")
    router.get("/ping", lambda: "pong", name="ping")
    return router


class TestRoute:
    """Test a single route."""

    def test_methods_are_upper_cased(self):
        assert Route("post", "orders").methods == ("POST",)

    def test_uri_is_normalized(self):
        assert Route(["GET"], "orders/").uri == "/orders"
        assert Route(["GET"], "").uri == "/"

    def test_named(self):
        route = Route(["GET"], "/").named("home")

        assert route.get_name() == "home"

    def test_bind_parameters(self):
        route = Route(["GET"], "/orders/{order}/items/{item}").bind("/orders/7/items/3")

        assert route.parameters == {"order": "7", "item": "3"}
        assert route.parameter_names() == ["order", "item"]

    def test_optional_parameter(self):
        route = Route(["GET"], "/orders/{order}/{tab?}")

        assert route.bind("/orders/7").parameters == {"order": "7"}
        assert route.bind("/orders/7/history").parameters == {"order": "7", "tab": "history"}

    def test_typed_parameter_is_converted(self):
        """Should convert typed placeholders and reject values of the wrong shape."""
        route = Route(["GET"], "/orders/{order:int}")

        assert route.bind("/orders/7").parameters == {"order": 7}
        assert route.matches("GET", "/orders/abc") is False
        assert route.parameter_names() == ["order"]

    def test_trailing_slash_matches(self):
        assert Route(["GET"], "/orders/{order}").matches("GET", "/orders/7/") is True

    def test_optional_parameter_at_root(self):
        route = Route(["GET"], "/{locale?}")

        assert route.bind("/").parameters == {}
        assert route.bind("/nb").parameters == {"locale": "nb"}

    def test_parameter_accessors(self):
        route = Route(["GET"], "/")
        route.set_parameter("order", 1)

        assert route.has_parameter("order")
        assert route.parameter("order") == 1
        assert route.parameter("missing", "default") == "default"

        route.forget_parameter("order")
        assert not route.has_parameter("order")


class TestControllerReferences:
    """Test controller reference extraction."""

    def test_string_reference(self, routes):
        route = routes.get_by_name("orders.store")

        assert route.controller_reference() == "tests.app.OrdersController@store"
        assert route.controller_action() == ControllerAction("tests.app.OrdersController", "store")
        assert route.get_action_method() == "store"

    def test_tuple_reference(self, routes):
        assert routes.get_by_name("orders.update").controller_reference() == "tests.app.OrdersController@update"

    def test_invokable_class(self, routes):
        route = routes.get_by_name("orders.show")

        assert route.controller_reference() == "tests.app.ShowOrderController"
        assert route.get_action_method() == "__call__"

    def test_closure_route(self, routes):
        assert routes.get_by_name("ping").controller_reference() is None

    def test_parse_invokable_string(self):
        assert ControllerAction.parse("app.Invokable") == ControllerAction("app.Invokable", "__call__")

    def test_controller_action_str(self):
        assert str(ControllerAction(OrdersController, "store")) == "tests.app.OrdersController@store"


class TestRouter:
    """Test route table lookups and dispatch."""

    def test_get_by_name(self, routes):
        assert routes.get_by_name("orders.store").uri == "/orders"
        assert routes.get_by_name("missing") is None
        assert routes.has("ping") is True

    def test_get_by_name_returns_last_registered(self, routes):
        later = routes.post("/v2/orders", "tests.app.OrdersController@store", name="orders.store")

        assert routes.get_by_name("orders.store") is later

    def test_get_routes_is_a_copy(self, routes):
        routes.get_routes().clear()

        assert len(routes.get_routes()) == 4

    def test_get_registers_head(self, routes):
        assert routes.get_by_name("ping").methods == ("GET", "HEAD")

    def test_match(self, routes):
        route = routes.match("PUT", "/orders/12")

        assert route.get_name() == "orders.update"
        assert route.parameter("order") == "12"

    def test_match_respects_method(self, routes):
        with pytest.raises(RouteNotFoundError, match="No route matches DELETE /orders"):
            routes.match("DELETE", "/orders")

    def test_dispatch_sets_current_route(self, routes):
        assert routes.current_route() is None

        routes.dispatch("post", "/orders")

        assert routes.current_route_name() == "orders.store"
