"""Tests for the pytest fixtures in formrequest.pytest_plugin."""

from formrequest import FormRequestTester, Gate, RouteBindingChecker, Router

from tests.app import StoreOrderRequest, SubscribeRequest, UpdateOrderRequest, User


def test_form_request_factory(form_request):
    tester = form_request(SubscribeRequest)

    assert isinstance(tester, FormRequestTester)
    tester.validate({}).assert_fails({"email": "required"})


def test_form_request_uses_gate_fixture(form_request, gate):
    gate.define("update-order", lambda user, order: user is not None)
    tester = form_request(UpdateOrderRequest).with_param("order", 1)

    assert tester.request.gate is gate
    tester.by(User(id=1)).assert_authorized()


def test_form_request_with_explicit_gate(form_request):
    gate = Gate()

    assert form_request(StoreOrderRequest, gate=gate).request.gate is gate


def test_router_and_checker(router, route_checker):
    assert isinstance(router, Router)
    assert isinstance(route_checker, RouteBindingChecker)
    assert route_checker.router is router

    router.post("/orders", "tests.app.OrdersController@store", name="orders.store")
    route_checker.assert_route_uses_form_request("orders.store", StoreOrderRequest)
