"""pytest fixtures for testing form requests.

Enable in a ``conftest.py``:

    pytest_plugins = ["formrequest.pytest_plugin"]

Then:

    def test_store_requires_sku(form_request):
        form_request(StoreOrderRequest).validate({}).assert_fails({"sku": "required"})
"""

import pytest
import structlog

from formrequest.config import get_settings
from formrequest.gate import Gate
from formrequest.harness import make_form_request
from formrequest.logging_config import setup_logging, setup_quiet_logging
from formrequest.route_assertions import RouteBindingChecker
from formrequest.routing import Router


def pytest_configure(config):
    if get_settings().configure_logging:
        setup_logging()
    elif not structlog.is_configured():
        setup_quiet_logging()


@pytest.fixture
def gate():
    """A fresh, empty Gate."""
    return Gate()


@pytest.fixture
def router():
    """A fresh, empty Router."""
    return Router()


@pytest.fixture
def route_checker(router):
    return RouteBindingChecker(router)


@pytest.fixture
def form_request(gate):
    """Factory building a FormRequestTester for a FormRequest subclass.

    Requests share the test's ``gate`` fixture unless one is passed explicitly.
    """
    def factory(request_class, headers=None, **kwargs):
        kwargs.setdefault("gate", gate)
        return make_form_request(request_class, headers=headers, **kwargs)
    return factory
