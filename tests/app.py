"""Sample application used across the test suite.

Defines form requests, a custom rule, enums, and controllers the way an
application built on formrequest would.
"""

import enum
from dataclasses import dataclass

from formrequest import EnumRule, FormRequest, Rule


class Status(enum.Enum):
    PENDING = "pending"
    SHIPPED = "shipped"


class Priority(enum.Enum):
    LOW = "low"
    HIGH = "high"


@dataclass(frozen=True)
class User:
    id: int
    is_admin: bool = False


class Uppercase(Rule):
    def passes(self, attribute, value):
        return isinstance(value, str) and value.upper() == value

    def message(self):
        return "The :attribute must be uppercase."


class SubscribeRequest(FormRequest):
    def rules(self):
        return {"email": "required|email"}


class StoreOrderRequest(FormRequest):
    def authorize(self):
        return self.user() is not None

    def rules(self):
        return {
            "email": "required|email",
            "sku": ["required", "string", Uppercase()],
            "quantity": "required|integer|min:1|max:100",
            "status": ["nullable", EnumRule(Status)],
            "notes": "sometimes|string|max:10",
        }


class UpdateOrderRequest(FormRequest):
    def authorize(self):
        return self.gate.for_user(self.user()).check("update-order", [self.route("order")])

    def rules(self):
        return {"quantity": "required|integer|min:1"}


class GuardedUpdateOrderRequest(FormRequest):
    def authorize(self):
        return self.gate.for_user(self.user("api")).check("update-order", [self.route("order")])


class DoubleCheckRequest(FormRequest):
    def authorize(self):
        gate = self.gate.for_user(self.user())
        return gate.check("update-order", [1]) and gate.check("update-order", [1])


class AdminRequest(FormRequest):
    def authorize(self):
        user = self.user("admin")
        return user is not None and user.is_admin


class CodeRequest(FormRequest):
    def rules(self):
        return {"code": "string|min:5|alpha"}


class ProfileRequest(FormRequest):
    def rules(self):
        return {"display_name": "required|between:2,5"}

    def messages(self):
        return {"display_name.required": "Pick a display name."}

    def attributes(self):
        return {"display_name": "screen name"}

    def prepare_for_validation(self):
        name = self.input("display_name")
        if isinstance(name, str):
            self.merge({"display_name": name.strip()})


class NotARequest:
    pass


class OrdersController:
    def store(self, request: StoreOrderRequest):
        return request.validated()

    def update(self, request: UpdateOrderRequest, order: str):
        return request.validated()

    def untyped(self, request):
        return request

    def _helper(self, request: StoreOrderRequest):
        return request


class ShowOrderController:
    def __call__(self, request: UpdateOrderRequest):
        return request
