"""Default validation messages and placeholder rendering."""

from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from formrequest.types import SizeKind

MessageTemplate = Union[str, Dict[SizeKind, str]]

DEFAULT_MESSAGES: Dict[str, MessageTemplate] = {
    "accepted": "The :attribute field must be accepted.",
    "after": "The :attribute field must be a date after :date.",
    "alpha": "The :attribute field must only contain letters.",
    "alpha_num": "The :attribute field must only contain letters and numbers.",
    "array": "The :attribute field must be an array.",
    "before": "The :attribute field must be a date before :date.",
    "between": {
        SizeKind.NUMERIC: "The :attribute field must be between :min and :max.",
        SizeKind.STRING: "The :attribute field must be between :min and :max characters.",
        SizeKind.ARRAY: "The :attribute field must have between :min and :max items.",
    },
    "boolean": "The :attribute field must be true or false.",
    "confirmed": "The :attribute field confirmation does not match.",
    "date": "The :attribute field must be a valid date.",
    "date_format": "The :attribute field must match the format :format.",
    "different": "The :attribute field and :other must be different.",
    "email": "The :attribute field must be a valid email address.",
    "in": "The selected :attribute is invalid.",
    "integer": "The :attribute field must be an integer.",
    "ipv4": "The :attribute field must be a valid IPv4 address.",
    "ipv6": "The :attribute field must be a valid IPv6 address.",
    "max": {
        SizeKind.NUMERIC: "The :attribute field must not be greater than :max.",
        SizeKind.STRING: "The :attribute field must not be greater than :max characters.",
        SizeKind.ARRAY: "The :attribute field must not have more than :max items.",
    },
    "min": {
        SizeKind.NUMERIC: "The :attribute field must be at least :min.",
        SizeKind.STRING: "The :attribute field must be at least :min characters.",
        SizeKind.ARRAY: "The :attribute field must have at least :min items.",
    },
    "not_in": "The selected :attribute is invalid.",
    "numeric": "The :attribute field must be a number.",
    "regex": "The :attribute field format is invalid.",
    "required": "The :attribute field is required.",
    "required_if": "The :attribute field is required when :other is :value.",
    "required_with": "The :attribute field is required when :values is present.",
    "same": "The :attribute field must match :other.",
    "size": {
        SizeKind.NUMERIC: "The :attribute field must be :size.",
        SizeKind.STRING: "The :attribute field must be :size characters.",
        SizeKind.ARRAY: "The :attribute field must contain :size items.",
    },
    "string": "The :attribute field must be a string.",
    "uuid": "The :attribute field must be a valid UUID.",
}

FALLBACK_MESSAGE = "The :attribute field is invalid."


def _format_number(parameter: str) -> str:
    # "10.0" reads better as "10" in messages
    try:
        number = float(parameter)
    except ValueError:
        return parameter
    return str(int(number)) if number.is_integer() else parameter


def placeholders(
    rule: str,
    parameters: List[str],
    display: Callable[[str], str],
) -> Dict[str, str]:
    """Build the placeholder values for one failed rule.

    Args:
        rule: snake_case rule name
        parameters: The rule's parameters
        display: Maps a field name to its display name

    Returns:
        Mapping of placeholder (without the leading colon) to value
    """
    if rule in ("min", "max", "size"):
        return {rule: _format_number(parameters[0])}
    if rule == "between":
        return {"min": _format_number(parameters[0]), "max": _format_number(parameters[1])}
    if rule in ("after", "before"):
        return {"date": parameters[0]}
    if rule == "date_format":
        return {"format": parameters[0]}
    if rule in ("same", "different"):
        return {"other": display(parameters[0])}
    if rule == "required_if":
        return {"other": display(parameters[0]), "value": ", ".join(parameters[1:])}
    if rule == "required_with":
        return {"values": " / ".join(display(p) for p in parameters)}
    return {}


def render(template: str, attribute: str, replacements: Optional[Mapping[str, Any]] = None) -> str:
    """Replace ``:attribute`` and rule placeholders in a message template."""
    message = template
    # Longest keys first so ":values" is not clobbered by ":value".
    for key in sorted(replacements or {}, key=len, reverse=True):
        message = message.replace(f":{key}", str(replacements[key]))
    return message.replace(":attribute", attribute)


def default_template(rule: str, kind: SizeKind) -> str:
    template = DEFAULT_MESSAGES.get(rule, FALLBACK_MESSAGE)
    if isinstance(template, dict):
        return template[kind]
    return template


__all__ = [
    "DEFAULT_MESSAGES",
    "FALLBACK_MESSAGE",
    "placeholders",
    "render",
    "default_template",
]
