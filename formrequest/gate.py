"""Authorization gate for form requests.

A Gate holds named abilities, each a callback deciding whether a user may
perform an action on some arguments. Form requests receive their gate
explicitly, so tests can hand a request its own gate (or a mock of one)
without touching any process-wide state.

Usage:
    >>> gate = Gate()
    >>> gate.define("update-post", lambda user, post: post["author_id"] == user["id"])
    >>> gate.for_user({"id": 1}).allows("update-post", [{"author_id": 1}])
    True
"""

from typing import Any, Callable, Dict, List, Optional, Sequence

import structlog

from formrequest.errors import AuthorizationError

logger = structlog.get_logger(__name__)

Ability = Callable[..., Any]
BeforeCallback = Callable[[Any, str, List[Any]], Optional[bool]]


def _normalize_arguments(arguments: Any) -> List[Any]:
    if arguments is None:
        return []
    if isinstance(arguments, (list, tuple)):
        return list(arguments)
    return [arguments]


class Gate:
    """Registry of abilities checked against a resolved user.

    Attributes:
        user_resolver: Callable returning the user checks run for
    """

    def __init__(
        self,
        user_resolver: Optional[Callable[[], Any]] = None,
        abilities: Optional[Dict[str, Ability]] = None,
        before_callbacks: Optional[Sequence[BeforeCallback]] = None,
    ) -> None:
        self.user_resolver = user_resolver or (lambda: None)
        self._abilities: Dict[str, Ability] = abilities if abilities is not None else {}
        self._before: List[BeforeCallback] = list(before_callbacks or [])

    def define(self, ability: str, callback: Ability) -> "Gate":
        """Register an ability callback ``callback(user, *arguments)``."""
        self._abilities[ability] = callback
        return self

    def before(self, callback: BeforeCallback) -> "Gate":
        """Register a callback run before every check.

        A non-None return value short-circuits the check with that result.
        """
        self._before.append(callback)
        return self

    def has(self, ability: str) -> bool:
        return ability in self._abilities

    def for_user(self, user: Any) -> "Gate":
        """Return a gate sharing these abilities that checks for ``user``."""
        return Gate(
            user_resolver=lambda: user,
            abilities=self._abilities,
            before_callbacks=self._before,
        )

    def check(self, ability: str, arguments: Any = None) -> bool:
        """Return whether the resolved user may perform ``ability``.

        Args:
            ability: Name of a defined ability
            arguments: A single argument or a list of arguments for the callback

        Returns:
            True if allowed. Undefined abilities are denied.
        """
        user = self.user_resolver()
        args = _normalize_arguments(arguments)

        for callback in self._before:
            result = callback(user, ability, args)
            if result is not None:
                logger.debug("gate_checked", ability=ability, allowed=bool(result), via="before")
                return bool(result)

        callback = self._abilities.get(ability)
        if callback is None:
            logger.debug("gate_ability_undefined", ability=ability)
            return False

        allowed = bool(callback(user, *args))
        logger.debug("gate_checked", ability=ability, allowed=allowed)
        return allowed

    def allows(self, ability: str, arguments: Any = None) -> bool:
        return self.check(ability, arguments)

    def denies(self, ability: str, arguments: Any = None) -> bool:
        return not self.check(ability, arguments)

    def authorize(self, ability: str, arguments: Any = None) -> None:
        """Raise AuthorizationError unless ``ability`` is allowed."""
        if not self.check(ability, arguments):
            raise AuthorizationError(ability=ability)


__all__ = [
    "Gate",
]
