"""Typed interactive prompts for the config-creating commands."""

import logging
from typing import Any, Callable, Optional, Sequence, Union

from devkit.errors import DevkitError

logger = logging.getLogger(__name__)

_TRUE = ("y", "yes", "true")
_FALSE = ("n", "no", "false")

ExpectedType = Union[str, Sequence[str]]


def _describe(expected_type: ExpectedType) -> str:
    if isinstance(expected_type, str):
        return expected_type
    return "one of: " + ", ".join(expected_type)


def _parse(answer: str, expected_type: ExpectedType) -> tuple[bool, Any]:
    if not isinstance(expected_type, str):
        lower = answer.lower()
        return lower in [choice.lower() for choice in expected_type], lower

    if expected_type == "number":
        try:
            return True, int(answer)
        except ValueError:
            pass
        try:
            return True, float(answer)
        except ValueError:
            return False, None
    if expected_type == "boolean":
        if answer.lower() in _TRUE:
            return True, True
        if answer.lower() in _FALSE:
            return True, False
        return False, None
    if expected_type == "string":
        return bool(answer), answer
    raise DevkitError(f"Unsupported expected type: {expected_type}")


def prompt_with_type(
    question: str,
    expected_type: ExpectedType,
    default: Optional[Any] = None,
    retries: int = 2,
    input_fn: Callable[[str], str] = input,
) -> Any:
    """Ask until the answer parses as `expected_type`.

    An empty answer returns `default` when one is given. Raises DevkitError
    after retries + 1 invalid answers.
    """
    for attempt in range(retries + 1):
        answer = input_fn(question).strip()
        if answer == "" and default is not None:
            return default

        valid, parsed = _parse(answer, expected_type)
        if valid:
            return parsed
        if attempt < retries:
            print(f"Invalid input. Expected {_describe(expected_type)}. Try again.")

    raise DevkitError(
        f"Failed to provide valid {_describe(expected_type)} after {retries + 1} attempts."
    )
