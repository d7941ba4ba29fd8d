"""Pre-commit policies.

A policy receives the factoid about to be committed and returns either
``Ok(factoid)`` (possibly a modified copy) or ``Fail(reason)`` to block the
edit. The store passes failures through unchanged.
"""

import re
from typing import Callable, Iterable

from .models import Factoid, Intent
from .result import Fail, Ok, Outcome

BeforeCommit = Callable[[Factoid], Outcome[Factoid]]

CONTROL_CHARACTERS = "controlcharacters"
COMMAND = "command"

# ASCII control characters, including newlines and IRC formatting resets
_CONTROL_PATTERN = re.compile(r"[\x00-\x1f\x7f]")


def allow_all(factoid: Factoid) -> Outcome[Factoid]:
    """Accept every factoid unchanged."""
    return Ok(factoid)


def reject_control_characters(factoid: Factoid) -> Outcome[Factoid]:
    """Block messages that contain control characters."""
    if _CONTROL_PATTERN.search(factoid.message):
        return Fail(CONTROL_CHARACTERS)
    return Ok(factoid)


def reject_commands(prefixes: Iterable[str] = ("/",)) -> BeforeCommit:
    """Build a policy that blocks messages that look like platform commands.

    Aliases are exempt since their message is a key, never sent to the chat.
    """
    prefix_tuple = tuple(prefixes)
    if not prefix_tuple or not all(prefix_tuple):
        raise ValueError("prefixes must be non-empty strings")

    def policy(factoid: Factoid) -> Outcome[Factoid]:
        if factoid.intent != Intent.ALIAS and factoid.message.lstrip().startswith(prefix_tuple):
            return Fail(COMMAND)
        return Ok(factoid)

    return policy


def chain(*policies: BeforeCommit) -> BeforeCommit:
    """Run policies left to right, stopping at the first failure."""

    def policy(factoid: Factoid) -> Outcome[Factoid]:
        outcome: Outcome[Factoid] = Ok(factoid)
        for step in policies:
            outcome = outcome.and_then(step)
            if isinstance(outcome, Fail):
                break
        return outcome

    return policy
