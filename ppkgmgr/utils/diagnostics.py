"""
Outcome values for best-effort filesystem work.

Cleanup steps such as removing a temp file must never fail a run, but their
failures should still be visible. Such steps return an ``Outcome`` which is
handed to ``record`` and then dropped.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    """The result of a best-effort action."""

    action: str
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def attempt(action: str, func: Callable[[], object]) -> Outcome:
    """Runs ``func`` and captures any OS-level failure as an ``Outcome``."""
    try:
        func()
    except FileNotFoundError:
        return Outcome(action)
    except OSError as e:
        return Outcome(action, e)
    return Outcome(action)


def record(outcome: Outcome, logger: logging.Logger = log) -> None:
    """Reports a failed outcome as a warning; successful outcomes are silent."""
    if not outcome.ok:
        logger.warning(f"warning: {outcome.action}: {outcome.error}")
