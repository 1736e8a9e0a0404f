"""Best-effort secondary effects.

After the primary write of an operation has committed, derived projections
(entity status, version rows, activity entries) are updated by a list of
``SecondaryEffect`` callables. Each runs inside its own error boundary: a
failure is logged with structured context and reported in the outcome, but
never propagates to the caller and never stops the effects after it.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EffectSkipped(Exception):
    """Raised by an effect that decided not to run; logged at info level."""


@dataclass
class SecondaryEffect:
    """A named side effect executed after the primary write."""

    name: str
    run: Callable[[], Any]


@dataclass
class EffectOutcome:
    """What happened to each effect in a batch."""

    succeeded: List[str] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def run_secondary_effects(
    effects: List[SecondaryEffect],
    *,
    context: Optional[Dict[str, Any]] = None,
) -> EffectOutcome:
    """
    Execute effects in order, isolating each one's failure.

    Args:
        effects: Effects to run
        context: Structured fields attached to every log record

    Returns:
        Summary of succeeded, skipped and failed effects
    """
    context = dict(context or {})
    outcome = EffectOutcome()

    for effect in effects:
        extra = {**context, "effect": effect.name}
        try:
            effect.run()
        except EffectSkipped as e:
            outcome.skipped[effect.name] = str(e)
            logger.info(f"Skipped secondary effect {effect.name}: {e}", extra=extra)
        except Exception as e:
            # Log but don't fail the primary operation
            outcome.failed[effect.name] = str(e)
            logger.exception(f"Secondary effect {effect.name} failed", extra=extra)
        else:
            outcome.succeeded.append(effect.name)

    return outcome
