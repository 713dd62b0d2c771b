"""Per-turn observability context handed to every search component."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from src.errors import RecoverableTurnError


class TurnLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every record with the turn identifier."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        return f"[turn {self.extra['turn_id']}] {msg}", kwargs


@dataclass
class TurnContext:
    """Logger and warning sink scoped to a single conversational turn.

    Components never reach for a global logger; they log through the
    context they are given, so concurrent turns keep separate records.
    """

    turn_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    logger: logging.Logger | logging.LoggerAdapter | None = None
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.logger is None:
            self.logger = TurnLoggerAdapter(
                logging.getLogger("src.search"),
                {"turn_id": self.turn_id},
            )

    def record(self, error: RecoverableTurnError) -> None:
        """Log a recoverable error and keep it as a turn warning."""
        warning = error.as_warning()
        self.logger.warning(warning)
        self.warnings.append(warning)


def ensure_context(ctx: TurnContext | None) -> TurnContext:
    """Return the given context, or a fresh one for standalone calls."""
    return ctx if ctx is not None else TurnContext()
