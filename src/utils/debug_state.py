"""Debug state dump for inspecting finished turns."""

import json
import logging
from datetime import datetime
from pathlib import Path

from src.config import settings

logger = logging.getLogger(__name__)

# Field grouping for markdown output
_FIELD_GROUPS = {
    "Input": ["message", "execute", "history", "feedback"],
    "Context": ["critical_filters", "summarized_context", "dialogue_window"],
    "Drafting": ["draft", "original_draft"],
    "Relaxation": ["relaxation_state", "relaxation_pending", "relaxed"],
    "Execution": ["rows", "total_count", "execution_count", "warnings"],
    "Output": ["result", "messages"],
}

_MAX_CHARS = 500


def _truncate(text: str) -> str:
    if len(text) > _MAX_CHARS:
        return f"{text[:_MAX_CHARS]}... *({len(text)} chars total)*"
    return text


def _format_value(key: str, value: object) -> str:
    """Format a state value for markdown display."""
    if value is None:
        return "*None*"
    if isinstance(value, (bool, int, float)):
        return str(value)
    if isinstance(value, str):
        return _truncate(value) if value else "*empty string*"

    # Summary-only fields
    if key == "rows" and isinstance(value, list):
        columns = sorted(value[0].keys()) if value and isinstance(value[0], dict) else []
        return f"rows: {len(value)}, columns: {', '.join(columns) or '-'}"
    if key == "history" and isinstance(value, list):
        users = sum(1 for turn in value if isinstance(turn, dict) and turn.get("role") == "user")
        return f"turns: {len(value)}, user turns: {users}"
    if key == "result" and isinstance(value, dict):
        value = {k: v for k, v in value.items() if k != "rows"}
    if key == "messages" and isinstance(value, list):
        value = value[-10:]

    return _truncate(json.dumps(value, ensure_ascii=False, indent=2, default=str))


def dump_state_markdown(
    state: dict,
    extra: dict,
    filepath: str,
    label: str,
) -> None:
    """Write a markdown snapshot of a turn's final state.

    Only active when ``settings.enable_state_dump`` is set. Never raises.

    Args:
        state: Final turn state returned by the graph.
        extra: Additional fields to show (e.g. the turn warnings).
        filepath: Output file path (e.g. "debugging/turn_1a2b3c4d.md").
        label: Human-readable label for the dump header.
    """
    if not settings.enable_state_dump:
        return

    try:
        merged = {**state, **extra}
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)

        lines = [
            f"# State Dump: {label}",
            f"**Timestamp:** {datetime.now().isoformat()}",
            "",
        ]

        seen_keys: set[str] = set()
        for group_name, fields in _FIELD_GROUPS.items():
            lines.append(f"## {group_name}")
            lines.append("")
            for key in fields:
                seen_keys.add(key)
                formatted = _format_value(key, merged.get(key))
                if "\n" in formatted and len(formatted) > 80:
                    lines.extend([f"### `{key}`", "```json", formatted, "```"])
                else:
                    lines.append(f"- **{key}**: {formatted}")
            lines.append("")

        remaining = sorted(set(merged.keys()) - seen_keys)
        if remaining:
            lines.append("## Other Fields")
            lines.append("")
            for key in remaining:
                lines.append(f"- **{key}**: {_format_value(key, merged.get(key))}")
            lines.append("")

        path.write_text("\n".join(lines), encoding="utf-8")
        logger.debug("State dump written to %s", filepath)

    except Exception:
        logger.debug("State dump failed (non-fatal)", exc_info=True)
