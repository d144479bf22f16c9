"""Human-readable text for structured log events.

Templates live in ``event_templates.json`` beside this module, keyed by
domain then action, and are plain ``str.format`` strings over the event's
context fields.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

TEMPLATES_PATH = Path(__file__).with_name("event_templates.json")

EVENT_TEMPLATES: dict[tuple[str, str], str] = {}


def load_templates(path: Path) -> dict[tuple[str, str], str]:
    """Flatten the JSON catalog into ``(domain, action) -> template``.

    Entries that are not strings are skipped. A missing or unreadable file
    yields only an ``("app", "load_error")`` entry, so logging keeps working
    on derived text.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            raw: Any = json.load(f)
    except FileNotFoundError:
        return {("app", "load_error"): "Event templates file missing"}
    except (OSError, ValueError) as e:
        return {("app", "load_error"): f"Failed to load event templates: {e}"[:200]}
    if not isinstance(raw, Mapping):
        return {}
    return {
        (domain, action): template
        for domain, actions in raw.items()
        if isinstance(domain, str) and isinstance(actions, Mapping)
        for action, template in actions.items()
        if isinstance(action, str) and isinstance(template, str)
    }


def reload_event_templates(path: Path | None = None) -> None:
    global EVENT_TEMPLATES  # noqa: PLW0603
    EVENT_TEMPLATES = load_templates(path or TEMPLATES_PATH)


def render(domain: str, action: str, fields: Mapping[str, object]) -> tuple[str, bool]:
    """Return ``(text, derived)`` for an event.

    A template whose placeholders are not all present in ``fields`` is
    returned unformatted. Events without a template get ``"domain: action"``
    text and ``derived`` set.
    """
    template = EVENT_TEMPLATES.get((domain, action))
    if template is None:
        return f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}", True
    try:
        return template.format(**fields), False
    except (KeyError, IndexError, ValueError):
        return template, False


reload_event_templates()

__all__ = ["EVENT_TEMPLATES", "TEMPLATES_PATH", "load_templates", "reload_event_templates", "render"]
