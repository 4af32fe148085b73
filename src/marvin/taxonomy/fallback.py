"""Pattern-based knowledge extraction for learning commands.

Used when the classifier accepts a learning command but returns no
knowledge entries. It recognizes a handful of sentence shapes:

- "meu nome é X"     -> identity of the sender
- "X significa Y"    -> definition of concept X
- "meu X é Y"        -> property X of the sender
- "X é Y"            -> definition of concept X
- anything else      -> definition of the generic concept "termo"
"""

import logging
import re
from typing import Any

from ..memory.models import CERTAINTY_HIGH
from .models import EntryKind, Knowledge, SubjectType

logger = logging.getLogger(__name__)

FALLBACK_ENTRY_ID = "manual_entry"
FALLBACK_SOURCE = "declaracao_direta"
GENERIC_CONCEPT = "termo"

_NAME_RE = re.compile(r"meu nome (?:é|e|seria) ([^.,]+)", re.IGNORECASE)
_MEANS_RE = re.compile(r"([^ ]+) significa ([^.]+)", re.IGNORECASE)
_IS_RE = re.compile(r"^[^:]+ é [^:]+$", re.IGNORECASE)


def _entry(
    kind: str, subject: dict[str, Any], predicate: dict[str, Any]
) -> dict[str, Any]:
    return {
        "id": FALLBACK_ENTRY_ID,
        "kind": kind,
        "subject": subject,
        "predicate": predicate,
        "context": {
            "certainty": CERTAINTY_HIGH,
            "source": FALLBACK_SOURCE,
            "temporality": "atual",
        },
    }


def extract_fallback_entry(content: str, user_id: str | None) -> dict[str, Any]:
    """Build a single knowledge entry from the text of a learning command.

    Args:
        content: The command text without the learning prefix.
        user_id: Stable id of the sender.

    Returns:
        A knowledge entry mapping in the classifier's format.
    """
    lowered = content.lower()

    if "meu nome" in lowered:
        match = _NAME_RE.search(content)
        name = match.group(1).strip() if match else content
        return _entry(
            EntryKind.IDENTITY,
            {"type": SubjectType.USER, "value": user_id},
            {"type": "nome", "value": name},
        )

    if " significa " in lowered:
        match = _MEANS_RE.search(content)
        if match:
            concept, meaning = match.group(1).strip(), match.group(2).strip()
        else:
            parts = re.split(" significa ", content, flags=re.IGNORECASE)
            concept = parts[0].strip()
            meaning = parts[1].strip() if len(parts) > 1 else ""
        return _entry(
            EntryKind.DEFINITION,
            {"type": SubjectType.CONCEPT, "value": concept},
            {"type": "significado", "value": meaning},
        )

    if _IS_RE.match(content):
        parts = content.split(" é ")
        left, right = parts[0], parts[1].strip()
        if left.lower().startswith("meu "):
            return _entry(
                EntryKind.PROPERTY,
                {"type": SubjectType.USER, "value": user_id},
                {"type": left[4:].strip().lower(), "value": right},
            )
        return _entry(
            EntryKind.DEFINITION,
            {"type": SubjectType.CONCEPT, "value": left.strip()},
            {"type": "definicao", "value": right},
        )

    return _entry(
        EntryKind.DEFINITION,
        {"type": SubjectType.CONCEPT, "value": GENERIC_CONCEPT},
        {"type": "definicao", "value": content},
    )


def extract_fallback_knowledge(content: str, user_id: str | None) -> Knowledge:
    """Build storable knowledge from a learning command's text."""
    entry = extract_fallback_entry(content, user_id)
    logger.info(f"Fallback extraction produced a {entry['kind']} entry")
    return Knowledge(store=True, entries=[entry])
