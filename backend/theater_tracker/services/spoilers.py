"""
Per-viewer presentation rules for public reviews.

Spoiler reveals live only for the viewer's session: the client keeps the
set of revealed review ids and sends it with each read. Nothing here is
persisted.
"""
from collections.abc import Iterable, Mapping
from typing import Any
from uuid import UUID

ANONYMOUS_USERNAME = "Anonymous"


class SpoilerRevealState:
    """The set of spoiler-flagged reviews a viewer has chosen to reveal."""

    def __init__(self, revealed: Iterable[UUID] = ()) -> None:
        self._revealed: set[UUID] = set(revealed)

    def toggle(self, review_id: UUID) -> bool:
        """Flip *review_id* between hidden and revealed. Returns the new state."""
        if review_id in self._revealed:
            self._revealed.discard(review_id)
            return False
        self._revealed.add(review_id)
        return True

    def is_revealed(self, review_id: UUID) -> bool:
        return review_id in self._revealed

    def __len__(self) -> int:
        return len(self._revealed)


def display_username(username: str | None, is_anonymous: bool) -> str | None:
    """Anonymous reviews always show the placeholder, whatever the identity."""
    if is_anonymous:
        return ANONYMOUS_USERNAME
    return username


def present_review(
    row: Mapping[str, Any],
    reveal_state: SpoilerRevealState | None = None,
) -> dict:
    """
    Apply anonymity and spoiler gating to one projection row.

    The review body of a spoiler-flagged row is withheld unless the viewer
    revealed that specific row.
    """
    state = reveal_state or SpoilerRevealState()
    contains_spoilers = bool(row.get("contains_spoilers"))
    hidden = contains_spoilers and not state.is_revealed(row["id"])

    return {
        "id": row["id"],
        "show_id": row["show_id"],
        "username": display_username(row.get("username"), bool(row.get("is_anonymous"))),
        "is_anonymous": bool(row.get("is_anonymous")),
        "rating": row.get("rating"),
        "review": None if hidden else row.get("review"),
        "city": row.get("city"),
        "date_seen": row.get("date_seen"),
        "contains_spoilers": contains_spoilers,
        "spoiler_hidden": hidden,
    }
