"""Record id generation."""

from uuid import uuid4


def new_id(prefix: str) -> str:
    """Return a unique id such as `meal_3f9c2a71b0de`."""
    return f"{prefix}_{uuid4().hex[:12]}"
