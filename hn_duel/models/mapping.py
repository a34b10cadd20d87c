"""Mapping functions to convert Hacker News API payloads to our data models."""

from typing import Any, Dict, Optional

from hn_duel.models.story import Story


def story_from_payload(payload: Optional[Dict[str, Any]]) -> Story:
    """
    Convert a Hacker News item payload to a Story.

    Args:
        payload: Decoded JSON object from ``/item/<id>.json``

    Returns:
        The mapped Story

    Raises:
        ValueError: If the payload is null, deleted, or lacks required fields
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Expected an item object, got {type(payload).__name__}")

    if payload.get("deleted") or payload.get("dead"):
        raise ValueError(f"Item {payload.get('id')} is deleted or dead")

    title = payload.get("title")
    if not isinstance(title, str):
        raise ValueError(f"Item {payload.get('id')} has no usable title")

    try:
        story_id = int(payload["id"])
        score = int(payload.get("score") or 0)
        created = int(payload["time"])
        # Polls and jobs may lack descendants
        descendants = int(payload.get("descendants") or 0)
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Malformed item payload: {e}") from e

    # Deleted accounts come back without "by"
    author = str(payload.get("by") or "[deleted]")
    url = payload.get("url")
    if not isinstance(url, str) or not url:
        url = None

    return Story(
        id=story_id,
        title=title,
        score=max(0, score),
        by=author,
        time=created,
        descendants=max(0, descendants),
        url=url,
    )
