"""
Input validation for the HTTP layer.

Rejects request payloads that cannot describe a way before they reach the
compiler. Malformed tag *values* are not checked here; those surface as
InvalidEncodingError from the compiler itself.
"""

from typing import Optional

from fastapi import HTTPException

from config import MAX_WAYS_PER_REQUEST

# OpenStreetMap caps keys and values at 255 characters
MAX_TAG_LENGTH = 255


def validate_way_id(way_id: int) -> int:
    """
    Validate a way or relation identifier.

    Raises:
        HTTPException: If the identifier is not a positive integer
    """
    if way_id is None or way_id <= 0:
        raise HTTPException(status_code=400, detail="Element id must be a positive integer")
    return way_id


def validate_nodes(nodes: list[int]) -> list[int]:
    """
    Validate an ordered list of node references.

    Raises:
        HTTPException: If any node reference is not a positive integer
    """
    for i, node in enumerate(nodes):
        if node <= 0:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid node reference at position {i}: {node}",
            )
    return nodes


def validate_tags(tags: dict[str, str]) -> dict[str, str]:
    """
    Validate a raw tag dictionary.

    Raises:
        HTTPException: If a key is empty or a key/value exceeds the length limit
    """
    for key, value in tags.items():
        if not key.strip():
            raise HTTPException(status_code=400, detail="Tag keys must not be empty")

        if len(key) > MAX_TAG_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Tag key too long (max {MAX_TAG_LENGTH} characters): {key[:32]}...",
            )

        if len(value) > MAX_TAG_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Value of tag '{key}' too long (max {MAX_TAG_LENGTH} characters)",
            )
    return tags


def validate_batch_size(count: int, limit: Optional[int] = None) -> int:
    """
    Validate the number of ways in one request.

    Raises:
        HTTPException: If the batch is empty or larger than the configured limit
    """
    limit = MAX_WAYS_PER_REQUEST if limit is None else limit

    if count == 0:
        raise HTTPException(status_code=400, detail="At least one way is required")

    if count > limit:
        raise HTTPException(
            status_code=400,
            detail=f"Too many ways in one request ({count}). Maximum allowed is {limit}.",
        )
    return count
