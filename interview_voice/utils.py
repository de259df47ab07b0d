"""Centralized ID generation utilities."""

import uuid


def generate_submission_id(prefix: str = "turn") -> str:
    """Generate a short submission ID used to correlate logs and spans.

    Args:
        prefix: Optional prefix for the ID (e.g., 'turn', 'retry')

    Returns:
        An 8-character hex string, optionally prefixed with hyphen separator.
    """
    unique_part = uuid.uuid4().hex[:8]
    if prefix:
        return f"{prefix}-{unique_part}"
    return unique_part

