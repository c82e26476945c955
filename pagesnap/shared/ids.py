"""ID generation helpers."""

import uuid


def generate_request_id() -> str:
    """Generate a request ID for log correlation."""
    return f"req_{uuid.uuid4().hex[:16]}"
