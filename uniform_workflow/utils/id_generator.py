import uuid


def generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


def id_factory(prefix: str):
    """Column default producing a fresh prefixed business id."""
    return lambda: generate_id(prefix)
