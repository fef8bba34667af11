from typing import Any, Mapping

from payoutdesk.core.exceptions import BadRequestError


def require_text_fields(body: Mapping[str, Any], fields: Mapping[str, str]) -> dict[str, str]:
    """
    fields maps wire name -> attribute name. Every wire field must be a non-empty string.
    Returns {attribute name: stripped value}.
    """
    missing = [
        wire for wire in fields
        if not isinstance(body.get(wire), str) or not body[wire].strip()
    ]
    if missing:
        raise BadRequestError("Missing required fields", details={"missing": missing})
    return {attr: body[wire].strip() for wire, attr in fields.items()}
