"""Validation of return payloads."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

MIN_SCORE = 1
MAX_SCORE = 10


class ScorePayload(BaseModel):
    """Body of a return request."""

    score: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE)

    model_config = {"extra": "forbid"}

    @field_validator("score", mode="before")
    @classmethod
    def reject_bool(cls, v: Any) -> Any:
        """Booleans are not scores, even though they pass as ints."""
        if isinstance(v, bool):
            raise ValueError("score must be an integer, not a boolean")
        return v


@dataclass(frozen=True)
class ScoreValidation:
    """Result of validating a score payload."""

    ok: bool
    score: Optional[int] = None
    detail: Optional[str] = None


def validate_score(payload: Any) -> ScoreValidation:
    """Validate a return payload.

    Args:
        payload: Mapping with a ``score`` entry

    Returns:
        ScoreValidation carrying the parsed score, or the first violation

    Example:
        >>> validate_score({"score": 9}).score
        9
        >>> validate_score({"score": 11}).ok
        False
    """
    if not isinstance(payload, Mapping):
        return ScoreValidation(ok=False, detail="payload must be an object with a score")

    try:
        parsed = ScorePayload.model_validate(dict(payload))
    except ValidationError as e:
        error = e.errors()[0]
        location = ".".join(str(part) for part in error["loc"]) or "payload"
        return ScoreValidation(ok=False, detail=f"{location}: {error['msg']}")

    return ScoreValidation(ok=True, score=parsed.score)
