import json
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, StrictInt, field_validator
from pydantic import ValidationError as PydanticValidationError

from errors import ValidationError

DEFAULT_LEADERBOARD_LIMIT = 50
MAX_LEADERBOARD_LIMIT = 100


class NextQuestionQuery(BaseModel):
    userId: UUID
    sessionId: Optional[UUID] = None


class SubmitAnswerBody(BaseModel):
    userId: UUID
    sessionId: UUID
    questionId: UUID
    answer: str = Field(min_length=1)
    stateVersion: StrictInt = Field(gt=0)
    answerIdempotencyKey: UUID


class MetricsQuery(BaseModel):
    userId: UUID


class LeaderboardQuery(BaseModel):
    userId: Optional[UUID] = None
    limit: int = DEFAULT_LEADERBOARD_LIMIT

    @field_validator("limit", mode="before")
    @classmethod
    def cap_limit(cls, value):
        try:
            value = int(value)
        except (TypeError, ValueError):
            return DEFAULT_LEADERBOARD_LIMIT
        if value <= 0:
            return DEFAULT_LEADERBOARD_LIMIT
        return min(value, MAX_LEADERBOARD_LIMIT)


def parse(model, data):
    """Validate ``data`` against ``model``; raise our ValidationError on failure."""
    try:
        return model.model_validate(data or {})
    except PydanticValidationError as e:
        raise ValidationError("Invalid request", errors=json.loads(e.json(include_url=False)))
