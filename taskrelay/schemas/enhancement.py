"""Enrichment agent payload schemas."""
from typing import List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator


class EnhancementRequest(BaseModel):
    """Body posted to the enrichment workflow."""

    taskId: UUID
    title: str
    description: Optional[str] = None


class EnhancementResult(BaseModel):
    """Structured result returned by the enrichment workflow.

    The workflow has answered in both camelCase and snake_case over time, so
    both spellings are accepted.
    """

    enhanced_description: str = Field(
        validation_alias=AliasChoices("enhancedDescription", "enhanced_description"),
        min_length=1,
    )
    enhancement_steps: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("enhancementSteps", "enhancement_steps"),
    )

    @field_validator("enhancement_steps")
    @classmethod
    def empty_steps_to_none(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if not value:
            return None
        return value
