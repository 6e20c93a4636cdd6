"""Models for the test categories the runner knows how to invoke."""

from pydantic import BaseModel, ConfigDict, Field


class Category(BaseModel):
    """A named, tag-filtered group of automated checks."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Selector used on the command line")
    title: str = Field(..., description="Human-readable category name")
    tag: str = Field(..., description="Framework tag filter, without the '@'")
    critical: bool = Field(
        default=False,
        description="Whether a failure should block deployment decisions",
    )
    description: str = Field(default="", description="Short help text")
