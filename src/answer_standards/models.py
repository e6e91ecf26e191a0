"""
Pydantic boundary models -- question records coming in from a corpus file.

Only the question text and the answer text are interpreted. Everything
else (tags, companies, status, ...) rides along untouched.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QuestionRecord(BaseModel):
    """A Q&A entry. `explanation` is the long-form answer and wins over `answer` when set."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Stable question identifier, used for overrides")
    question: str = Field("", description="The question text used for pattern detection")
    answer: str = Field("", description="Short answer text")
    explanation: str = Field("", description="Long-form answer; validated instead of `answer` when present")
    channel: str = Field("", description="Topic channel, used for batch breakdowns")
    difficulty: str = Field("", description="Difficulty label, passthrough")
    tags: list[str] = Field(default_factory=list, description="Free-form tags, passthrough")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        return str(value) if isinstance(value, int) else value

    @field_validator("question", "answer", "explanation", "channel", "difficulty", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    @property
    def answer_text(self) -> str:
        return self.explanation or self.answer or ""
