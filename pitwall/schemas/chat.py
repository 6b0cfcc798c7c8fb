# pitwall/schemas/chat.py
"""Race engineer Q&A schemas."""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AnswerSource(str, Enum):
    """Where an engineer answer came from."""
    LLM = "llm"
    FALLBACK = "fallback"
    NO_TELEMETRY = "no_telemetry"


class AskRequest(BaseModel):
    """Question from the driver (typed or transcribed)."""
    q: str = Field("", max_length=1000)


class AskResponse(BaseModel):
    """Engineer answer."""
    question: str
    answer: str
    race_time: float
    source: AnswerSource

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
