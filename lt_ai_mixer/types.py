from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# --- Enums ---


class CompletionStatus(str, Enum):
    """Outcome of one call to the completion endpoint."""

    ANSWERED = "answered"
    NO_ANSWER = "no_answer"
    TRANSPORT_ERROR = "transport_error"
    STATUS_ERROR = "status_error"
    MALFORMED_RESPONSE = "malformed_response"


# --- Internal results ---


@dataclass(frozen=True)
class TriggerResult:
    """Text extracted from a check request and whether it asks for the LLM."""

    text: str = ""
    triggered: bool = False
    missing: bool = False


@dataclass(frozen=True)
class CompletionResult:
    status: CompletionStatus
    text: str = ""
    detail: str = ""

    @property
    def answered(self) -> bool:
        return self.status is CompletionStatus.ANSWERED


# --- Completion endpoint (OpenAI chat/completions) ---


class ChatMessage(BaseModel):
    role: str = "user"
    content: str | None = None


class ChatChoice(BaseModel):
    message: ChatMessage


class ChatCompletionResponse(BaseModel):
    choices: list[ChatChoice] = Field(default_factory=list)


# --- LanguageTool check report ---


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Software(_CamelModel):
    name: str
    api_version: int


class Language(_CamelModel):
    name: str
    code: str


class Replacement(_CamelModel):
    value: str


class MatchContext(_CamelModel):
    text: str
    offset: int
    length: int


class RuleCategory(_CamelModel):
    id: str
    name: str


class Rule(_CamelModel):
    id: str
    description: str
    issue_type: str
    category: RuleCategory


class Match(_CamelModel):
    message: str
    short_message: str
    replacements: list[Replacement]
    offset: int
    length: int
    context: MatchContext
    rule: Rule


class CheckResponse(_CamelModel):
    software: Software
    language: Language
    matches: list[Match]
