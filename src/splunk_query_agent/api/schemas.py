"""Request validation models for the HTTP API."""

from typing import Literal

from pydantic import BaseModel, Field

from splunk_query_agent.types import AgentRequest


class ConversationTurnModel(BaseModel):
    role: Literal["user", "agent"]
    content: str


class QueryRequestModel(BaseModel):
    """Body of POST /api/query-agent."""
    prompt: str = Field(min_length=1, max_length=2000)
    context_files: list[str] | None = None
    conversation_history: list[ConversationTurnModel] | None = None

    def to_agent_request(self) -> AgentRequest:
        return AgentRequest.from_dict(self.model_dump())
