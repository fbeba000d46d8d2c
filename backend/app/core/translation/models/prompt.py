"""Prompt bundle models.

This module defines the prompt data structures that are passed to the LLM
gateway, independent of the provider behind it.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Message(BaseModel):
    """Single message in LLM conversation."""

    role: str = Field(
        ..., description="Message role: 'system', 'user', or 'assistant'"
    )
    content: str = Field(..., description="Message content")


class PromptBundle(BaseModel):
    """Complete prompt package ready for LLM.

    This is the output of the PromptBuilder and input to the gateway.
    """

    messages: List[Message] = Field(..., description="Conversation messages")

    # Model configuration (None = use the runtime config value)
    temperature: Optional[float] = Field(
        default=None, ge=0.0, le=2.0, description="Sampling temperature override"
    )
    max_tokens: Optional[int] = Field(
        default=None, gt=0, description="Maximum tokens in response override"
    )

    # Response format (for JSON mode)
    response_format: Optional[Dict[str, Any]] = Field(
        default=None, description="Response format specification"
    )

    # Metadata for logging and preview
    row_ids: List[str] = Field(default_factory=list, description="Rows in this batch")
    template_name: Optional[str] = Field(default=None, description="Template applied")
    template_variables: Dict[str, Any] = Field(
        default_factory=dict, description="Values substituted into the prompt"
    )

    @property
    def system_prompt(self) -> Optional[str]:
        """Extract system prompt from messages."""
        for msg in self.messages:
            if msg.role == "system":
                return msg.content
        return None

    @property
    def user_prompt(self) -> Optional[str]:
        """Extract user prompt from messages."""
        for msg in self.messages:
            if msg.role == "user":
                return msg.content
        return None

    @property
    def estimated_input_tokens(self) -> int:
        """Rough token estimate: ~3 chars per token for mixed EN/MS/ZH."""
        return sum(len(m.content) for m in self.messages) // 3

    def to_openai_format(self) -> List[Dict[str, str]]:
        """Convert to OpenAI-style message list (what litellm expects)."""
        return [{"role": m.role, "content": m.content} for m in self.messages]

    def to_preview_dict(self) -> Dict[str, Any]:
        """Convert to preview format for API response."""
        return {
            "system_prompt": self.system_prompt,
            "user_prompt": self.user_prompt,
            "variables": self.template_variables,
            "template": self.template_name,
            "row_count": len(self.row_ids),
            "estimated_tokens": self.estimated_input_tokens,
        }
