"""LLM agent that controls the player through tools."""

from .agent import Agent, AgentWorker
from .client import ClaudeClient, ToolCall
from .tools import SYSTEM_PROMPT, TOOL_DEFINITIONS

__all__ = [
    "Agent",
    "AgentWorker",
    "ClaudeClient",
    "ToolCall",
    "SYSTEM_PROMPT",
    "TOOL_DEFINITIONS",
]
