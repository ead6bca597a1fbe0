"""Claude Messages API client for tool-use requests."""

import logging
from typing import Any, Dict, List, Optional

import aiohttp
from pydantic import BaseModel, Field, ValidationError

from ..errors import AgentError

logger = logging.getLogger(__name__)


class ContentBlock(BaseModel):
    """One block of a Messages API response."""
    type: str
    text: Optional[str] = None
    id: Optional[str] = None
    name: Optional[str] = None
    input: Dict[str, Any] = Field(default_factory=dict)


class MessagesResponse(BaseModel):
    content: List[ContentBlock] = Field(default_factory=list)
    stop_reason: Optional[str] = None


class ToolCall(BaseModel):
    """A tool the model asked the player to run."""
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)


class ClaudeClient:
    """Simple client for sending one user turn plus tools to Claude."""
    
    def __init__(self, api_key: str, model: str = "claude-sonnet-4-5-20250929",
                 max_tokens: int = 1024, base_url: str = "https://api.anthropic.com/v1/messages"):
        """Initialize Claude client.
        
        Args:
            api_key: Anthropic API key
            model: Model name
            max_tokens: Maximum tokens in the response
            base_url: Messages API endpoint
        """
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.base_url = base_url
        
        logger.info(f"ClaudeClient initialized with model: {model}")
    
    def build_request(self, user_input: str, system: str, tools: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "tools": tools,
            "messages": [
                {
                    "role": "user",
                    "content": user_input
                }
            ]
        }
    
    async def request_tool_calls(self, user_input: str, system: str,
                                 tools: List[Dict[str, Any]]) -> List[ToolCall]:
        """Send a prompt and collect the tool calls from the response.
        
        Args:
            user_input: The user's request
            system: System prompt including the player state
            tools: Tool definitions offered to the model
            
        Returns:
            Tool calls in the order the model returned them
            
        Raises:
            AgentError: If the API call fails or the response is malformed
        """
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json"
        }
        data = self.build_request(user_input, system, tools)
        
        logger.debug("Sending Claude API request")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.base_url, headers=headers, json=data) as response:
                    logger.info(f"Claude API response received: {response.status}")
                    if response.status != 200:
                        error_text = await response.text()
                        raise AgentError(f"Claude API error: {response.status} - {error_text}")
                    result = await response.json()
        except aiohttp.ClientError as e:
            raise AgentError(f"Failed to reach Claude API: {e}") from e
        
        return self.parse_tool_calls(result)
    
    @staticmethod
    def parse_tool_calls(result: Dict[str, Any]) -> List[ToolCall]:
        """Pull the ``tool_use`` blocks out of a decoded response body."""
        try:
            response = MessagesResponse.model_validate(result)
        except ValidationError as e:
            raise AgentError(f"Failed to parse Claude API response: {e}") from e
        
        tool_calls = []
        for block in response.content:
            if block.type == "tool_use" and block.name:
                logger.info(f"Parsed tool call from response: {block.name} {block.input}")
                tool_calls.append(ToolCall(name=block.name, input=block.input))
            elif block.type == "text":
                logger.debug(f"LLM text response (non-tool): {block.text}")
        
        if not tool_calls:
            logger.warning("API returned no tool calls - LLM may have responded with text only")
        return tool_calls
