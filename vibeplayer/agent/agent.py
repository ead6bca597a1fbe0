"""Agent: turns natural-language requests into player actions."""

import asyncio
import logging
import queue
import threading
from typing import Any, Dict, Optional

from ..errors import AgentError, FetchError
from ..models.commands import Skip, Pause, Resume, SetVolume
from ..models.ui import AgentStatus
from ..services.command_publisher import CommandPublisher
from ..services.fetch_service import FetchOrchestrator
from ..services.session_state import SessionState
from .client import ClaudeClient, ToolCall
from .tools import SYSTEM_PROMPT, TOOL_DEFINITIONS

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_COUNT = 3
MAX_SEARCH_COUNT = 5
DEFAULT_TOOL_VOLUME = 70


class Agent:
    """Asks the LLM which tools to run for a request, then runs them.

    Playback tools become commands on the ``player.command`` topic; fetch
    tools go through the fetch orchestrator. The agent never touches the
    playback controller.
    """

    def __init__(self,
                 state: SessionState,
                 fetch: FetchOrchestrator,
                 client: ClaudeClient,
                 publisher: Optional[CommandPublisher] = None):
        self.state = state
        self.fetch = fetch
        self.client = client
        self.publisher = publisher or CommandPublisher()

    def build_system_prompt(self, context: str) -> str:
        return f"{SYSTEM_PROMPT}\n\nCurrent state:\n{context}"

    async def handle_input(self, text: str) -> None:
        """Handle one user request end to end.

        Raises:
            AgentError: If the LLM call fails
            FetchError: If a search made by a tool fails
        """
        logger.info(f"Agent handling input: {text}")
        context = self.state.build_context()
        logger.debug(f"Agent context snapshot:\n{context}")

        self.state.set_agent_status(AgentStatus.thinking())
        logger.info(f"Calling Claude API with model {self.client.model}")
        tool_calls = await self.client.request_tool_calls(
            text, self.build_system_prompt(context), TOOL_DEFINITIONS)
        logger.info(f"Received {len(tool_calls)} tool calls from API")

        for tool_call in tool_calls:
            self.state.set_agent_status(AgentStatus.acting(tool_call.name))
            self.execute_tool(tool_call)
            logger.info(f"Tool call completed: {tool_call.name}")

        self.state.set_agent_status(AgentStatus.idle())

    def execute_tool(self, tool_call: ToolCall) -> None:
        """Run one tool call against the player."""
        name, args = tool_call.name, tool_call.input
        logger.info(f"Executing tool call: {name} {args}")

        if name == "play_url":
            self.fetch.play_url(self._require(args, "url"))
        elif name == "search_and_queue":
            count = max(1, min(MAX_SEARCH_COUNT, int(args.get("count") or DEFAULT_SEARCH_COUNT)))
            self.fetch.search_and_queue(self._require(args, "query"), count)
        elif name == "replace_queue":
            queries = [q for q in args.get("queries") or [] if isinstance(q, str) and q]
            self.fetch.replace_queue(queries)
        elif name == "skip":
            self.publisher.publish_command(Skip())
        elif name == "pause":
            self.publisher.publish_command(Pause())
        elif name == "resume":
            self.publisher.publish_command(Resume())
        elif name == "set_volume":
            self.publisher.publish_command(SetVolume(args.get("level", DEFAULT_TOOL_VOLUME)))
        else:
            logger.warning(f"Unknown tool call received: {name}")

    @staticmethod
    def _require(args: Dict[str, Any], key: str) -> str:
        value = args.get(key)
        if not isinstance(value, str) or not value:
            raise AgentError(f"Tool call is missing '{key}'")
        return value


class AgentWorker:
    """Runs agent requests one at a time on a thread with its own event loop."""

    def __init__(self, agent: Agent):
        self.agent = agent
        self.requests: "queue.Queue[Optional[str]]" = queue.Queue()
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self.thread = threading.Thread(target=self._worker_loop)
        self.thread.name = "agent_worker"
        self.thread.daemon = True
        self.thread.start()
        logger.info("Agent worker started")

    def submit(self, text: str) -> None:
        """Queue a request typed by the user."""
        self.requests.put(text)

    def _worker_loop(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        try:
            while True:
                text = self.requests.get()
                if text is None:
                    logger.debug("Agent worker received sentinel, exiting.")
                    self.requests.task_done()
                    break
                try:
                    loop.run_until_complete(self.agent.handle_input(text))
                except (AgentError, FetchError) as e:
                    self._report_error(e)
                except Exception as e:
                    logger.error(f"Unhandled exception in agent request: {e}", exc_info=True)
                    self._report_error(e)
                finally:
                    self.requests.task_done()
        finally:
            loop.close()
            logger.debug("Agent worker exiting and closing its event loop.")

    def _report_error(self, error: Exception) -> None:
        logger.error(f"Agent error: {error}")
        self.agent.state.set_agent_status(AgentStatus.idle())
        self.agent.state.set_status_message(f"Agent error: {error}")

    def shutdown(self, timeout: float = 5.0) -> None:
        self.requests.put(None)
        if self.thread is not None:
            self.thread.join(timeout)
        logger.info("Agent worker shut down")
