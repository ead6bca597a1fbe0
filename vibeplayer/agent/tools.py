"""System prompt and tool schema offered to the LLM."""

SYSTEM_PROMPT = """You are the AI brain of vibeplayer, a terminal YouTube music player. Your job is to interpret user commands and control the player using tools.

You receive the current player state (now playing, library, queue) with each message. Use the tools to respond to the user's intent. Always use tools, never respond with just text.

Guidelines:
- For YouTube URLs, use play_url
- For song/artist names, use search_and_queue with good search queries
- For vibe/mood requests, translate the mood into multiple specific search queries
- When replacing the queue, pick 4-6 diverse but fitting search queries
- Keep search queries specific: include artist names, song names, or descriptive terms like "chill lo-fi beats" rather than vague terms"""


def _no_arguments(name: str, description: str) -> dict:
    return {
        "name": name,
        "description": description,
        "input_schema": {"type": "object", "properties": {}}
    }


TOOL_DEFINITIONS = [
    {
        "name": "play_url",
        "description": "Download and play a YouTube URL immediately. Use when the user provides a direct YouTube link.",
        "input_schema": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "YouTube URL to play"}
            },
            "required": ["url"]
        }
    },
    {
        "name": "search_and_queue",
        "description": "Search YouTube and add results to the queue. Use for song names, artist requests, or mood-based queries.",
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "YouTube search query"},
                "count": {"type": "integer", "description": "Number of results to queue (1-5)", "default": 3}
            },
            "required": ["query"]
        }
    },
    {
        "name": "replace_queue",
        "description": "Clear the current queue and populate with new searches. Use when the user wants to change the vibe or mood entirely.",
        "input_schema": {
            "type": "object",
            "properties": {
                "queries": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "List of YouTube search queries to populate the new queue"
                }
            },
            "required": ["queries"]
        }
    },
    _no_arguments("skip", "Skip the currently playing song."),
    _no_arguments("pause", "Pause playback."),
    _no_arguments("resume", "Resume playback."),
    {
        "name": "set_volume",
        "description": "Set the playback volume.",
        "input_schema": {
            "type": "object",
            "properties": {
                "level": {"type": "integer", "description": "Volume level 0-100"}
            },
            "required": ["level"]
        }
    },
]

TOOL_NAMES = frozenset(tool["name"] for tool in TOOL_DEFINITIONS)
