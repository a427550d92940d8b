"""
Web Search Augmentation - request modifiers asking the backend to consult live web data.
Only models flagged ``supports_web_search`` in the catalog accept them.
"""

from datetime import date, timedelta
from typing import Optional, List, Dict, Any, Tuple

from ..core.errors import UnsupportedCapabilityError
from ..llm.base import LLMMessage
from ..llm.catalog import supports_web_search

WEB_SEARCH_INSTRUCTION = (
    "You have access to real-time web search. When the user asks about current events "
    "or recent information, use web search to get the latest information. "
    "Cite your sources when using web search results."
)

TOOL_TYPE = "web_search_preview"


def ensure_web_search_supported(model_id: str) -> None:
    """Raise ``UnsupportedCapabilityError`` if the model cannot search the web."""
    if not supports_web_search(model_id):
        raise UnsupportedCapabilityError(model_id, capability="web_search")


class WebSearchTool:
    """
    Builds the web-search additions for a completion request.

    The additions are a leading system instruction, a tool descriptor
    limited to a trailing window of days, and a forced tool choice.
    """

    def __init__(self, context_size: str = "high", window_days: int = 30):
        """
        Args:
            context_size: Search context size hint ("low", "medium", "high")
            window_days: Length of the search window ending today
        """
        self.context_size = context_size
        self.window_days = window_days

    def date_range(self, today: Optional[date] = None) -> Dict[str, str]:
        """Inclusive range from ``window_days`` ago through today, as ISO dates."""
        today = today or date.today()
        return {
            "start_date": (today - timedelta(days=self.window_days)).isoformat(),
            "end_date": today.isoformat(),
        }

    def tool_descriptor(self, today: Optional[date] = None) -> Dict[str, Any]:
        return {
            "type": TOOL_TYPE,
            TOOL_TYPE: {
                "search_context_size": self.context_size,
                "date_range": self.date_range(today),
            },
        }

    def tool_choice(self) -> Dict[str, Any]:
        return {"type": TOOL_TYPE, TOOL_TYPE: {}}

    def system_message(self) -> LLMMessage:
        return LLMMessage.text("system", WEB_SEARCH_INSTRUCTION)

    def augment(
        self,
        messages: List[LLMMessage],
        today: Optional[date] = None,
    ) -> Tuple[List[LLMMessage], List[Dict[str, Any]], Dict[str, Any]]:
        """
        Apply web search to a request.

        Returns:
            (messages with the instruction prepended, tools, tool_choice)
        """
        return (
            [self.system_message(), *messages],
            [self.tool_descriptor(today)],
            self.tool_choice(),
        )
