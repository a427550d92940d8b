"""
Chat Export - renders a conversation as Markdown and writes it to disk.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import aiofiles

from ..core.errors import StorageError
from ..models.chat import Message

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "groq_chat_export.md"


def render_markdown(messages: List[Message], exported_at: Optional[datetime] = None) -> str:
    """Render messages as a Markdown transcript."""
    exported_at = exported_at or datetime.now()
    lines = [f"# Groq Chat Export - {exported_at.isoformat()}\n", ""]

    for msg in messages:
        speaker = "You" if msg.is_user else "AI"
        if msg.is_user and msg.use_web_search:
            lines.append(f"**{speaker}** \U0001F50D (Web Search): {msg.text}")
        else:
            lines.append(f"**{speaker}**: {msg.text}")
        if msg.image_path:
            lines.append("(Image attached)")
        lines.append("\n---\n")

    return "\n".join(lines) + "\n"


async def export_markdown(
    messages: List[Message],
    export_dir: str,
    filename: str = EXPORT_FILENAME,
) -> Path:
    """
    Write the Markdown transcript to ``export_dir/filename``.

    Returns:
        Path of the written file

    Raises:
        StorageError: the file could not be written
    """
    target = Path(export_dir) / filename
    content = render_markdown(messages)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(target, 'w', encoding='utf-8') as f:
            await f.write(content)
    except OSError as e:
        logger.error(f"Error exporting chat to {target}: {e}")
        raise StorageError(f"Export to {target} failed: {e}", operation="export") from e

    logger.info(f"Exported {len(messages)} messages to {target}")
    return target
