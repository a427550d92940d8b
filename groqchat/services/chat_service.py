"""
Chat Service - the send flow and session management.

A send appends the user message, opens a streamed completion, and writes
every accumulated snapshot into the placeholder assistant message held by
a ``StreamHandle``. Fragments update the in-memory cache only; the final
text is written to the store once, when the stream ends for any reason.

``send`` yields events shaped like the SSE relay:
    {"type": "notice", "message": ...}        capability downgrade
    {"type": "storage_error", "operation": ..., "error": ...}
    {"type": "content", "content": <accumulated text>}
    {"type": "done", "content": <final text>, "cancelled": bool}
    {"type": "error", "error": ..., "content": <text shown in the reply>}
"""

import asyncio
import base64
import logging
import mimetypes
from typing import Any, AsyncGenerator, AsyncIterator, Dict, List, Optional

import aiofiles

from ..core.app_state import AppState, StreamHandle
from ..core.errors import (
    StaleStreamError,
    StorageError,
    StreamInProgressError,
    TransportError,
    UnsupportedCapabilityError,
)
from ..core.logging_config import LoggerAdapter
from ..llm.base import LLMMessage, LLMProvider
from ..llm.catalog import AVAILABLE_MODELS, get_model
from ..llm.stream import StreamingReplyAssembler
from ..models.chat import DEFAULT_SESSION_ID, Message, Session, now_ms
from ..storage.conversation_store import ConversationStore
from ..tools.web_search import WebSearchTool, ensure_web_search_supported
from .export import export_markdown

logger = logging.getLogger(__name__)


def _web_search_notice() -> str:
    names = [m.name for m in AVAILABLE_MODELS if m.supports_web_search]
    return f"Web search is only available with {', '.join(names)}. Sending without web search."


class ChatService:
    """Coordinates the app state, the conversation store and the LLM provider."""

    def __init__(
        self,
        store: ConversationStore,
        llm_provider: Optional[LLMProvider] = None,
        state: Optional[AppState] = None,
        web_search: Optional[WebSearchTool] = None,
        export_dir: str = "./data/exports",
    ):
        self.store = store
        self.llm_provider = llm_provider
        self.state = state or AppState()
        self.web_search = web_search or WebSearchTool()
        self.export_dir = export_dir
        self._sending = False

    @property
    def is_streaming(self) -> bool:
        return self._sending

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Register the active session and load its history."""
        try:
            await self.store.upsert_session(
                self.state.active_session_id, model_id=self.state.selected_model
            )
        except StorageError as e:
            logger.warning(f"Could not register session {self.state.active_session_id}: {e}")
        await self.load_history()

    async def load_history(self) -> List[Message]:
        """Reload the active session's messages; an unreadable store yields an empty history."""
        session_id = self.state.active_session_id
        try:
            messages = await self.store.list_messages(session_id)
        except StorageError as e:
            logger.warning(f"Error loading history for session {session_id}: {e}")
            messages = []
        self.state.reset(session_id, messages)
        return self.state.messages

    async def list_sessions(self) -> List[Session]:
        try:
            return await self.store.list_sessions()
        except StorageError as e:
            logger.warning(f"Error listing sessions: {e}")
            return []

    async def list_messages(self, session_id: str) -> List[Message]:
        try:
            return await self.store.list_messages(session_id)
        except StorageError as e:
            logger.warning(f"Error loading messages for session {session_id}: {e}")
            return []

    async def new_session(self) -> str:
        """Start a fresh session named by the current epoch milliseconds."""
        self.cancel()
        session_id = str(now_ms())
        self.state.reset(session_id)
        await self.store.upsert_session(session_id, model_id=self.state.selected_model)
        logger.info(f"Created session {session_id}")
        return session_id

    async def load_session(self, session_id: str) -> List[Message]:
        self.cancel()
        self.state.active_session_id = session_id
        return await self.load_history()

    async def delete_session(self, session_id: str) -> None:
        """Delete a session; deleting the active one falls back to the default session."""
        if session_id == self.state.active_session_id:
            self.cancel()
        await self.store.delete_session(session_id)
        if session_id == self.state.active_session_id:
            self.state.reset(DEFAULT_SESSION_ID)
            await self.store.upsert_session(DEFAULT_SESSION_ID, model_id=self.state.selected_model)

    async def clear_history(self) -> None:
        """Delete the active session's messages."""
        self.cancel()
        self.state.messages = []
        await self.store.clear_messages(self.state.active_session_id)

    async def clear_all(self) -> None:
        """Delete every message in every session."""
        self.cancel()
        self.state.messages = []
        await self.store.clear_all()

    # ------------------------------------------------------------------
    # Model and toggles
    # ------------------------------------------------------------------

    async def select_model(self, model_id: str) -> None:
        """
        Switch the selected model and record it on the active session.

        Raises:
            UnknownModelError: model_id is not in the catalog
        """
        spec = get_model(model_id)
        self.state.selected_model = spec.id
        if not spec.supports_web_search:
            self.state.use_web_search = False
        await self.store.upsert_session(self.state.active_session_id, model_id=spec.id)

    def toggle_web_search(self) -> bool:
        self.state.use_web_search = not self.state.use_web_search
        return self.state.use_web_search

    def cancel(self) -> bool:
        """Abort the in-flight stream, if any. The text received so far stands."""
        handle = self.state.stream
        if handle is None:
            return False
        handle.cancel()
        logger.info(f"Cancelling stream for session {handle.session_id}")
        return True

    async def export_markdown(self):
        return await export_markdown(self.state.messages, self.export_dir)

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    async def send(
        self,
        text: str,
        image_path: Optional[str] = None,
        use_web_search: Optional[bool] = None,
    ) -> AsyncGenerator[Dict[str, Any], None]:
        """
        Send a user message and stream the assistant's reply.

        Raises:
            StreamInProgressError: another reply is still streaming
        """
        text = (text or "").strip()
        if not text and image_path is None:
            return
        if self._sending:
            raise StreamInProgressError("A reply is already streaming; wait for it or cancel it")
        self._sending = True

        try:
            session_id = self.state.active_session_id
            model_id = self.state.selected_model
            log = LoggerAdapter(logger, {"session_id": session_id, "model": model_id})

            should_search = self.state.use_web_search if use_web_search is None else use_web_search
            if should_search:
                try:
                    ensure_web_search_supported(model_id)
                except UnsupportedCapabilityError as e:
                    log.info(f"Web search downgraded: {e}")
                    should_search = False
                    yield {"type": "notice", "message": _web_search_notice()}

            user_message = Message(
                session_id=session_id,
                text=text,
                is_user=True,
                image_path=image_path,
                use_web_search=should_search,
            )
            self.state.add_message(user_message)
            error = await self._persist_new(user_message)
            if error:
                yield error

            try:
                request_messages = await self._build_request(self.state.messages, user_message)
            except OSError as e:
                log.error(f"Cannot read attached image {image_path}: {e}")
                yield {"type": "error", "error": f"Cannot read image {image_path}: {e}", "content": ""}
                return

            tools = tool_choice = None
            if should_search:
                request_messages, tools, tool_choice = self.web_search.augment(request_messages)

            placeholder = Message(session_id=session_id, text="", is_user=False, use_web_search=should_search)
            index = self.state.add_message(placeholder)
            error = await self._persist_new(placeholder)
            if error:
                yield error

            handle = StreamHandle(
                session_id=session_id,
                index=index,
                message_id=placeholder.id,
                created_at=placeholder.created_at,
            )
            self.state.stream = handle

            events = self._stream_reply(handle, request_messages, model_id, tools, tool_choice, log)
            try:
                async for event in events:
                    yield event
            finally:
                await events.aclose()
        finally:
            self._sending = False

    async def _stream_reply(
        self,
        handle: StreamHandle,
        request_messages: List[LLMMessage],
        model_id: str,
        tools: Optional[List[Dict[str, Any]]],
        tool_choice: Optional[Dict[str, Any]],
        log: LoggerAdapter,
    ) -> AsyncGenerator[Dict[str, Any], None]:
        assembler = StreamingReplyAssembler()
        failure: Optional[TransportError] = None
        stream = None
        storage_error = None

        try:
            try:
                if self.llm_provider is None:
                    raise TransportError("LLM provider is not configured (set LLM_API_KEY)")
                stream = self.llm_provider.stream_reply(
                    request_messages,
                    model=model_id,
                    tools=tools,
                    tool_choice=tool_choice,
                    assembler=assembler,
                )
                while True:
                    update = await _next_update(stream, handle)
                    if update is None:
                        break
                    self.state.replace_streamed_message(handle, update)
                    yield {"type": "content", "content": update}
            except TransportError as e:
                failure = e
                # A partial answer is kept; the error text follows it
                partial = assembler.accumulated
                error_text = f"{partial}\n\nError: {e}" if partial else f"Error: {e}"
                try:
                    self.state.replace_streamed_message(handle, error_text)
                except StaleStreamError as stale:
                    log.warning(f"Error text not shown, cache moved on: {stale}")
        finally:
            if stream is not None:
                await stream.aclose()
            storage_error = await self._persist_final(handle)
            if self.state.stream is handle:
                self.state.stream = None

        if storage_error:
            yield storage_error
        if failure is not None:
            log.warning(f"Reply failed after {len(assembler.accumulated)} chars: {failure}")
            yield {"type": "error", "error": str(failure), "content": handle.text}
        else:
            log.info(
                f"Reply finished: {len(handle.text)} chars, "
                f"skipped_frames={assembler.skipped_frames}, cancelled={handle.cancelled}"
            )
            yield {"type": "done", "content": handle.text, "cancelled": handle.cancelled}

    async def _persist_new(self, message: Message) -> Optional[Dict[str, Any]]:
        """Store a new message; on failure keep it in memory and return an error event."""
        try:
            message.id = await self.store.append_message(
                message.session_id,
                message.text,
                message.is_user,
                image_path=message.image_path,
                use_web_search=message.use_web_search,
            )
        except StorageError as e:
            return {"type": "storage_error", "operation": e.operation, "error": str(e)}
        return None

    async def _persist_final(self, handle: StreamHandle) -> Optional[Dict[str, Any]]:
        if handle.message_id is None:
            return None
        try:
            await self.store.update_message_text(handle.message_id, handle.text)
        except StorageError as e:
            return {"type": "storage_error", "operation": e.operation, "error": str(e)}
        return None

    async def _build_request(self, messages: List[Message], current: Message) -> List[LLMMessage]:
        """
        Convert the cached conversation into request messages.

        Raises:
            OSError: the current message's image cannot be read
        """
        request = []
        for msg in messages:
            if not msg.image_path:
                request.append(LLMMessage.text(msg.role, msg.text))
                continue
            try:
                image = await _read_image(msg.image_path)
            except OSError:
                if msg is current:
                    raise
                logger.warning(f"Dropping unreadable image {msg.image_path} from history")
                request.append(LLMMessage.text(msg.role, msg.text))
                continue
            request.append(LLMMessage.multimodal(msg.role, msg.text, image_base64_list=[image]))
        return request


async def _next_update(stream: AsyncIterator[str], handle: StreamHandle) -> Optional[str]:
    """
    Wait for the next snapshot from ``stream`` or for ``handle`` to be cancelled.

    Returns None when the stream is exhausted or the handle was cancelled;
    a pending read is cancelled so the stream can be closed right away.
    """
    if handle.cancelled:
        return None
    read = asyncio.ensure_future(stream.__anext__())
    cancelled = asyncio.ensure_future(handle.cancel_event.wait())
    try:
        done, _ = await asyncio.wait({read, cancelled}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        pending = [task for task in (read, cancelled) if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    if read not in done:
        return None
    try:
        update = read.result()
    except StopAsyncIteration:
        return None
    return None if handle.cancelled else update


async def _read_image(path: str) -> Dict[str, str]:
    async with aiofiles.open(path, 'rb') as f:
        data = await f.read()
    media_type = mimetypes.guess_type(path)[0] or "image/jpeg"
    if not media_type.startswith("image/"):
        media_type = "image/jpeg"
    return {"data": base64.b64encode(data).decode("utf-8"), "media_type": media_type}
