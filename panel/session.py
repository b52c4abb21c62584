"""
Chat sessions: one controller per opened panel.
"""

import threading
import uuid
from collections import OrderedDict
from typing import Dict, Iterator, Optional

from ollama_client import ChatRequest, OllamaClient, RuntimeCommunicationError
from .renderer import PanelRenderer


def parse_chat_message(message: Dict, default_model: str) -> Optional[ChatRequest]:
    """
    Turn an inbound panel message into a chat request.

    Args:
        message: Message posted by the panel ({command: "chat", text, model})
        default_model: Model used when the message does not name one

    Returns:
        The request, or None when the message must be ignored
        (unknown command, empty or whitespace-only text)
    """
    if not isinstance(message, dict) or message.get('command') != 'chat':
        return None

    text = message.get('text')
    if not isinstance(text, str) or not text.strip():
        return None

    model = message.get('model') or default_model
    return ChatRequest(prompt=text.strip(), model_id=model)


class ChatResponseBuffer:
    """Append-only text accumulated over one streamed response."""

    def __init__(self):
        self._parts = []

    def append(self, chunk: str) -> str:
        """Append a chunk and return the cumulative text."""
        self._parts.append(chunk)
        return self.text

    @property
    def text(self) -> str:
        return ''.join(self._parts)

    def reset(self):
        self._parts = []


class ChatSession:
    """Relays one panel's chat submissions to the model client."""

    def __init__(self, panel_id: str, client: OllamaClient, renderer: PanelRenderer,
                 error_message: str, busy_message: str):
        """
        Initialize chat session.

        Args:
            panel_id: Identifier of the panel this session belongs to
            client: Ollama client instance
            renderer: Renderer used to turn cumulative text into HTML
            error_message: Fixed text shown when the runtime cannot be reached
            busy_message: Text sent when a submission arrives during a running stream
        """
        self.panel_id = panel_id
        self.client = client
        self.renderer = renderer
        self.error_message = error_message
        self.busy_message = busy_message
        self.buffer = ChatResponseBuffer()
        self._in_flight = threading.Lock()

    def _response(self, text: str) -> Dict:
        return {'command': 'chatResponse', 'text': text, 'html': self.renderer.render_markdown(text)}

    def submit(self, request: ChatRequest) -> Iterator[Dict]:
        """
        Stream the reply to a chat request.

        Yields:
            chatResponse messages carrying the cumulative text after each chunk,
            a single chatResponse with the error text if the runtime fails,
            or a single chatBusy message if another request is still streaming
        """
        if not self._in_flight.acquire(blocking=False):
            yield {'command': 'chatBusy', 'text': self.busy_message}
            return

        try:
            self.buffer.reset()
            try:
                for chunk in self.client.chat_stream(request):
                    yield self._response(self.buffer.append(chunk))
            except RuntimeCommunicationError as e:
                print(f"  > Error: panel {self.panel_id}: {e}")
                self.buffer.reset()
                yield self._response(self.error_message)
        finally:
            self._in_flight.release()


class PanelRegistry:
    """Keeps the chat sessions of open panels, evicting the least recently used beyond max_panels."""

    def __init__(self, client: OllamaClient, renderer: PanelRenderer,
                 error_message: str, busy_message: str, max_panels: int):
        self.client = client
        self.renderer = renderer
        self.error_message = error_message
        self.busy_message = busy_message
        self.max_panels = max_panels
        self._sessions: 'OrderedDict[str, ChatSession]' = OrderedDict()
        self._lock = threading.Lock()

    def open_panel(self) -> ChatSession:
        """Create the session for a newly opened panel."""
        panel_id = uuid.uuid4().hex
        session = ChatSession(panel_id, self.client, self.renderer,
                              self.error_message, self.busy_message)
        with self._lock:
            self._sessions[panel_id] = session
            while len(self._sessions) > self.max_panels:
                evicted_id, _ = self._sessions.popitem(last=False)
                print(f"  > Closing idle panel {evicted_id} (limit: {self.max_panels} panels)")
        return session

    def get(self, panel_id: str) -> Optional[ChatSession]:
        with self._lock:
            session = self._sessions.get(panel_id)
            if session is not None:
                self._sessions.move_to_end(panel_id)
            return session

    def close_panel(self, panel_id: str) -> bool:
        """Forget a panel's session. Returns False if the panel was not open."""
        with self._lock:
            return self._sessions.pop(panel_id, None) is not None

    def __len__(self):
        with self._lock:
            return len(self._sessions)
