"""
Chat panel module.
Session controllers, rendering and the web server hosting the panels.
"""

from .renderer import PanelRenderer
from .session import ChatResponseBuffer, ChatSession, PanelRegistry, parse_chat_message
from .web_server import PanelServer

__all__ = ['PanelRenderer', 'ChatResponseBuffer', 'ChatSession', 'PanelRegistry',
           'parse_chat_message', 'PanelServer']
