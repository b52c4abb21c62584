"""
Ollama runtime client module.
Wraps the OpenAI-compatible chat endpoint and the model listing of a local Ollama server.
"""

from .client import OllamaClient
from .exceptions import RuntimeCommunicationError
from .models import ChatRequest, ModelDescriptor

__all__ = ['OllamaClient', 'RuntimeCommunicationError', 'ChatRequest', 'ModelDescriptor']
