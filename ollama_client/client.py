"""
Client for a local Ollama runtime.

Chat completions go through Ollama's OpenAI-compatible endpoint; the model
listing uses Ollama's native /api/tags endpoint.
"""

import openai
import requests
from typing import Iterator, List
from openai import APIError, APIConnectionError, APITimeoutError

from .exceptions import RuntimeCommunicationError
from .models import ChatRequest, ModelDescriptor


DEFAULT_SERVER_URL = 'http://localhost:11434'


class OllamaClient:
    """Client for streaming chats and listing models on an Ollama server."""

    def __init__(self, server_url: str, api_key: str, timeout: float):
        """
        Initialize Ollama client.

        Args:
            server_url: Base URL of the Ollama server (e.g., http://localhost:11434).
                Falls back to DEFAULT_SERVER_URL when empty.
            api_key: API key (dummy for Ollama, but required by the OpenAI client)
            timeout: Request timeout in seconds
        """
        self.server_url = (server_url or DEFAULT_SERVER_URL).rstrip('/')
        self.api_key = api_key
        self.timeout = timeout

        # Configure OpenAI client against the OpenAI-compatible endpoint
        self.client = openai.OpenAI(
            api_key=api_key,
            base_url=f"{self.server_url}/v1",
            timeout=timeout,
            max_retries=0
        )

    def list_models(self) -> List[ModelDescriptor]:
        """
        Fetch the models available on the server, in the order the server lists them.

        Raises:
            RuntimeCommunicationError: If the server is unreachable or the listing is malformed
        """
        url = f"{self.server_url}/api/tags"
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise RuntimeCommunicationError(f"Could not fetch model list from {url}: {e}") from e
        except ValueError as e:
            raise RuntimeCommunicationError(f"Model list from {url} is not valid JSON: {e}") from e

        try:
            return [
                ModelDescriptor(id=entry['model'], display_name=entry.get('name') or entry['model'])
                for entry in data['models']
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise RuntimeCommunicationError(f"Malformed model list from {url}: {e}") from e

    def chat_stream(self, request: ChatRequest) -> Iterator[str]:
        """
        Send a prompt as a single user message and stream the reply.

        Args:
            request: Prompt and target model

        Yields:
            Response chunks, in arrival order

        Raises:
            RuntimeCommunicationError: On connection failure, unknown model or runtime error
        """
        messages = [{"role": "user", "content": request.prompt}]

        try:
            stream = self.client.chat.completions.create(
                model=request.model_id,
                messages=messages,
                stream=True
            )

            for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content

        except APITimeoutError as e:
            raise RuntimeCommunicationError(f"Ollama request timed out (timeout={self.timeout}s).") from e
        except APIConnectionError as e:
            raise RuntimeCommunicationError(f"Could not connect to Ollama at {self.server_url}. Ensure the server is running.") from e
        except APIError as e:
            raise RuntimeCommunicationError(f"Ollama API error: {e}. Check model name ({request.model_id}).") from e
        except Exception as e:
            raise RuntimeCommunicationError(f"Ollama streaming request failed: {e}") from e

    def test_connection(self) -> bool:
        """Test if the Ollama server is accessible."""
        try:
            self.list_models()
            return True
        except RuntimeCommunicationError as e:
            print(f"Ollama connection test failed: {e}")
            return False
