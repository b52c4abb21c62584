"""
Flask server hosting chat panels.
"""

import json
import os
from flask import Flask, Response, jsonify, request, stream_with_context

from ollama_client import OllamaClient, RuntimeCommunicationError
from .renderer import PanelRenderer
from .session import PanelRegistry, parse_chat_message


class PanelServer:
    """Web server carrying the message channel between panels and their sessions."""

    def __init__(self, client: OllamaClient, renderer: PanelRenderer, registry: PanelRegistry,
                 host: str, port: int, default_model: str, models_error_message: str):
        """
        Initialize panel server.

        Args:
            client: Ollama client instance
            renderer: Panel renderer
            registry: Registry holding one chat session per opened panel
            host: Server host
            port: Server port
            default_model: Model used when a chat message does not name one
            models_error_message: Text returned when the model list cannot be fetched
        """
        self.client = client
        self.renderer = renderer
        self.registry = registry
        self.default_model = default_model
        self.models_error_message = models_error_message

        self.app = Flask(
            __name__,
            static_folder=os.path.join(os.path.dirname(__file__), 'static'),
            static_url_path='/static'
        )

        self.host = host
        self.port = port
        self._setup_routes()

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    def _setup_routes(self):
        """Set up Flask routes."""

        @self.app.route('/')
        def index():
            """Open a new panel."""
            session = self.registry.open_panel()
            return self.renderer.render_page(session.panel_id)

        @self.app.route('/api/models')
        def models():
            """List the models available on the runtime."""
            try:
                descriptors = self.client.list_models()
            except RuntimeCommunicationError as e:
                print(f"  > Error fetching models: {e}")
                return jsonify({'error': self.models_error_message}), 502
            return jsonify(self.renderer.models_payload(descriptors))

        @self.app.route('/api/panels/<panel_id>', methods=['DELETE'])
        def close_panel(panel_id):
            """Release the session of a panel whose page was closed."""
            if not self.registry.close_panel(panel_id):
                return jsonify({'error': f"Unknown panel: {panel_id}"}), 404
            return '', 204

        @self.app.route('/api/panels/<panel_id>/messages', methods=['POST'])
        def panel_message(panel_id):
            """Receive a panel message and stream the outbound messages back as server-sent events."""
            session = self.registry.get(panel_id)
            if session is None:
                return jsonify({'error': f"Unknown panel: {panel_id}"}), 404

            chat_request = parse_chat_message(request.get_json(silent=True), self.default_model)
            if chat_request is None:
                return '', 204

            def generate():
                for message in session.submit(chat_request):
                    yield f"data: {json.dumps(message)}\n\n"

            return Response(
                stream_with_context(generate()),
                mimetype='text/event-stream',
                headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'}
            )

    def run(self, debug: bool):
        """Run the web server."""
        print(f"\n--- Ollama Panel ---")
        print(f"Runtime: {self.client.server_url}")
        print(f"Open a panel at: {self.url}")
        print(f"--------------------")

        # Use werkzeug's run_simple to avoid auto-reloader issues in scripts
        from werkzeug.serving import run_simple
        run_simple(self.host, self.port, self.app, use_debugger=debug, use_reloader=debug, threaded=True)
