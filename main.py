#!/usr/bin/env python3
"""
Entry point: opens a chat panel on a local Ollama runtime.
"""

import argparse
import copy
import os
import sys
import threading
import webbrowser
import yaml
from typing import Dict, Optional

from ollama_client import OllamaClient
from ollama_client.client import DEFAULT_SERVER_URL
from panel import PanelRegistry, PanelRenderer, PanelServer


DEFAULT_CONFIG_PATH = 'config.yaml'
CONFIG_EXAMPLE_SUFFIX = '.example'

DEFAULT_CONFIG = {
    'ollama': {
        'server_url': DEFAULT_SERVER_URL,
        'api_key': 'ollama',
        'timeout': 300,
        'default_model': 'deepseek-r1:7b',
    },
    'ui': {
        'host': '127.0.0.1',
        'port': 5050,
        'debug': False,
        'open_browser': True,
        'max_panels': 32,
        'title': 'Ollama based AI',
        'pygments_style': 'github-dark',
        'guess_code_language': True,
    },
    'messages': {
        'error': 'Error communicating with Ollama.',
        'busy': 'A response is still streaming. Wait for it to finish.',
        'models_error': 'Error fetching models from Ollama.',
    },
}


def load_config(config_path: Optional[str], config_example_suffix: str) -> Dict:
    """
    Load configuration from YAML file, merged over the defaults.

    An explicitly given path must exist. Without one, config.yaml is used,
    then config.yaml.example, then the built-in defaults.
    """
    if config_path:
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found at {config_path}")
    else:
        config_path = DEFAULT_CONFIG_PATH
        if not os.path.exists(config_path):
            example_path = config_path + config_example_suffix
            if os.path.exists(example_path):
                print(f"Config file not found. Using example config: {example_path}")
                config_path = example_path
            else:
                config_path = None

    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is None:
        return config

    with open(config_path, 'r') as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping of sections, "
                         f"got {type(loaded).__name__}")

    for section, values in loaded.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values

    return config


def build_server(config: Dict) -> PanelServer:
    """Wire the client, renderer, session registry and web server from config."""
    ollama_config = config['ollama']
    client = OllamaClient(
        server_url=ollama_config['server_url'],
        api_key=ollama_config['api_key'],
        timeout=ollama_config['timeout']
    )

    ui_config = config['ui']
    renderer = PanelRenderer(
        pygments_style=ui_config['pygments_style'],
        guess_code_language=ui_config['guess_code_language'],
        title=ui_config['title']
    )

    messages = config['messages']
    registry = PanelRegistry(
        client,
        renderer,
        error_message=messages['error'],
        busy_message=messages['busy'],
        max_panels=ui_config['max_panels']
    )

    return PanelServer(
        client,
        renderer,
        registry,
        host=ui_config['host'],
        port=ui_config['port'],
        default_model=ollama_config['default_model'],
        models_error_message=messages['models_error']
    )


def run_panel(config: Dict, open_browser: bool):
    """Start the panel server and open one panel."""
    print("=" * 60)
    print("Ollama Chat Panel")
    print("=" * 60)

    server = build_server(config)

    print(f"  > Testing connection to {server.client.server_url}...")
    if server.client.test_connection():
        print("  > Ollama connection successful!")
    else:
        print("  > Warning: Ollama is not reachable. Chats will fail until it is running.")

    if open_browser:
        threading.Timer(1.0, webbrowser.open, args=(server.url,)).start()

    server.run(debug=config['ui']['debug'])


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Chat with local Ollama models in a browser panel'
    )
    parser.add_argument(
        '--config',
        type=str,
        help='Path to the configuration file'
    )
    parser.add_argument(
        '--no-browser',
        action='store_true',
        help='Start the server without opening a panel in the browser'
    )

    args = parser.parse_args()

    try:
        config = load_config(args.config, CONFIG_EXAMPLE_SUFFIX)
        open_browser = config['ui']['open_browser'] and not args.no_browser
        run_panel(config, open_browser=open_browser)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"\nAn unexpected error occurred: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
