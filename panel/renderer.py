"""
HTML rendering for the chat panel.
"""

from html import unescape
import os
import re
import markdown
from typing import Dict, List, Optional
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markdown.treeprocessors import Treeprocessor
from pygments.formatters import HtmlFormatter

from ollama_client import ModelDescriptor


COPY_BUTTON_HTML = '<button type="button" class="copy-button">Copy</button>'

SAFE_URL_SCHEMES = ('http', 'https', 'mailto')

_PRE_BLOCK = re.compile(r'(<pre\b[^>]*>)(.*?)(</pre>)', re.DOTALL)
_URL_SCHEME = re.compile(r'^([a-z][a-z0-9+.\-]*):')
# Browsers ignore whitespace and control characters when reading a URL scheme
_URL_IGNORED_CHARS = re.compile(r'[\x00-\x20\x7f]')


def is_safe_url(url: str) -> bool:
    """Accept relative URLs and those whose scheme is in SAFE_URL_SCHEMES."""
    candidate = _URL_IGNORED_CHARS.sub('', unescape(url)).lower()
    match = _URL_SCHEME.match(candidate)
    return match is None or match.group(1) in SAFE_URL_SCHEMES


class SafeLinkTreeprocessor(Treeprocessor):
    """Drops link and image targets with a scheme outside SAFE_URL_SCHEMES."""

    URL_ATTRIBUTES = {'a': 'href', 'img': 'src'}

    def run(self, root):
        for element in root.iter():
            attribute = self.URL_ATTRIBUTES.get(element.tag)
            if attribute and not is_safe_url(element.get(attribute, '')):
                del element.attrib[attribute]


class PanelRenderer:
    """Renders the panel page and the markdown of streamed responses."""

    def __init__(self, pygments_style: str, guess_code_language: bool, title: str):
        """
        Initialize panel renderer.

        Args:
            pygments_style: Pygments code highlighting style
            guess_code_language: Guess the lexer for fenced blocks without a language tag
            title: Title shown in the panel page
        """
        self.pygments_style = pygments_style
        self.guess_code_language = guess_code_language
        self.title = title
        self.formatter = HtmlFormatter(style=pygments_style, cssclass="code-highlight")

        # Setup Jinja2 environment
        template_dir = os.path.join(os.path.dirname(__file__), 'templates')
        self.jinja_env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(['html'])
        )

    def _build_markdown(self) -> markdown.Markdown:
        md = markdown.Markdown(
            extensions=['fenced_code', 'codehilite'],
            extension_configs={
                'codehilite': {
                    'css_class': 'code-highlight',
                    'guess_lang': self.guess_code_language,
                    'pygments_style': self.pygments_style,
                }
            }
        )
        # Model output is untrusted: escape raw HTML instead of passing it through
        md.preprocessors.deregister('html_block')
        md.inlinePatterns.deregister('html')
        # Runs after the inline processor has built the links
        md.treeprocessors.register(SafeLinkTreeprocessor(md), 'safe_links', 5)
        return md

    def render_markdown(self, text: str) -> str:
        """
        Render the full accumulated response text as HTML.

        Fenced code blocks are highlighted with Pygments and every <pre> block
        carries exactly one copy button. The same input always yields the same HTML.
        """
        html = self._build_markdown().convert(text)
        return self._attach_copy_buttons(html)

    def _attach_copy_buttons(self, html: str) -> str:
        """Append a copy button to each <pre> block that does not have one yet."""
        def add_button(match):
            opening, body, closing = match.groups()
            if 'class="copy-button"' in body:
                return match.group(0)
            return f"{opening}{body}{COPY_BUTTON_HTML}{closing}"

        return _PRE_BLOCK.sub(add_button, html)

    def models_payload(self, models: List[ModelDescriptor]) -> Dict:
        """Build the model selector payload; the first model is selected by default."""
        selected: Optional[str] = models[0].id if models else None
        return {
            'models': [{'id': m.id, 'name': m.display_name} for m in models],
            'selected': selected
        }

    def render_page(self, panel_id: str) -> str:
        """Render the panel page for a newly opened panel."""
        template = self.jinja_env.get_template('panel.html')
        return template.render(
            title=self.title,
            panel_id=panel_id,
            pygments_css=self.formatter.get_style_defs('.code-highlight')
        )
