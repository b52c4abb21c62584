"""
Data types exchanged with the model runtime.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ModelDescriptor:
    """A model available on the runtime, as returned by the listing endpoint."""
    id: str
    display_name: str


@dataclass(frozen=True)
class ChatRequest:
    """One user submission from a panel."""
    prompt: str
    model_id: str
