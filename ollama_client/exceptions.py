"""
Errors raised while talking to the model runtime.
"""


class RuntimeCommunicationError(Exception):
    """Connection failure, malformed response or unknown model."""
