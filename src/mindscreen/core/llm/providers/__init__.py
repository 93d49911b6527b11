"""Concrete text-generation providers, one module per vendor SDK."""

from mindscreen.core.llm.providers.mock import MockProvider

__all__ = ["MockProvider"]
