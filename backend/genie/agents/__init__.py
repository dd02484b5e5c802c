"""Agents module - the placeholder assistant."""

from .mock_assistant import MockAssistant

__all__ = ['MockAssistant']
