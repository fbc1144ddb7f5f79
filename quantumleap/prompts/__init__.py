"""Prompt templates for model-facing flows."""

from .render import PromptTemplate, TemplateSyntaxError, format_value

__all__ = [
    "PromptTemplate",
    "TemplateSyntaxError",
    "format_value",
]
