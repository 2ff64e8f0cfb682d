"""Generative-AI integration: typed flows and the OpenAI prompt runner."""

from averzo.infrastructure.ai.flow import Flow, FlowContext
from averzo.infrastructure.ai.prompt import PromptRunner

__all__ = ["Flow", "FlowContext", "PromptRunner"]
