# This project was developed with assistance from AI tools.
"""Inference module -- LLM client, model routing, and config loading."""

from .client import get_completion
from .config import get_model_config, get_routing_config, get_task_tier

__all__ = [
    "get_completion",
    "get_model_config",
    "get_routing_config",
    "get_task_tier",
]
