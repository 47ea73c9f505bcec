"""Paper Assistant API

arXiv paper search with per-paper LLM summaries, a research chat assistant,
and per-user query history behind email/password accounts.
"""

__version__ = "1.0.0"

from .config import load_config, AppConfig

__all__ = [
    "load_config",
    "AppConfig",
]
