"""
PromptDesk: multi-tenant API for managing prompts, datasets and evaluations.
"""

__version__ = "1.0.0"
