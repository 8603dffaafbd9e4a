"""AI module for the optional Groq drug-safety advisory.

It does NOT replace the local screening rules - it only appends to them.
If the advisory is unavailable, screening continues with local rules.
"""

from .groq_client import GroqClient, get_groq_client
from .prompts import SYSTEM_PROMPT, build_interaction_prompt

__all__ = ["GroqClient", "get_groq_client", "SYSTEM_PROMPT", "build_interaction_prompt"]
