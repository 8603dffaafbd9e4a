"""
Groq API Client: bounded wrapper for the remote drug-safety advisory.

================================================================================
CRITICAL: LLM ROLE IS ADVISORY ONLY
================================================================================

The safety screener asks Groq for extra interaction/contra-indication lines
after its local rules have run. The reply is appended verbatim to the warning
list shown to the pharmacist.

THIS CLIENT DOES NOT:
- Block or approve a prescription
- Touch the database
- Retry (one attempt per screening call)

FAILURE MODEL:
- No GROQ_API_KEY -> client disabled, screener runs local rules only
- Timeout / HTTP error / empty or malformed body -> None, logged
- The request is bounded by ADVISORY_TIMEOUT_SECONDS so prescription
  creation never waits indefinitely on a third party
================================================================================
"""

import logging
from typing import Optional

from groq import Groq, APIError, APITimeoutError, RateLimitError

from app.core.config import settings

# NEVER log API keys
logger = logging.getLogger(__name__)


class GroqClient:
    """
    Minimal wrapper around Groq chat completions.

    - Temperature: low (0.3) - concise, repeatable clinical phrasing
    - Max tokens: 500 - five short warning lines fit easily
    - Timeout: settings.ADVISORY_TIMEOUT_SECONDS
    - Retries: 0 (SDK retries disabled too)
    """

    TEMPERATURE = 0.3
    MAX_TOKENS = 500

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None, model: Optional[str] = None):
        api_key = settings.GROQ_API_KEY if api_key is None else api_key
        self.model = model or settings.ADVISORY_MODEL
        self.timeout = timeout or settings.ADVISORY_TIMEOUT_SECONDS

        if not api_key:
            logger.info("GROQ_API_KEY not configured - remote drug advisory disabled")
            self.client = None
        else:
            try:
                self.client = Groq(api_key=api_key, timeout=self.timeout, max_retries=0)
                logger.info("Groq advisory client initialized")
            except Exception as e:
                logger.error(f"Failed to initialize Groq client: {e}")
                self.client = None

    def is_available(self) -> bool:
        return self.client is not None

    def complete(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        """
        Single chat completion. Returns the reply text or None on any failure.
        """
        if not self.is_available():
            return None

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
                stream=False,
            )
        except APITimeoutError:
            logger.warning(f"Groq advisory timed out after {self.timeout}s - using local rules only")
            return None
        except RateLimitError:
            logger.warning("Groq advisory rate limited - using local rules only")
            return None
        except APIError as e:
            logger.error(f"Groq advisory API error: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected error calling Groq advisory: {e}")
            return None

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            logger.warning("Groq advisory returned a malformed body")
            return None

        if not content:
            logger.warning("Groq advisory returned an empty response")
            return None

        logger.debug(f"Groq advisory response received: {len(content)} chars")
        return content


# Singleton instance
_groq_client: Optional[GroqClient] = None


def get_groq_client() -> GroqClient:
    """Get or create the shared GroqClient instance."""
    global _groq_client
    if _groq_client is None:
        _groq_client = GroqClient()
    return _groq_client
