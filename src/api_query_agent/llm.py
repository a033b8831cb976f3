"""LLM client wrapper around litellm.

Provides a unified interface for calling any LLM model supported by litellm.
Provider credentials are read by litellm from its usual environment
variables (OPENAI_API_KEY, ANTHROPIC_API_KEY, ...).
"""

from litellm import acompletion, completion, validate_environment

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.1
DEFAULT_TIMEOUT = 20.0


class LlmClient:
    """Wrapper for LLM API calls via litellm."""

    def __init__(
        self,
        model: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.model = model or DEFAULT_MODEL
        self.temperature = temperature
        self.timeout = timeout

    def is_configured(self) -> bool:
        """True when litellm finds the credentials this model's provider needs."""
        return bool(validate_environment(model=self.model).get("keys_in_environment"))

    def _request(self, system: str, user: str, json_mode: bool) -> dict:
        kwargs = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": self.temperature,
            "timeout": self.timeout,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        return kwargs

    def call(self, system: str, user: str, json_mode: bool = False) -> str:
        """Send a system+user message to the LLM and return the response text."""
        response = completion(**self._request(system, user, json_mode))
        return response.choices[0].message.content or ""

    async def acall(self, system: str, user: str, json_mode: bool = False) -> str:
        """Async variant of call(); cancelling the awaiting task aborts the request."""
        response = await acompletion(**self._request(system, user, json_mode))
        return response.choices[0].message.content or ""
