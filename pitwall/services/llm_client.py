"""
LLM client abstraction supporting multiple providers.
Supports Gemini's REST API, local models via Ollama, and OpenAI-compatible APIs.
"""
from typing import Protocol
import httpx
from pitwall.config import Settings
from pitwall.core.logging import get_logger
from pitwall.core.exceptions import LLMException

logger = get_logger(__name__)


class LLMClient(Protocol):
    """Protocol for LLM client implementations."""

    async def ask(self, system_prompt: str, user_prompt: str) -> str:
        """
        Send a question to the LLM and get a response.

        Args:
            system_prompt: System/instruction prompt
            user_prompt: User question/prompt

        Returns:
            The LLM's response text

        Raises:
            LLMException: If the LLM call fails
        """
        ...


class GeminiLLMClient:
    """
    LLM client for Google Gemini (generateContent REST endpoint).

    Default endpoint: https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent
    """

    def __init__(self, settings: Settings):
        self.base_url = settings.llm_api_base_url.rstrip("/")
        self.model_name = settings.llm_model_name
        self.api_key = settings.llm_api_key
        self.timeout = settings.llm_timeout
        logger.info(f"Initialized GeminiLLMClient with model: {self.model_name}")

    async def ask(self, system_prompt: str, user_prompt: str) -> str:
        """
        Call Gemini API.

        Request format:
        {
          "contents": [{"parts": [{"text": "..."}]}]
        }
        """
        if not self.api_key:
            raise LLMException("Gemini API key not configured")

        url = f"{self.base_url}/v1beta/models/{self.model_name}:generateContent"
        payload = {
            "contents": [
                {"parts": [{"text": f"{system_prompt}\n\n{user_prompt}"}]}
            ]
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                logger.debug(f"Calling Gemini API: {url}")
                response = await client.post(url, json=payload, params={"key": self.api_key})
                response.raise_for_status()

                data = response.json()
                # Gemini response format: {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}
                candidates = data.get("candidates") or [{}]
                parts = candidates[0].get("content", {}).get("parts") or [{}]
                answer = parts[0].get("text", "").strip()

                if not answer:
                    raise LLMException("Empty response from Gemini")

                logger.debug(f"Received response from Gemini: {len(answer)} chars")
                return answer

        except LLMException:
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"Gemini HTTP error: {e.response.status_code} - {e.response.text}")
            if e.response.status_code == 429:
                raise LLMException("Gemini quota exceeded")
            if e.response.status_code == 404:
                raise LLMException(f"Gemini model not found: {self.model_name}")
            raise LLMException(f"Gemini HTTP error: {e.response.status_code}")
        except httpx.RequestError as e:
            logger.error(f"Gemini request error: {str(e)}")
            raise LLMException(f"Failed to connect to Gemini: {str(e)}")
        except Exception as e:
            logger.error(f"Unexpected error calling Gemini: {str(e)}")
            raise LLMException(f"Gemini error: {str(e)}")


class OllamaLLMClient:
    """
    LLM client for Ollama (local open-source models).

    Default endpoint: http://localhost:11434/api/chat
    """

    def __init__(self, settings: Settings):
        self.base_url = settings.llm_api_base_url.rstrip("/")
        self.model_name = settings.llm_model_name
        self.timeout = settings.llm_timeout
        logger.info(f"Initialized OllamaLLMClient with model: {self.model_name} at {self.base_url}")

    async def ask(self, system_prompt: str, user_prompt: str) -> str:
        """Call Ollama's POST /api/chat with streaming disabled."""
        url = f"{self.base_url}/api/chat"
        payload = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
            "stream": False
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                logger.debug(f"Calling Ollama API: {url}")
                response = await client.post(url, json=payload)
                response.raise_for_status()

                data = response.json()
                # Ollama response format: {"message": {"role": "assistant", "content": "..."}}
                answer = data.get("message", {}).get("content", "")

                if not answer:
                    raise LLMException("Empty response from Ollama")

                return answer

        except LLMException:
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"Ollama HTTP error: {e.response.status_code} - {e.response.text}")
            raise LLMException(f"Ollama HTTP error: {e.response.status_code}")
        except httpx.RequestError as e:
            logger.error(f"Ollama request error: {str(e)}")
            raise LLMException(f"Failed to connect to Ollama: {str(e)}")
        except Exception as e:
            logger.error(f"Unexpected error calling Ollama: {str(e)}")
            raise LLMException(f"Ollama error: {str(e)}")


class OpenAICompatibleLLMClient:
    """
    LLM client for OpenAI-compatible APIs (/v1/chat/completions).

    Works with vLLM, OpenRouter, Text Generation Inference and similar.
    """

    def __init__(self, settings: Settings):
        self.base_url = settings.llm_api_base_url.rstrip("/")
        self.model_name = settings.llm_model_name
        self.api_key = settings.llm_api_key
        self.timeout = settings.llm_timeout
        logger.info(f"Initialized OpenAICompatibleLLMClient with model: {self.model_name} at {self.base_url}")

    async def ask(self, system_prompt: str, user_prompt: str) -> str:
        """Call POST /v1/chat/completions."""
        url = f"{self.base_url}/v1/chat/completions"
        payload = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
            "temperature": 0.7
        }

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                logger.debug(f"Calling OpenAI-compatible API: {url}")
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()

                data = response.json()
                # OpenAI response format: {"choices": [{"message": {"content": "..."}}]}
                answer = data.get("choices", [{}])[0].get("message", {}).get("content", "")

                if not answer:
                    raise LLMException("Empty response from LLM")

                return answer

        except LLMException:
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"LLM HTTP error: {e.response.status_code} - {e.response.text}")
            raise LLMException(f"LLM HTTP error: {e.response.status_code}")
        except httpx.RequestError as e:
            logger.error(f"LLM request error: {str(e)}")
            raise LLMException(f"Failed to connect to LLM: {str(e)}")
        except Exception as e:
            logger.error(f"Unexpected error calling LLM: {str(e)}")
            raise LLMException(f"LLM error: {str(e)}")


class DisabledLLMClient:
    """Stand-in used when no provider is configured; every call fails fast."""

    async def ask(self, system_prompt: str, user_prompt: str) -> str:
        raise LLMException("LLM provider disabled")


def get_llm_client(settings: Settings) -> LLMClient:
    """
    Factory function to create the appropriate LLM client based on settings.

    Args:
        settings: Application settings

    Returns:
        LLMClient instance

    Raises:
        ValueError: If the LLM provider is not supported

    Supported providers:
        - "gemini": Google Gemini REST API (needs llm_api_key)
        - "ollama": For local Llama/Mistral/Qwen via Ollama
        - "openai_compatible": For any OpenAI-compatible API
        - "disabled": Always use the built-in fallback answers
    """
    provider = settings.llm_provider.lower()

    if provider == "gemini":
        return GeminiLLMClient(settings)
    elif provider == "ollama":
        return OllamaLLMClient(settings)
    elif provider == "openai_compatible":
        return OpenAICompatibleLLMClient(settings)
    elif provider == "disabled":
        return DisabledLLMClient()
    else:
        raise ValueError(
            f"Unsupported LLM provider: {provider}. "
            f"Supported providers: 'gemini', 'ollama', 'openai_compatible', 'disabled'"
        )
