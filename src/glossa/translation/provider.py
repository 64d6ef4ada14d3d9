# translation/provider.py
"""
Translation providers.

A provider turns (text, target language) into translated text, asynchronously,
and may raise. The server only ever calls it from inside the work queue.

Usage:
    from glossa.translation import create_provider

    provider = create_provider("openai", model="gpt-4.1-mini")
    translated = await provider.translate("Save", "es")
"""

import os
from abc import ABC, abstractmethod

import openai


class TranslationProvider(ABC):
    """
    Abstract base class for translation backends.
    """

    @abstractmethod
    async def translate(self, text: str, target_lang: str) -> str:
        """
        Translate one piece of text.

        Args:
            text: Source text
            target_lang: Target language tag or name

        Returns:
            Translated text

        Raises:
            Exception: Any provider failure (the caller logs and drops the item)
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass


class OpenAIProvider(TranslationProvider):
    """
    Chat-completions translation via the OpenAI API.
    """

    def __init__(self, api_key: str | None = None, model: str = "gpt-4.1-mini", temperature: float = 0.3):
        if not api_key:
            raise ValueError("OPENAI_API_KEY not configured")
        self.model = model
        self.temperature = temperature
        self.client = openai.AsyncOpenAI(api_key=api_key)

    async def translate(self, text: str, target_lang: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "system",
                    "content": f"Translate to {target_lang}. Output only the translation.",
                },
                {"role": "user", "content": text},
            ],
            temperature=self.temperature,
            max_tokens=2000,
        )
        content = response.choices[0].message.content
        if not content:
            raise ValueError("Empty translation returned")
        return content.strip()

    @property
    def provider_name(self) -> str:
        return "openai"


class EchoProvider(TranslationProvider):
    """Development backend: tags text with the language instead of translating."""

    async def translate(self, text: str, target_lang: str) -> str:
        return f"[{target_lang}] {text}"

    @property
    def provider_name(self) -> str:
        return "echo"


def create_provider(provider: str | None = None, **kwargs) -> TranslationProvider:
    """
    Factory function to create a translation provider.

    Args:
        provider: "openai" or "echo" (defaults to TRANSLATION_PROVIDER env var)
        **kwargs: Provider-specific arguments

    Returns:
        TranslationProvider instance
    """
    if provider is None:
        provider = os.getenv("TRANSLATION_PROVIDER", "openai").lower()

    print(f"🔧 Creating translation provider: {provider}")

    if provider == "openai":
        openai_defaults = {
            "api_key": os.getenv("OPENAI_API_KEY"),
            "model": os.getenv("OPENAI_TRANSLATION_MODEL", "gpt-4.1-mini"),
        }
        openai_defaults.update(kwargs)
        return OpenAIProvider(**openai_defaults)

    elif provider == "echo":
        return EchoProvider()

    else:
        raise ValueError(
            f"Unknown translation provider: {provider}. "
            f"Supported providers: openai, echo"
        )
