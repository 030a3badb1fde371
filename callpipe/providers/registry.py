"""Provider registry — factory for STT, LLM, notifier and telephony instances.

Supports registration of provider classes by name, with lazy imports to
avoid pulling in the openai / twilio SDKs unless they're actually used.
"""

from __future__ import annotations

import importlib
from typing import Any, Type

from loguru import logger

from callpipe.providers.base import BaseLLM, BaseNotifier, BaseSTT, BaseTelephony


class ProviderRegistry:
    """Factory for creating provider instances.

    Built-in providers are registered automatically; custom providers can be
    added via register_stt/register_llm/register_notifier/register_telephony.

    Example:
        stt = provider_registry.create_stt("openai", api_key="...")
        llm = provider_registry.create_llm("openai", api_key="...", model="gpt-4.1-mini")
        notifier = provider_registry.create_notifier(
            "twilio_whatsapp", account_sid="...", auth_token="...",
            from_="whatsapp:+1...", to="whatsapp:+91...",
        )
    """

    def __init__(self) -> None:
        self._stt_providers: dict[str, Type[BaseSTT] | str] = {}
        self._llm_providers: dict[str, Type[BaseLLM] | str] = {}
        self._notifier_providers: dict[str, Type[BaseNotifier] | str] = {}
        self._telephony_providers: dict[str, Type[BaseTelephony] | str] = {}
        self._register_builtins()

    def _register_builtins(self) -> None:
        """Register built-in providers with lazy import paths."""
        self._stt_providers["openai"] = "callpipe.providers.stt.openai:OpenAISTT"
        self._llm_providers["openai"] = "callpipe.providers.llm.openai:OpenAILLM"
        self._notifier_providers["twilio_whatsapp"] = (
            "callpipe.providers.notify.twilio:TwilioWhatsAppNotifier"
        )
        self._telephony_providers["twilio"] = "callpipe.providers.telephony.twilio:TwilioTelephony"

    def _resolve_class(self, ref: Type | str) -> Type:
        """Resolve a class reference, importing lazily if needed."""
        if isinstance(ref, str):
            module_path, class_name = ref.rsplit(":", 1)
            module = importlib.import_module(module_path)
            return getattr(module, class_name)
        return ref

    def _create(self, kind: str, providers: dict[str, Any], name: str, **kwargs: Any) -> Any:
        if name not in providers:
            available = ", ".join(providers.keys())
            raise ValueError(f"Unknown {kind} provider '{name}'. Available: {available}")
        cls = self._resolve_class(providers[name])
        logger.info(f"Creating {kind} provider: {name}")
        return cls(**kwargs)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_stt(self, name: str, cls: Type[BaseSTT]) -> None:
        """Register a custom STT provider class."""
        self._stt_providers[name] = cls
        logger.debug(f"Registered STT provider: {name}")

    def register_llm(self, name: str, cls: Type[BaseLLM]) -> None:
        """Register a custom LLM provider class."""
        self._llm_providers[name] = cls
        logger.debug(f"Registered LLM provider: {name}")

    def register_notifier(self, name: str, cls: Type[BaseNotifier]) -> None:
        """Register a custom notification channel class."""
        self._notifier_providers[name] = cls
        logger.debug(f"Registered notifier provider: {name}")

    def register_telephony(self, name: str, cls: Type[BaseTelephony]) -> None:
        """Register a custom telephony provider class."""
        self._telephony_providers[name] = cls
        logger.debug(f"Registered telephony provider: {name}")

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    def create_stt(self, name: str, **kwargs: Any) -> BaseSTT:
        """Create an STT provider instance.

        Raises:
            ValueError: If the provider name is not registered.
        """
        return self._create("STT", self._stt_providers, name, **kwargs)

    def create_llm(self, name: str, **kwargs: Any) -> BaseLLM:
        """Create an LLM provider instance.

        Raises:
            ValueError: If the provider name is not registered.
        """
        return self._create("LLM", self._llm_providers, name, **kwargs)

    def create_notifier(self, name: str, **kwargs: Any) -> BaseNotifier:
        """Create a notification channel instance.

        Raises:
            ValueError: If the provider name is not registered.
        """
        return self._create("notifier", self._notifier_providers, name, **kwargs)

    def create_telephony(self, name: str, **kwargs: Any) -> BaseTelephony:
        """Create a telephony provider instance.

        Raises:
            ValueError: If the provider name is not registered.
        """
        return self._create("telephony", self._telephony_providers, name, **kwargs)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def available_stt(self) -> list[str]:
        return list(self._stt_providers.keys())

    @property
    def available_llm(self) -> list[str]:
        return list(self._llm_providers.keys())

    @property
    def available_notifiers(self) -> list[str]:
        return list(self._notifier_providers.keys())

    @property
    def available_telephony(self) -> list[str]:
        return list(self._telephony_providers.keys())


# Global singleton
provider_registry = ProviderRegistry()
