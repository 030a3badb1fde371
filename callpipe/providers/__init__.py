"""callpipe providers - speech-to-text, LLM, notification and telephony integrations.

Usage:
    from callpipe.providers import provider_registry

    stt = provider_registry.create_stt("openai", api_key="...")
    llm = provider_registry.create_llm("openai", api_key="...", model="gpt-4.1-mini")
"""

from callpipe.providers.base import BaseLLM, BaseNotifier, BaseSTT, BaseTelephony, Message
from callpipe.providers.registry import provider_registry

__all__ = [
    "BaseSTT",
    "BaseLLM",
    "BaseNotifier",
    "BaseTelephony",
    "Message",
    "provider_registry",
]
