"""Static registry of installable Robo plugins.

The registry is an immutable lookup passed to the components that need it,
so tests can supply their own descriptors.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from create_robo.models import PluginDescriptor

NAME_PLACEHOLDER = "{{name}}"


class PluginRegistry(Mapping[str, PluginDescriptor]):
    """Read-only mapping of plugin identifier -> ``PluginDescriptor``."""

    def __init__(self, descriptors: Mapping[str, PluginDescriptor]) -> None:
        self._descriptors = MappingProxyType(dict(descriptors))

    def __getitem__(self, plugin_id: str) -> PluginDescriptor:
        return self._descriptors[plugin_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def resolve(self, plugin_ids: tuple[str, ...] | list[str]) -> list[PluginDescriptor]:
        """Return descriptors for *plugin_ids*, preserving order.

        Raises:
            KeyError: If an identifier is not registered.
        """
        return [self[plugin_id] for plugin_id in plugin_ids]

    def packages(self, plugin_ids: tuple[str, ...] | list[str]) -> list[str]:
        return [descriptor.package for descriptor in self.resolve(plugin_ids)]


DEFAULT_PLUGINS = PluginRegistry({
    "ai": PluginDescriptor(
        package="@robojs/ai",
        label="AI",
        description="Transform your Robo into a personalized AI chatbot! Supports Discord command execution.",
        keywords=("ai", "gpt", "openai"),
        config={
            "commands": False,
            "openaiKey": "process.env.OPENAI_API_KEY",
            "systemMessage": f"You are a helpful Robo named {NAME_PLACEHOLDER}.",
            "whitelist": {"channelIds": []},
        },
        env=(("OPENAI_API_KEY", ""),),
    ),
    "ai-voice": PluginDescriptor(
        package="@robojs/ai-voice",
        label="AI Voice",
        description="Give your Robo a voice! Command and converse with it in voice channels.",
        keywords=("speech", "voice"),
        env=(("AZURE_SUBSCRIPTION_KEY", ""), ("AZURE_SUBSCRIPTION_REGION", "")),
    ),
    "server": PluginDescriptor(
        package="@robojs/server",
        label="Web Server",
        description="Turn your Robo into a web server! Create and manage web pages, APIs, and more.",
        keywords=("api", "http", "server", "vite", "web"),
        config={"cors": True},
        env=(("PORT", "3000"),),
    ),
    "sync": PluginDescriptor(
        package="@robojs/sync",
        label="Sync",
        description="Real-time state sync across clients. Perfect for multiplayer games and chat apps!",
        keywords=("multiplayer", "real-time", "sync", "websocket"),
    ),
    "maintenance": PluginDescriptor(
        package="@robojs/maintenance",
        label="Maintenance",
        description="Add a maintenance mode to your robo.",
        keywords=("maintenance",),
    ),
    "modtools": PluginDescriptor(
        package="@robojs/moderation",
        label="Moderation",
        description="Equip your bot with essential tools to manage and maintain your server.",
        keywords=("moderation", "moderator"),
    ),
})
