"""
Discord Platform Client
The two chat calls the giveaway engine needs, implemented with discord.py
"""

import logging

import discord

from .errors import PlatformError

logger = logging.getLogger(__name__)


class DiscordPlatformClient:
    """Posts and deletes messages in Discord text channels"""

    def __init__(self, bot):
        self.bot = bot

    async def _channel(self, channel_ref):
        channel = self.bot.get_channel(channel_ref)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(channel_ref)
            except discord.HTTPException as e:
                raise PlatformError(f"Channel {channel_ref} not available: {e}") from e
        if not hasattr(channel, "get_partial_message"):
            raise PlatformError(f"Channel {channel_ref} is not a text channel")
        return channel

    async def post_message(self, channel_ref, text) -> int:
        channel = await self._channel(channel_ref)
        try:
            message = await channel.send(text)
        except discord.HTTPException as e:
            raise PlatformError(f"Failed to send message to channel {channel_ref}: {e}") from e
        return message.id

    async def delete_message(self, channel_ref, message_ref):
        channel = await self._channel(channel_ref)
        try:
            await channel.get_partial_message(message_ref).delete()
        except discord.NotFound:
            logger.debug(f"Message {message_ref} already gone from channel {channel_ref}")
        except discord.HTTPException as e:
            raise PlatformError(f"Failed to delete message {message_ref}: {e}") from e
