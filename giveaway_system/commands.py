"""
Discord Commands for Giveaway System
Admin commands to open, finish, cancel and list giveaways, plus the
reaction listeners that feed the membership tracker
"""

import logging

import discord
from discord.ext import commands

from utils.error_helpers import safe_int

from .config import GIVEAWAY_DEFAULT_SYMBOL
from .errors import GiveawayError, NotFound, WrongScope
from .manager import GiveawayManager
from .models import DrawingDraft

logger = logging.getLogger(__name__)

NO_DEADLINE = {"none", "-", "never", "manual"}
MESSAGE_LIMIT = 2000  # Discord message length cap


def can_manage_giveaways():
    """Check if user may create events or is an administrator."""
    async def predicate(ctx):
        if not ctx.guild:
            return False
        permissions = ctx.author.guild_permissions
        return permissions.manage_events or permissions.administrator
    return commands.check(predicate)


def parse_giveaway_id(raw: str):
    """Accept ids as printed in announcements, spoiler bars included"""
    drawing_id = safe_int(raw.strip().strip("|"), default=0)
    return drawing_id if drawing_id > 0 else None


def chunk_lines(lines, limit=MESSAGE_LIMIT):
    """Join lines into messages no longer than ``limit``, splitting only between lines"""
    chunks = []
    current = ""
    for line in lines:
        line = line[:limit]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            candidate = line
        current = candidate
    if current:
        chunks.append(current)
    return chunks


class GiveawayCommands(commands.Cog):
    """Discord commands for giveaways - multi-server aware"""

    def __init__(self, bot, manager: GiveawayManager, default_symbol=GIVEAWAY_DEFAULT_SYMBOL):
        self.bot = bot
        self.manager = manager
        self.default_symbol = default_symbol

    # ========================================
    # ADMIN COMMANDS
    # ========================================

    @commands.command(name='gcreate', aliases=['giveaway'])
    @commands.guild_only()
    @can_manage_giveaways()
    async def create_giveaway(self, ctx, channel: discord.TextChannel, winner_count: int,
                              symbol: str, deadline: str, *, text: str):
        """
        [ADMIN] Open a giveaway in a channel
        Usage: !gcreate <#channel> <winners> <emoji|default> <deadline|none> <title> | [description]
        Example: !gcreate #giveaways 2 🎉 2026-11-01T18:00 Steam key | React to win!

        The deadline is a UNIX timestamp or ISO-8601 date (UTC), or "none"
        for a giveaway that only ends with !gfinish.
        """
        title, _, description = text.partition("|")
        draft = DrawingDraft(
            title=title,
            description=description,
            channel_ref=channel.id,
            community_ref=ctx.guild.id,
            symbol=self.default_symbol if symbol.lower() == "default" else symbol,
            winner_count=winner_count,
            deadline=None if deadline.lower() in NO_DEADLINE else deadline,
        )

        try:
            drawing = await self.manager.create(draft)
        except GiveawayError as e:
            await ctx.send(f"❌ {e}")
            return
        except Exception as e:
            logger.error(f"Error creating giveaway: {e}", exc_info=True)
            await ctx.send("❌ Error creating giveaway. Please try again.")
            return

        ends = f"ends {drawing.deadline.strftime('%d.%m.%Y %H:%M')} UTC" if drawing.deadline else "ends manually"
        await ctx.send(f"✅ Giveaway `{drawing.id}` created in {channel.mention} ({ends})")

    @commands.command(name='gfinish', aliases=['gend'])
    @commands.guild_only()
    @can_manage_giveaways()
    async def finish_giveaway(self, ctx, raw_id: str):
        """
        [ADMIN] Draw the winners of a giveaway now
        Usage: !gfinish <id>
        """
        drawing_id = parse_giveaway_id(raw_id)
        if drawing_id is None:
            await ctx.send("❌ The giveaway id must be a positive number")
            return

        try:
            outcome = await self.manager.finish(drawing_id, ctx.guild.id)
        except (NotFound, WrongScope) as e:
            await ctx.send(f"❌ {e}")
            return
        except Exception as e:
            logger.error(f"Error finishing giveaway {drawing_id}: {e}", exc_info=True)
            await ctx.send("❌ Error finishing giveaway. It is still active, please try again.")
            return

        await ctx.send(f"✅ Giveaway `{drawing_id}` finished with {len(outcome.winners)} winner(s)")

    @commands.command(name='gcancel')
    @commands.guild_only()
    @can_manage_giveaways()
    async def cancel_giveaway(self, ctx, raw_id: str):
        """
        [ADMIN] Cancel a giveaway without drawing winners
        Usage: !gcancel <id>
        """
        drawing_id = parse_giveaway_id(raw_id)
        if drawing_id is None:
            await ctx.send("❌ The giveaway id must be a positive number")
            return

        try:
            await self.manager.cancel(drawing_id, ctx.guild.id, ctx.author.id)
        except (NotFound, WrongScope) as e:
            await ctx.send(f"❌ {e}")
            return
        except Exception as e:
            logger.error(f"Error cancelling giveaway {drawing_id}: {e}", exc_info=True)
            await ctx.send("❌ Error cancelling giveaway. It is still active, please try again.")
            return

        await ctx.send(f"✅ Giveaway `{drawing_id}` cancelled")

    @commands.command(name='glist', aliases=['giveaways'])
    @commands.guild_only()
    @can_manage_giveaways()
    async def list_giveaways(self, ctx):
        """
        [ADMIN] List the active giveaways of this server
        Usage: !glist
        """
        drawings = await self.manager.list_active(ctx.guild.id)
        if not drawings:
            await ctx.send("ℹ️ No active giveaways on this server")
            return

        lines = [f"🎁 **Active Giveaways** ({len(drawings)})\n"]
        for drawing in drawings:
            ends = drawing.deadline.strftime('%d.%m.%Y %H:%M UTC') if drawing.deadline else "manual"
            lines.append(
                f"`{drawing.id}` **{drawing.title}** in <#{drawing.channel_ref}> | "
                f"{drawing.symbol} | {len(drawing.participants)} entered | "
                f"{drawing.winner_count} winner(s) | ends: {ends}"
            )
        for chunk in chunk_lines(lines):
            await ctx.send(chunk)

    # ========================================
    # REACTIONS
    # ========================================

    def _is_own(self, payload):
        return self.bot.user is not None and payload.user_id == self.bot.user.id

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload):
        if self._is_own(payload):
            return
        await self.manager.membership.join(payload.message_id, str(payload.emoji), payload.user_id)

    @commands.Cog.listener()
    async def on_raw_reaction_remove(self, payload):
        if self._is_own(payload):
            return
        await self.manager.membership.leave(payload.message_id, str(payload.emoji), payload.user_id)

    async def cog_command_error(self, ctx, error):
        if isinstance(error, commands.CheckFailure):
            await ctx.send("❌ You need the Manage Events permission to manage giveaways.")
        elif isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
            await ctx.send(f"❌ {error}\nUsage: `{ctx.prefix}help {ctx.command.qualified_name}`")
        else:
            logger.error(f"Unhandled giveaway command error: {error}", exc_info=error)
            await ctx.send("❌ Something went wrong with that giveaway command. Please try again.")


async def setup(bot, manager, default_symbol=GIVEAWAY_DEFAULT_SYMBOL):
    """Add giveaway commands to bot"""
    await bot.add_cog(GiveawayCommands(bot, manager, default_symbol=default_symbol))
    logger.info("✅ Giveaway commands loaded")
