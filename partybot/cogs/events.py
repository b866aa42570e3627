import discord
from discord.ext import commands

from partybot.config import Config
from partybot.utils import embeds
from partybot.utils.logger import setup_logger

logger = setup_logger(__name__)

class EventsCog(commands.Cog):
    """Session listeners: quitting the session means quitting your party"""

    def __init__(self, bot):
        self.bot = bot
        self.party_service = bot.party_service

    async def _player_quit(self, member: discord.abc.User, reason: str):
        result = await self.party_service.handle_disconnect(str(member.id))
        if not result.ok:
            logger.warning(f"Could not remove {member} from their party after {reason}: {result.error}")
            return
        outcome = result.payload
        if outcome is None:
            return

        logger.info(f"{member} left party {outcome.party_id} after {reason}")
        for player_id in outcome.former_members:
            user = self.bot.get_user(int(player_id))
            if user is None:
                continue
            try:
                await user.send(embeds.disband_notice(member.display_name))
            except discord.HTTPException as e:
                logger.debug(f"Could not notify {player_id}: {e}")

    @commands.Cog.listener()
    async def on_member_remove(self, member: discord.Member):
        """Handle members leaving (or being removed from) the server"""
        # Still reachable through another shared server: not a session quit
        if self.bot.session_provider.is_online(str(member.id)):
            return
        await self._player_quit(member, "leaving the server")

    @commands.Cog.listener()
    async def on_presence_update(self, before: discord.Member, after: discord.Member):
        """Going offline counts as quitting when LEAVE_ON_OFFLINE is set"""
        if not Config.LEAVE_ON_OFFLINE:
            return
        if before.status != discord.Status.offline and after.status == discord.Status.offline:
            await self._player_quit(after, "going offline")

async def setup(bot):
    await bot.add_cog(EventsCog(bot))
