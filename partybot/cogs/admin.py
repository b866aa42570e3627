import discord
from discord.ext import commands
from sqlalchemy import select, func

from partybot.config import Config
from partybot.database.models import Party, PartyMember
from partybot.utils.logger import setup_logger
from partybot.utils.party_exceptions import StorageUnavailableError

logger = setup_logger(__name__)

class AdminCog(commands.Cog):
    """Owner-only commands for running the party bot"""

    def __init__(self, bot):
        self.bot = bot
        self.store = bot.party_store
        self.logger = logger

    def cog_check(self, ctx):
        """Check if user is the bot owner"""
        return ctx.author.id == Config.OWNER_DISCORD_ID

    @commands.command(name='shutdown')
    async def shutdown_bot(self, ctx):
        """Shutdown the bot (Owner only)"""
        await ctx.send("🔴 Shutting down Party Bot...")
        await self.bot.close()

    @commands.command(name='reload')
    async def reload_cog(self, ctx, cog_name: str):
        """Reload a specific cog (Owner only)"""
        try:
            await self.bot.reload_extension(f'partybot.cogs.{cog_name}')
            await ctx.send(f"✅ Reloaded `{cog_name}` cog successfully.")
        except commands.ExtensionError as e:
            await ctx.send(f"❌ Failed to reload `{cog_name}`: {e}")

    @commands.command(name='dbstats')
    async def database_stats(self, ctx):
        """Show database statistics (Owner only)"""
        async def count(session):
            parties = await session.scalar(select(func.count(Party.id)))
            members = await session.scalar(select(func.count(PartyMember.id)))
            return parties, members

        try:
            party_count, member_count = await self.store.run('dbstats', count)
        except StorageUnavailableError as e:
            await ctx.send(e.user_message)
            return

        embed = discord.Embed(
            title="📊 Database Statistics",
            color=discord.Color.blue()
        )
        embed.add_field(name="Backend", value=self.bot.db.backend.name, inline=True)
        embed.add_field(name="Parties", value=party_count, inline=True)
        embed.add_field(name="Memberships", value=member_count, inline=True)
        await ctx.send(embed=embed)

    @commands.command(name='party-sql')
    async def execute_sql(self, ctx, *, statements: str):
        """Run raw SQL statements separated by ';' with no rollback (Owner only)"""
        sqls = [sql.strip() for sql in statements.strip('`').split(';') if sql.strip()]
        if not sqls:
            await ctx.send("❌ No SQL statements given.")
            return

        self.logger.warning(f"{ctx.author} is executing {len(sqls)} raw SQL statement(s)")
        try:
            executed = await self.store.execute_raw(sqls)
        except StorageUnavailableError as e:
            await ctx.send(f"❌ {e}")
            return
        await ctx.send(f"✅ Executed {executed} statement(s).")

async def setup(bot):
    await bot.add_cog(AdminCog(bot))
