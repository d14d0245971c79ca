from typing import Optional

import discord
from discord import app_commands

from .errors import TrackerError
from .reporter import format_currency, format_date, format_duration, format_time
from .tracker import parse_local_datetime, utc_now

Year = app_commands.Range[int, 1970, 9999]
Month = app_commands.Range[int, 1, 12]


def register_commands(bot):
    """Register all slash commands on the bot. Called once during setup."""
    guild_scope = discord.Object(id=bot.config.guild_id)
    tz = bot.config.timezone

    async def reply(interaction, content):
        await interaction.response.send_message(content, ephemeral=True)

    async def in_configured_guild(interaction):
        if interaction.guild is None or interaction.guild.id != bot.config.guild_id:
            await reply(interaction, "This command can only be used in the configured server.")
            return False
        return True

    @bot.tree.command(name="status", description="Show tracker status", guild=guild_scope)
    async def status(interaction):
        now_local = utc_now().astimezone(tz)
        try:
            current = bot.tracker.open_session()
        except TrackerError as exc:
            await reply(interaction, f"Could not read sessions: `{exc}`")
            return

        if current is None:
            session_line = "No session in progress."
        else:
            session_line = (
                f"Session #{current.id} in progress since "
                f"{format_date(current.arrive_at, tz)} {format_time(current.arrive_at, tz)}."
            )

        lines = [
            "Check-in tracker status: online",
            session_line,
            f"Timezone: `{tz.key}`",
            f"Current local time: `{now_local.isoformat()}`",
            f"Rate: `{format_currency(bot.config.rate_per_hour)}` per hour",
        ]
        await reply(interaction, "\n".join(lines))

    @bot.tree.command(name="arrive", description="Check in and start a session", guild=guild_scope)
    async def arrive(interaction):
        if not await in_configured_guild(interaction):
            return

        try:
            session = bot.tracker.start_session()
        except TrackerError as exc:
            await reply(interaction, f"Could not check in: {exc}")
            return

        await reply(interaction, f"Checked in at `{format_time(session.arrive_at, tz)}` (session #{session.id}).")

    @bot.tree.command(name="leave", description="Check out and close the open session", guild=guild_scope)
    async def leave(interaction):
        if not await in_configured_guild(interaction):
            return

        try:
            session = bot.tracker.end_session()
        except TrackerError as exc:
            await reply(interaction, f"Could not check out: {exc}")
            return

        await reply(
            interaction,
            f"Checked out at `{format_time(session.leave_at, tz)}`. "
            f"Time: `{format_duration(session.duration)}`, "
            f"cost: `{format_currency(session.cost(bot.config.rate_per_hour))}`.",
        )

    @bot.tree.command(name="add-session", description="Backfill a finished session", guild=guild_scope)
    @app_commands.describe(
        arrive="Arrival, local time as YYYY-MM-DD HH:MM",
        leave="Departure, local time as YYYY-MM-DD HH:MM",
    )
    async def add_session(interaction, arrive: str, leave: str):
        if not await in_configured_guild(interaction):
            return

        try:
            session = bot.tracker.add_manual_session(
                parse_local_datetime(arrive, tz),
                parse_local_datetime(leave, tz),
            )
        except TrackerError as exc:
            await reply(interaction, f"Could not add session: {exc}")
            return

        await reply(interaction, f"Added session #{session.id} (`{format_duration(session.duration)}`).")

    @bot.tree.command(name="delete-session", description="Delete a session permanently", guild=guild_scope)
    @app_commands.describe(session_id="Session number as shown in /history")
    async def delete_session(interaction, session_id: int):
        if not await in_configured_guild(interaction):
            return

        try:
            bot.tracker.delete_session(session_id)
        except TrackerError as exc:
            await reply(interaction, f"Could not delete session: {exc}")
            return

        await reply(interaction, f"Deleted session #{session_id}.")

    @bot.tree.command(name="history", description="Show sessions and totals for a period", guild=guild_scope)
    @app_commands.describe(year="Calendar year, omit for all time", month="Month 1-12, needs a year")
    async def history(interaction, year: Optional[Year] = None, month: Optional[Month] = None):
        if not await in_configured_guild(interaction):
            return

        try:
            message = bot.reporter.build_history_message(year, month)
        except TrackerError as exc:
            await reply(interaction, f"Could not build history: {exc}")
            return

        await interaction.response.send_message(ephemeral=True, **message)

    @bot.tree.command(name="report", description="Post the monthly report", guild=guild_scope)
    async def report(interaction, year: Year, month: Month):
        if not await in_configured_guild(interaction):
            return

        if bot.report_channel is None:
            await reply(interaction, "Report channel is not available.")
            return

        try:
            await bot.reporter.post_report(bot.report_channel, year, month)
        except TrackerError as exc:
            await reply(interaction, f"Could not build report: {exc}")
            return
        except Exception as exc:
            bot.logger.exception("/report failed")
            await reply(interaction, f"Failed to send report: `{exc}`")
            return

        await reply(interaction, f"Posted report for `{year}-{month:02}` in <#{bot.config.report_channel_id}>.")
