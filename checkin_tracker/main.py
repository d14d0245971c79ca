from __future__ import annotations

import logging

import discord
from discord.ext import commands
from dotenv import load_dotenv

from .commands import register_commands
from .config import Config, load_config
from .db import Database
from .reporter import Reporter
from .tracker import CheckInTracker


class CheckInBot(commands.Bot):
    def __init__(self, config: Config, db: Database) -> None:
        intents = discord.Intents.none()
        intents.guilds = True

        super().__init__(command_prefix="!", intents=intents)

        self.config = config
        self.db = db
        self.tracker = CheckInTracker(store=db)
        self.reporter = Reporter(self.tracker, tz=config.timezone, rate_per_hour=config.rate_per_hour)

        self.logger = logging.getLogger("checkin-tracker-bot")

        self.runtime_ready = False
        self.report_channel: discord.TextChannel | None = None

    async def setup_hook(self) -> None:
        register_commands(self)
        await self.tree.sync(guild=discord.Object(id=self.config.guild_id))

    async def on_ready(self) -> None:
        self.logger.info("Connected as %s (%s)", self.user, self.user.id if self.user else "unknown")
        if self.runtime_ready:
            return

        if await self._validate_runtime_resources():
            self.runtime_ready = True
            self.logger.info("Runtime checks passed")

    async def _validate_runtime_resources(self) -> bool:
        # Fail fast if the guild, report channel or its permissions are misconfigured.
        guild = self.get_guild(self.config.guild_id)
        if guild is None:
            self.logger.error("Configured guild %s not found", self.config.guild_id)
            await self.close()
            return False

        report = guild.get_channel(self.config.report_channel_id)
        if not isinstance(report, discord.TextChannel):
            self.logger.error("Report channel %s is missing or not a text channel", self.config.report_channel_id)
            await self.close()
            return False

        me = guild.me
        if me is None and self.user is not None:
            me = guild.get_member(self.user.id)

        if me is None:
            self.logger.error("Unable to resolve bot member in guild %s", guild.id)
            await self.close()
            return False

        perms = report.permissions_for(me)
        if not perms.view_channel or not perms.send_messages or not perms.attach_files:
            self.logger.error("Missing view/send/attach permission in report channel %s", report.id)
            await self.close()
            return False

        self.report_channel = report

        current = self.tracker.open_session()
        if current is not None:
            self.logger.info("Session %s is still open since %s", current.id, current.arrive_at.isoformat())
        return True

    async def close(self) -> None:
        self.db.close()
        await super().close()


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def main() -> None:
    load_dotenv()
    configure_logging()

    config = load_config()
    db = Database(config.database_path)
    db.initialize()

    bot = CheckInBot(config=config, db=db)
    bot.run(config.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
