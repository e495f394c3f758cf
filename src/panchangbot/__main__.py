from __future__ import annotations

import sys

from panchangbot.bot import create_bot
from panchangbot.config import load_config
from panchangbot.logging_config import configure_logging


def main() -> int:
    config = load_config()
    configure_logging(config.log_level, json_format=config.log_json)

    if not config.discord_token:
        print(
            "Missing DISCORD_TOKEN. Create a .env file (see .env.example) and set DISCORD_TOKEN.",
            file=sys.stderr,
        )
        return 2

    bot = create_bot(config)
    # log_handler=None keeps discord.py from replacing the handlers set up above
    bot.run(config.discord_token, log_handler=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
