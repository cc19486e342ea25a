"""
Command line entry point.

    python -m lunchbot             # serve the interaction endpoint + scheduler
    python -m lunchbot --run-now   # publish today's menu once and exit
    python -m lunchbot --status    # print bot status as JSON
"""
import argparse
import json
import logging
import sys

import uvicorn

from lunchbot.bot import LunchBot
from lunchbot.config import load_settings
from lunchbot.logging_config import setup_logging
from lunchbot.main import create_app

logger = logging.getLogger("lunchbot")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="lunchbot", description="Daily lunch menu Slack bot")
    parser.add_argument("-t", "--run-now", action="store_true", help="publish today's menu immediately and exit")
    parser.add_argument("-s", "--status", action="store_true", help="print status as JSON and exit")
    args = parser.parse_args(argv)

    settings = load_settings()
    setup_logging(settings.log_level, settings.log_dir)

    if args.run_now or args.status:
        bot = LunchBot(settings)
        try:
            if args.run_now:
                result = bot.run_now()
                logger.info(f"Run completed: {result}")
            else:
                bot.initialize()
                print(json.dumps(bot.get_status(), ensure_ascii=False, indent=2))
        except Exception as e:
            logger.error(f"Command failed: {e}")
            return 1
        finally:
            bot.scheduler.shutdown()
        return 0

    app = create_app(settings)
    uvicorn.run(app, host=settings.server_host, port=settings.server_port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
