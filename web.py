import asyncio
import logging
import os
import threading

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from myka.config import LOG_LEVEL, TOKEN
from myka.handlers import start
from myka.runtime import build_runtime
from myka.web import create_app

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

runtime = build_runtime()
app = create_app(runtime)


def run_bot():
    """Poll Telegram in a separate thread so button presses reach the runtime."""
    try:
        bot = Bot(
            token=TOKEN,
            default=DefaultBotProperties(parse_mode=ParseMode.HTML),
        )
        dp = Dispatcher(runtime=runtime)
        dp.include_router(start.router)

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        # signals can only be installed from the main thread
        loop.run_until_complete(dp.start_polling(bot, handle_signals=False))
    except Exception:
        logging.exception("Bot polling stopped")


if __name__ == "__main__":
    runtime.start()
    if TOKEN:
        logging.info("Starting bot thread...")
        threading.Thread(target=run_bot, daemon=True).start()
    else:
        logging.warning("BOT_TOKEN not set, the bot will not be started")

    try:
        app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=False)
    finally:
        runtime.shutdown()
