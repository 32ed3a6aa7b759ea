import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from myka.config import LOG_LEVEL, TOKEN
from myka.handlers import start  # shared router with every handler attached
from myka.runtime import build_runtime


async def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("aiogram").setLevel(logging.INFO)

    if not TOKEN:
        logging.error("BOT_TOKEN is not set")
        return

    runtime = build_runtime()
    armed = runtime.start()
    logging.info("Re-armed %d reminders", armed)

    bot = Bot(
        token=TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = Dispatcher(runtime=runtime)
    dp.include_router(start.router)

    logging.info("Bot started...")
    try:
        await dp.start_polling(bot)
    finally:
        runtime.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
