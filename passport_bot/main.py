import sys
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parent.parent))


import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.types import BotCommand

from passport_bot.config import load_config
from passport_bot.handlers import ocr_passport, start
from passport_bot.services.pipeline import ExtractionPipeline

logging.basicConfig(level=logging.INFO)


async def set_commands(bot: Bot):
    await bot.set_my_commands([
        BotCommand(command="start", description="Start the bot")
    ])

async def main():
    config = load_config()
    if not config.bot_token:
        raise ValueError("⚠️ BOT_TOKEN (or TOKEN_BOT) is not set in .env")

    bot = Bot(
        token=config.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML)
    )

    # The pipeline is handed to handlers as the ``pipeline`` keyword argument.
    dp = Dispatcher(pipeline=ExtractionPipeline(config))
    dp.include_router(start.router)
    dp.include_router(ocr_passport.router)

    await set_commands(bot)
    logging.info("🤖 Bot started.")
    await dp.start_polling(bot)

if __name__ == "__main__":
    asyncio.run(main())
