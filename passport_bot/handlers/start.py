from aiogram import Router, types
from aiogram.filters import Command

router = Router()

@router.message(Command("start"))
async def start_cmd(message: types.Message):
    text = (
        "👋 Hi! I read the data page of a passport.\n\n"
        "📸 Send a photo, an image file or a PDF scan and I will extract the fields "
        "and the machine-readable zone."
    )
    await message.answer(text)
