import asyncio
import logging

from aiogram import Router, types
from aiogram.filters import Command, CommandObject

from myka.errors import MykaError
from myka.services.users import consume_link_code

logger = logging.getLogger(__name__)

router = Router()

WELCOME = (
    "Hi! 👋 I'm the MYKA reminders bot.\n"
    "Open <b>Settings → Notifications</b> in the app and tap <b>Connect Telegram</b> to link this chat."
)
LINKED = "✅ Chat linked. Your daily reminders will arrive here."
LINK_FAILED = "❌ This link is invalid or has expired. Request a new one from the app."


@router.message(Command("start"))
async def cmd_start(message: types.Message, command: CommandObject, runtime):
    code = (command.args or "").strip()
    if not code:
        await message.answer(WELCOME)
        return

    try:
        user_id = consume_link_code(
            runtime.session_factory, code, message.chat.id, name=message.from_user.full_name
        )
    except MykaError as e:
        logger.info("Rejected link code from chat_id=%s: %s", message.chat.id, e.message)
        await message.answer(LINK_FAILED)
        return

    await message.answer(LINKED)
    # sends the opt-in message and records the result
    permission = await asyncio.to_thread(runtime.permissions.request_permission, user_id)
    logger.info("Chat %s linked to user %s (permission=%s)", message.chat.id, user_id, permission)
