import asyncio
import logging

from aiogram import F, types
from aiogram.utils.keyboard import InlineKeyboardBuilder

from myka.errors import MykaError
from myka.services.delivery import CALLBACK_PREFIX, parse_callback_data
from myka.services.users import find_user_by_chat

from .start import router

logger = logging.getLogger(__name__)


@router.callback_query(F.data.startswith(f"{CALLBACK_PREFIX}:"))
async def notification_action(call: types.CallbackQuery, runtime):
    parsed = parse_callback_data(call.data)
    if parsed is None:
        await call.answer()
        return
    notification_id, action = parsed

    user = find_user_by_chat(runtime.session_factory, call.message.chat.id)
    if user is None:
        await call.answer("This chat is not linked to an account.", show_alert=True)
        return

    try:
        outcome = await asyncio.to_thread(runtime.notifications.handle_action, user.id, notification_id, action)
    except MykaError as e:
        logger.warning("Action %s on notification %s failed: %s", action, notification_id, e.message)
        await call.answer("⚠️ This reminder is no longer available.", show_alert=True)
        return

    if outcome.snoozed_until:
        await call.answer(f"⏰ Snoozed until {outcome.snoozed_until.strftime('%H:%M')}")
    elif outcome.navigate_to:
        kb = InlineKeyboardBuilder()
        kb.button(text="Open MYKA", url=runtime.url_for(outcome.navigate_to))
        await call.message.edit_reply_markup(reply_markup=kb.as_markup())
        await call.answer()
    else:
        await call.message.edit_reply_markup(reply_markup=None)
        await call.answer("Skipped")
