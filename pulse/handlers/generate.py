import logging

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from pulse.keyboards.body_parts import (
    BODY_PART_OPTIONS,
    get_body_parts_keyboard,
    get_cancel_generation_keyboard,
)
from pulse.requests.user_requests import get_prioritized_author_ids
from pulse.schemas.generation import GenerationRequest
from pulse.services.errors import GenerationCancelled
from pulse.services.workout_service import WorkoutService
from pulse.states.generation import GenerationStates
from pulse.utils.bot_messages import format_workout_message

router = Router()
logger = logging.getLogger(__name__)


@router.message(Command("generate"))
async def command_generate(message: Message, state: FSMContext):
    """Открывает выбор частей тела для новой тренировки."""
    await state.set_state(GenerationStates.choosing_body_parts)
    await state.update_data(selected_body_parts=[])
    await message.answer(
        "Select the body parts you want to workout.",
        reply_markup=get_body_parts_keyboard([]),
    )


@router.callback_query(GenerationStates.choosing_body_parts, F.data.startswith("bp_"))
async def process_body_part(query: CallbackQuery, state: FSMContext):
    body_part = query.data.removeprefix("bp_")
    if body_part not in BODY_PART_OPTIONS:
        await query.answer()
        return

    data = await state.get_data()
    selected = list(data.get("selected_body_parts", []))
    if body_part in selected:
        selected.remove(body_part)
    else:
        selected.append(body_part)
    await state.update_data(selected_body_parts=selected)

    await query.message.edit_reply_markup(reply_markup=get_body_parts_keyboard(selected))
    await query.answer()


@router.callback_query(GenerationStates.choosing_body_parts, F.data == "generate_workout")
async def process_generate(
    query: CallbackQuery,
    state: FSMContext,
    session: AsyncSession,
    workout_service: WorkoutService,
):
    data = await state.get_data()
    selected = data.get("selected_body_parts", [])
    if not selected:
        await query.answer("Select at least one body part.", show_alert=True)
        return

    await state.set_state(GenerationStates.generating)
    await query.message.edit_reply_markup(reply_markup=None)
    progress = await query.message.answer(
        "⏳ Generating your workout...", reply_markup=get_cancel_generation_keyboard()
    )
    await query.answer()

    prioritized = await get_prioritized_author_ids(session, workout_service.user_id)
    logger.info(
        f"User {workout_service.user_id} requested a workout for {selected}, "
        f"{len(prioritized)} prioritized authors"
    )
    request = GenerationRequest(
        body_parts=selected,
        prioritized_author_ids=prioritized,
        require_video=True,
    )
    result = await workout_service.generate_workout(request)
    if isinstance(result.error, GenerationCancelled):
        # Кнопки и состояние уже убрал обработчик отмены
        return

    await state.clear()
    await progress.edit_reply_markup(reply_markup=None)

    if result.ok:
        await query.message.answer(format_workout_message(result.workout), parse_mode="HTML")
    elif result.user_message:
        # Пользователь видит только короткое сообщение, детали пишутся в лог
        await query.message.answer(result.user_message)


@router.callback_query(F.data == "generate_cancel")
async def process_cancel(
    query: CallbackQuery, state: FSMContext, workout_service: WorkoutService
):
    workout_service.cancel()
    await state.clear()
    await query.message.edit_reply_markup(reply_markup=None)
    await query.answer("Cancelled")
