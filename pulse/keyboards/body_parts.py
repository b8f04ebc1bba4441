from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

BODY_PART_OPTIONS = [
    "chest",
    "back",
    "shoulders",
    "biceps",
    "triceps",
    "abs",
    "quadriceps",
    "hamstrings",
    "glutes",
    "calves",
]


def get_body_parts_keyboard(selected: list[str]) -> InlineKeyboardMarkup:
    """Клавиатура множественного выбора частей тела."""
    builder = InlineKeyboardBuilder()
    for body_part in BODY_PART_OPTIONS:
        mark = "✅ " if body_part in selected else ""
        builder.button(text=f"{mark}{body_part.capitalize()}", callback_data=f"bp_{body_part}")
    builder.adjust(2)
    builder.row(
        InlineKeyboardButton(text="💪 Generate workout", callback_data="generate_workout"),
    )
    builder.row(
        InlineKeyboardButton(text="❌ Cancel", callback_data="generate_cancel"),
    )
    return builder.as_markup()


def get_cancel_generation_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.button(text="❌ Cancel", callback_data="generate_cancel")
    return builder.as_markup()
