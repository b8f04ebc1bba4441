from aiogram.fsm.state import State, StatesGroup


class GenerationStates(StatesGroup):
    choosing_body_parts = State()
    generating = State()
