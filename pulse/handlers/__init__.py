from aiogram import Router
from . import generate

# Главный роутер для всех обработчиков
main_router = Router()

main_router.include_router(generate.router)
