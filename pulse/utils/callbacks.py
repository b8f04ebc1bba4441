import inspect
from typing import Any, Callable


async def invoke_callback(callback: Callable[..., Any], *args: Any) -> None:
    """Вызывает колбэк, дожидаясь результата, если он асинхронный."""
    result = callback(*args)
    if inspect.isawaitable(result):
        await result
