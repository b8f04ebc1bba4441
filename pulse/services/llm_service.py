import enum
import logging
from typing import Awaitable, Callable, Optional, Union

from openai import AsyncOpenAI, APIConnectionError, OpenAIError
from pydantic import BaseModel

from pulse.services.errors import (
    MalformedResponseError,
    NetworkError,
    PipelineError,
    ProviderError,
)
from pulse.utils.callbacks import invoke_callback
from pulse.utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)

OnReceive = Callable[[str], Union[None, Awaitable[None]]]
OnCompletion = Callable[[Optional[PipelineError]], Union[None, Awaitable[None]]]


class ModelTier(str, enum.Enum):
    fast = "fast"
    quality = "quality"


class ModelConfig(BaseModel):
    tier: ModelTier = ModelTier.quality
    # Явный идентификатор модели важнее уровня
    model: Optional[str] = None
    max_tokens: int = 1024
    temperature: float = 0.5


WORKOUT_MODEL_CONFIG = ModelConfig(tier=ModelTier.quality, max_tokens=200, temperature=0.5)


def translate_error(error: OpenAIError) -> PipelineError:
    """Ошибки OpenAI SDK -> ошибки пайплайна."""
    if isinstance(error, APIConnectionError):
        return NetworkError(str(error))
    return ProviderError(str(error))


class LLMService:
    def __init__(
        self,
        client: AsyncOpenAI,
        models: dict[ModelTier, str],
        request_timeout: float = 180.0,
    ):
        self.client = client
        self.models = models
        self.request_timeout = request_timeout

    @classmethod
    def from_settings(cls, settings) -> "LLMService":
        client = AsyncOpenAI(
            api_key=settings.PROXY_API_KEY,
            base_url=settings.PROXY_API_URL,
        )
        return cls(
            client,
            models={
                ModelTier.fast: settings.LLM_FAST_MODEL,
                ModelTier.quality: settings.LLM_QUALITY_MODEL,
            },
            request_timeout=settings.LLM_REQUEST_TIMEOUT,
        )

    def _resolve_model(self, config: ModelConfig) -> str:
        return config.model or self.models[config.tier]

    async def _complete(self, messages: list[dict], config: ModelConfig) -> str:
        try:
            chat_completion = await self.client.chat.completions.create(
                model=self._resolve_model(config),
                messages=messages,
                max_tokens=config.max_tokens,
                temperature=config.temperature,
                timeout=self.request_timeout,
            )
        except OpenAIError as e:
            logger.error(f"LLM request failed: {e}")
            raise translate_error(e) from e

        # Склеиваем все текстовые части ответа
        text = "".join(
            choice.message.content
            for choice in chat_completion.choices
            if choice.message is not None and isinstance(choice.message.content, str)
        )
        if not text.strip():
            raise MalformedResponseError("LLM response contains no text")
        return text

    async def send_message(self, prompt: str, config: ModelConfig | None = None) -> str:
        """Одиночный запрос: возвращает весь текст ответа."""
        config = config or ModelConfig()
        return await self._complete([{"role": "user", "content": prompt}], config)

    async def send_image_and_message(
        self, base64_image: str, prompt: str, config: ModelConfig | None = None
    ) -> str:
        """Одиночный запрос с изображением (jpeg, base64) и текстом."""
        config = config or ModelConfig()
        content = [
            {
                "type": "image_url",
                "image_url": {"url": f"data:image/jpeg;base64,{base64_image}"},
            },
            {"type": "text", "text": prompt},
        ]
        return await self._complete([{"role": "user", "content": content}], config)

    async def stream_message(
        self,
        prompt: str,
        on_receive: OnReceive,
        on_completion: OnCompletion,
        config: ModelConfig | None = None,
        token: CancellationToken | None = None,
    ) -> None:
        """
        Потоковый запрос. `on_receive` вызывается на каждый фрагмент текста
        в порядке получения, `on_completion` ровно один раз в конце
        (None при успехе, иначе ошибка). После отмены `token` ни один
        колбэк больше не вызывается.
        Ошибка в `on_receive` или битый фрагмент тоже завершают поток через
        `on_completion`. Поток закрывается в любом случае.
        """
        config = config or ModelConfig(tier=ModelTier.fast)
        token = token or CancellationToken()
        stream = None
        error: PipelineError | None = None
        try:
            stream = await self.client.chat.completions.create(
                model=self._resolve_model(config),
                messages=[{"role": "user", "content": prompt}],
                max_tokens=config.max_tokens,
                temperature=config.temperature,
                timeout=self.request_timeout,
                stream=True,
            )
            async for chunk in stream:
                if token.cancelled:
                    logger.debug("Stream abandoned by caller, dropping remaining deltas")
                    break
                for choice in chunk.choices:
                    text = choice.delta.content if choice.delta else None
                    if text:
                        await invoke_callback(on_receive, text)
        except OpenAIError as e:
            error = translate_error(e)
        except (AttributeError, TypeError) as e:
            error = MalformedResponseError(f"Malformed stream chunk: {e}")
            error.__cause__ = e
        except Exception as e:
            error = ProviderError(f"Stream failed: {e}")
            error.__cause__ = e
        finally:
            if stream is not None:
                await stream.close()

        if token.cancelled:
            return
        if error is not None:
            logger.error(f"LLM stream failed: {error}", exc_info=error.__cause__)
        await invoke_callback(on_completion, error)
