"""
Ошибки пайплайна генерации тренировки.

У каждой ошибки есть ровно одно сообщение для пользователя (toast), сырые
детали уходят только в лог.
"""

GENERIC_ERROR_MESSAGE = "An error occurred generating the workout. Try it again in a few seconds."


class PipelineError(Exception):
    kind = "pipeline_error"
    user_message = GENERIC_ERROR_MESSAGE


class CatalogUnavailable(PipelineError):
    kind = "catalog_unavailable"
    user_message = "Unable to load exercises right now. Try it again in a few seconds."


class PromptRenderError(PipelineError):
    kind = "prompt_render_error"

    def __init__(self, unresolved: list[str]):
        self.unresolved = unresolved
        super().__init__(f"Unresolved prompt placeholders: {', '.join(unresolved)}")


class ProviderTimeout(PipelineError):
    kind = "provider_timeout"
    user_message = "Timeout: Failed to generate workout. Please try again."


class NetworkError(PipelineError):
    kind = "network_error"
    user_message = "Network problem while generating the workout. Check your connection and try again."


class ProviderError(PipelineError):
    kind = "provider_error"


class MalformedResponseError(PipelineError):
    kind = "malformed_response"


class ReconciliationGap(PipelineError):
    """Часть упражнений не нашлась в каталоге. Не фатально, только логируется."""

    kind = "reconciliation_gap"

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Exercises missing from catalog: {', '.join(missing)}")


class PersistenceError(PipelineError):
    kind = "persistence_error"
    user_message = "Your workout could not be saved. Please try again."


class GenerationInProgress(PipelineError):
    kind = "generation_in_progress"
    user_message = "A workout is already being generated. Please wait."


class GenerationCancelled(PipelineError):
    kind = "generation_cancelled"
    user_message = "Workout generation cancelled."
