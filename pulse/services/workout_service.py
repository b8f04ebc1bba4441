import asyncio
import logging
import uuid
from datetime import datetime
from typing import Awaitable, Callable, Optional, Union

from pulse.schemas.exercise import CatalogSnapshot, Exercise
from pulse.schemas.generation import (
    GenerationConfig,
    GenerationRequest,
    GenerationResult,
    GenerationStateEnum,
)
from pulse.schemas.workout import ExerciseLog, Workout, WorkoutSummary
from pulse.services.candidate_selector import select_candidate_names
from pulse.services.errors import (
    CatalogUnavailable,
    GenerationCancelled,
    GenerationInProgress,
    PersistenceError,
    PipelineError,
    ProviderTimeout,
)
from pulse.services.llm_service import WORKOUT_MODEL_CONFIG, ModelConfig
from pulse.services.ports import (
    CatalogService,
    LLMGateway,
    PersistenceService,
    PromptTemplateSource,
)
from pulse.services.prompt_builder import (
    PromptVariables,
    expand_body_part_keys,
    expand_body_part_names,
    render_prompt,
)
from pulse.services.reconciler import (
    assemble_workout,
    details_from_workout,
    flatten_names,
    reconcile,
    synthesize_missing_logs,
)
from pulse.services.response_parser import parse_exercise_groups
from pulse.utils.callbacks import invoke_callback
from pulse.utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)

OnComplete = Callable[[GenerationResult], Union[None, Awaitable[None]]]


class _Abandoned(Exception):
    """Генерация отменена вызывающей стороной; состояние больше не трогаем."""


def _discard_late_result(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Late model response discarded after timeout: {error}")
    else:
        logger.debug("Late model response discarded after timeout")


class WorkoutService:
    """
    Оркестратор генерации тренировки для одного пользователя.

    Проходит состояния idle -> selecting -> prompting -> awaiting_model ->
    parsing -> reconciling -> persisted (или timed_out / failed). Одновременно
    выполняется не больше одной генерации; тренировка и логи публикуются
    в `current_workout` / `current_logs` только после успешного сохранения.
    """

    def __init__(
        self,
        user_id: str,
        catalog: CatalogService,
        llm: LLMGateway,
        persistence: PersistenceService,
        templates: PromptTemplateSource,
        config: GenerationConfig | None = None,
        model_config: ModelConfig = WORKOUT_MODEL_CONFIG,
    ):
        self.user_id = user_id
        self.catalog = catalog
        self.llm = llm
        self.persistence = persistence
        self.templates = templates
        self.config = config or GenerationConfig()
        self.model_config = model_config

        self.state = GenerationStateEnum.idle
        self.snapshot = CatalogSnapshot()
        self.current_workout: Workout | None = None
        self.current_logs: list[ExerciseLog] = []
        self.is_workout_in_progress = False
        self.workout_start_time: datetime | None = None

        self._token: CancellationToken | None = None
        self._model_task: asyncio.Task | None = None

    @property
    def is_busy(self) -> bool:
        return self._token is not None

    def _set_progress(self, in_progress: bool, start_time: datetime | None) -> None:
        self.is_workout_in_progress = in_progress
        self.workout_start_time = (start_time or datetime.now()) if in_progress else None

    # ------------------------------------------------------------------
    # Генерация
    # ------------------------------------------------------------------

    async def generate_workout(
        self, request: GenerationRequest, on_complete: Optional[OnComplete] = None
    ) -> GenerationResult:
        """
        Генерирует тренировку по выбранным частям тела. Результат
        возвращается и, если передан `on_complete`, отдается в него ровно
        один раз. После cancel() колбэк не вызывается.
        """
        if self.is_busy:
            logger.warning(
                f"Generation for user {self.user_id} rejected: already in state {self.state.value}"
            )
            result = GenerationResult(
                state=self.state,
                error=GenerationInProgress("Another generation is in flight"),
            )
            if on_complete:
                await invoke_callback(on_complete, result)
            return result

        token = CancellationToken()
        self._token = token
        try:
            result = await self._run_generation(request, token)
        except _Abandoned:
            logger.info(f"Generation for user {self.user_id} was cancelled")
            self.state = GenerationStateEnum.idle
            return GenerationResult(
                state=GenerationStateEnum.idle,
                error=GenerationCancelled("Generation cancelled by caller"),
            )
        finally:
            if self._model_task is not None and not self._model_task.done():
                self._model_task.cancel()
            self._model_task = None
            if self._token is token:
                self._token = None

        if on_complete:
            await invoke_callback(on_complete, result)
        return result

    def cancel(self) -> None:
        """Бросает текущую генерацию. Поздние ответы не меняют состояние."""
        if self._token is None:
            return
        logger.info(f"Cancelling generation for user {self.user_id} in state {self.state.value}")
        self._token.cancel()
        if self._model_task is not None and not self._model_task.done():
            self._model_task.cancel()

    async def _run_generation(
        self, request: GenerationRequest, token: CancellationToken
    ) -> GenerationResult:
        try:
            self._set_state(token, GenerationStateEnum.selecting)
            snapshot = await self._ensure_catalog(token)
            target_body_parts = expand_body_part_keys(request.body_parts)
            exercise_list = select_candidate_names(
                snapshot.exercises,
                target_body_parts,
                request.prioritized_author_ids,
                require_video=request.require_video,
                min_count=self.config.prioritized_min_exercises,
            )
            logger.info(
                f"Selected {len(exercise_list)} candidate exercises for "
                f"{[bp.value for bp in target_body_parts]} (catalog v{snapshot.version})"
            )

            self._set_state(token, GenerationStateEnum.prompting)
            template = await self.templates.get_workout_prompt()
            self._check(token)
            prompt = render_prompt(
                template,
                PromptVariables(
                    body_parts=", ".join(expand_body_part_names(request.body_parts)),
                    goal=request.goal_text,
                    exercise_list=", ".join(exercise_list),
                    all_exercises=", ".join(snapshot.names),
                    with_predefined_exercises=", ".join(
                        exercise.name for exercise in request.predefined_exercises
                    ),
                ),
            )

            self._set_state(token, GenerationStateEnum.awaiting_model)
            response = await self._await_model(prompt, token)
            logger.info(f"Exercises chosen by the model: {response}")

            self._set_state(token, GenerationStateEnum.parsing)
            groups = parse_exercise_groups(response)

            self._set_state(token, GenerationStateEnum.reconciling)
            fetched = await self._fetch_by_names(flatten_names(groups))
            self._check(token)
            reconciled = reconcile(
                groups,
                fetched,
                user_id=self.user_id,
                catalog=snapshot.exercises,
                duration=self.config.duration,
                default_author=self.config.default_author,
            )

            # Небольшая пауза, чтобы интерфейс не мигал
            await asyncio.sleep(self.config.settle_delay_seconds)
            self._check(token)

            await self._persist(reconciled.workout, reconciled.logs)
            self._check(token)
            self._set_progress(False, None)
            self._publish(reconciled.workout, reconciled.logs)
            self._set_state(token, GenerationStateEnum.persisted)
            return GenerationResult(
                state=GenerationStateEnum.persisted,
                workout=reconciled.workout,
                logs=reconciled.logs,
                missing=reconciled.missing,
            )
        except _Abandoned:
            raise
        except ProviderTimeout as e:
            logger.error(f"Workout generation for user {self.user_id} timed out: {e}")
            self.state = GenerationStateEnum.timed_out
            return GenerationResult(state=self.state, error=e)
        except PipelineError as e:
            logger.error(
                f"Workout generation for user {self.user_id} failed in state "
                f"{self.state.value}: {e}"
            )
            self.state = GenerationStateEnum.failed
            return GenerationResult(state=self.state, error=e)
        except Exception as e:
            if token.cancelled:
                raise _Abandoned() from e
            logger.error(
                f"Unexpected error in workout generation for user {self.user_id} "
                f"(state {self.state.value}): {e}",
                exc_info=True,
            )
            error = PipelineError(f"Unexpected error: {e}")
            error.__cause__ = e
            self.state = GenerationStateEnum.failed
            return GenerationResult(state=self.state, error=error)

    def _check(self, token: CancellationToken) -> None:
        if token.cancelled:
            raise _Abandoned()

    def _set_state(self, token: CancellationToken, state: GenerationStateEnum) -> None:
        self._check(token)
        logger.debug(f"Generation {self.state.value} -> {state.value} (user {self.user_id})")
        self.state = state

    def _catalog_needs_refresh(self) -> bool:
        return len(self.snapshot) <= self.config.min_catalog_size or self.snapshot.is_stale(
            self.config.catalog_max_age_seconds
        )

    async def _ensure_catalog(self, token: CancellationToken) -> CatalogSnapshot:
        """
        Перечитывает каталог, если снимок почти пустой или устарел. Если
        обновить не удалось, генерация идет по старому непустому снимку.
        """
        if self._catalog_needs_refresh():
            logger.info(
                f"Refreshing exercise catalog before generation "
                f"({len(self.snapshot)} exercises, v{self.snapshot.version})"
            )
            try:
                exercises = await self._load_catalog()
            except CatalogUnavailable as e:
                if not len(self.snapshot):
                    raise
                logger.warning(
                    f"Catalog refresh failed, keeping snapshot v{self.snapshot.version}: {e}"
                )
            else:
                self._check(token)
                self.snapshot = self.snapshot.next(exercises)
        self._check(token)
        if not len(self.snapshot):
            raise CatalogUnavailable("Exercise catalog is empty")
        return self.snapshot

    async def _load_catalog(self) -> list[Exercise]:
        try:
            return await self.catalog.get_exercises()
        except PipelineError:
            raise
        except Exception as e:
            raise CatalogUnavailable(f"Failed to load exercise catalog: {e}") from e

    async def _fetch_by_names(self, names: list[str]) -> list[Exercise]:
        try:
            return await self.catalog.fetch_exercises_by_names(names)
        except PipelineError:
            raise
        except Exception as e:
            raise CatalogUnavailable(f"Failed to fetch exercises by name: {e}") from e

    async def _await_model(self, prompt: str, token: CancellationToken) -> str:
        """
        Запрос к модели наперегонки с таймаутом. Кто первый, тот и прав:
        по таймауту запрос отменяется и его поздний результат выбрасывается.
        """
        task = asyncio.ensure_future(self.llm.send_message(prompt, self.model_config))
        self._model_task = task
        done, _ = await asyncio.wait({task}, timeout=self.config.timeout_seconds)
        self._model_task = None
        self._check(token)

        if task not in done:
            task.add_done_callback(_discard_late_result)
            task.cancel()
            raise ProviderTimeout(
                f"Model did not respond within {self.config.timeout_seconds} seconds"
            )
        return task.result()

    async def _persist(self, workout: Workout, logs: list[ExerciseLog]) -> None:
        try:
            await self.persistence.update_workout_session(workout, logs, workout.id)
            await self.persistence.save_workout(workout)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to save workout {workout.id}: {e}") from e

    def _publish(self, workout: Workout, logs: list[ExerciseLog]) -> None:
        self.current_workout = workout
        self.current_logs = list(logs)
        self.cross_check_exercises()

    def cross_check_exercises(self, updated_exercise: Exercise | None = None) -> list[ExerciseLog]:
        """
        Сверяет упражнения текущих логов со снимком каталога по id.

        `updated_exercise` подменяет упражнение целиком. Из каталога берутся
        название, описание, видео и прочие данные упражнения, а подходы,
        повторы и вес остаются из лога.
        """
        by_id = {exercise.id: exercise for exercise in self.snapshot.exercises}
        refreshed = []
        for log in self.current_logs:
            current = log.exercise
            if updated_exercise is not None and current.id == updated_exercise.id:
                fresh = updated_exercise
            elif current.id in by_id:
                fresh = by_id[current.id].model_copy(
                    update={"sets": current.sets, "reps": current.reps, "weight": current.weight}
                )
            else:
                fresh = current
            refreshed.append(log if fresh == current else log.model_copy(update={"exercise": fresh}))
        self.current_logs = refreshed
        return refreshed

    # ------------------------------------------------------------------
    # Работа с сохраненными тренировками
    # ------------------------------------------------------------------

    def _ensure_idle(self) -> None:
        if self.is_busy:
            raise GenerationInProgress("Another generation is in flight")

    async def refresh_catalog(self) -> CatalogSnapshot:
        """Загружает каталог заново и создает новый снимок."""
        exercises = await self._load_catalog()
        self.snapshot = self.snapshot.next(exercises)
        logger.info(f"Catalog refreshed: {len(self.snapshot)} exercises (v{self.snapshot.version})")
        return self.snapshot

    async def _fetch_existing(self, workout_id: str) -> Workout:
        try:
            existing = await self.persistence.fetch_workout(workout_id)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to load workout {workout_id}: {e}") from e
        if existing is None:
            raise PersistenceError(f"Workout {workout_id} not found")
        return existing

    async def regenerate_from_summary(self, summary: WorkoutSummary) -> Workout:
        """
        Повторяет завершенную тренировку: структура берется из исходной
        тренировки, а логи берутся из выполненных упражнений сводки.
        """
        self._ensure_idle()
        existing = await self._fetch_existing(summary.workout_id)
        workout, _ = assemble_workout(
            details_from_workout(existing),
            self.user_id,
            author=existing.author,
            duration=self.config.duration,
            default_author=self.config.default_author,
        )

        now = datetime.now()
        reused_logs = [
            log.model_copy(
                update={
                    "id": str(uuid.uuid4()),
                    "workout_id": workout.id,
                    "is_submitted": False,
                    "created_at": now,
                    "updated_at": now,
                },
                deep=True,
            )
            for log in summary.exercises_completed
        ]
        logs = synthesize_missing_logs(workout, reused_logs, self.user_id)
        workout.logs = logs

        await self._persist(workout, logs)
        self._set_progress(False, None)
        self._publish(workout, logs)
        logger.info(f"Workout {workout.id} regenerated from summary {summary.id}")
        return workout

    async def regenerate_from_saved(self, saved: Workout) -> Workout:
        """Создает новую тренировку по структуре сохраненной, с чистыми логами."""
        self._ensure_idle()
        existing = await self._fetch_existing(saved.id)
        workout, logs = assemble_workout(
            details_from_workout(existing),
            self.user_id,
            author=saved.author,
            duration=self.config.duration,
            default_author=self.config.default_author,
        )
        await self._persist(workout, logs)
        self._set_progress(False, None)
        self._publish(workout, logs)
        logger.info(f"Workout {workout.id} regenerated from saved workout {saved.id}")
        return workout

    async def set_current_workout(
        self,
        workout: Workout,
        logs: list[ExerciseLog],
        is_workout_in_progress: bool = False,
        start_time: datetime | None = None,
    ) -> list[ExerciseLog]:
        """
        Делает тренировку текущей, дописывая недостающие логи. Для
        незавершенной тренировки передается флаг и время старта.
        """
        self._ensure_idle()
        converged = synthesize_missing_logs(workout, logs, self.user_id)
        if len(converged) != len(logs):
            logger.info(
                f"Synthesized {len(converged) - len(logs)} missing logs for workout {workout.id}"
            )
        workout = workout.model_copy(update={"logs": converged})
        await self._persist(workout, converged)
        self._set_progress(is_workout_in_progress, start_time)
        self._publish(workout, converged)
        return converged

    async def start_new_from_template(
        self,
        workout: Workout,
        logs: list[ExerciseLog],
        is_workout_in_progress: bool = False,
        start_time: datetime | None = None,
    ) -> Workout:
        """Начинает тренировку заново: новые id логов, сброс отметок и дат."""
        self._ensure_idle()
        now = datetime.now()
        new_logs = [
            log.model_copy(
                update={
                    "id": str(uuid.uuid4()),
                    "workout_id": workout.id,
                    "is_submitted": False,
                    "created_at": now,
                    "updated_at": now,
                },
                deep=True,
            )
            for log in logs
        ]
        new_workout = workout.model_copy(
            update={"created_at": now, "updated_at": now, "logs": new_logs}
        )
        await self._persist(new_workout, new_logs)
        self._set_progress(is_workout_in_progress, start_time)
        self._publish(new_workout, new_logs)
        return new_workout

    async def update_queued_workout(self, workout: Workout, logs: list[ExerciseLog]) -> Workout:
        """Сохраняет правки текущей тренировки и ее логов, не трогая прогресс."""
        self._ensure_idle()
        workout = workout.model_copy(update={"logs": list(logs), "updated_at": datetime.now()})
        await self._persist(workout, logs)
        self._publish(workout, logs)
        logger.info(f"Queued workout {workout.id} updated with {len(logs)} logs")
        return workout

    def clean_up_in_progress(self) -> None:
        """Сбрасывает незавершенную тренировку: флаг, время старта и текущие логи."""
        if self.current_workout is not None:
            logger.info(f"Cleaning up in-progress workout {self.current_workout.id}")
        self._set_progress(False, None)
        self.current_workout = None
        self.current_logs = []
