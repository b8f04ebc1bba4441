from itertools import groupby

from aiogram import html

from pulse.schemas.workout import Workout


def format_workout_message(workout: Workout) -> str:
    """Текст сгенерированной тренировки: упражнения сгруппированы по суперсетам."""
    logs_by_name = {log.exercise.name: log for log in workout.logs}
    lines = [
        f"🔥 <b>Your {html.quote(workout.author)} workout</b> ({workout.duration} min)",
        "",
    ]
    for number, (_, refs) in enumerate(
        groupby(workout.exercises, key=lambda ref: ref.group_id), start=1
    ):
        for index, ref in enumerate(refs):
            log = logs_by_name.get(ref.exercise.name)
            sets = len(log.logs) if log else ref.exercise.sets
            reps = log.exercise.reps if log else ref.exercise.reps
            prefix = f"<b>{number}.</b> " if index == 0 else "    "
            lines.append(f"{prefix}{html.quote(ref.exercise.name)}: {sets} x {reps}")
    return "\n".join(lines)
