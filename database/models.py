from sqlalchemy import (
    Integer,
    String,
    DateTime,
    ForeignKey,
    Enum,
    Float,
    Text,
    Boolean,
    JSON,
    func,
)
from sqlalchemy.orm import declarative_base, Mapped, mapped_column, relationship
from typing import List
from datetime import datetime
import enum


Base = declarative_base()


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), onupdate=func.now(), server_default=func.now()
    )


class BodyPartEnum(str, enum.Enum):
    abs = "abs"
    biceps = "biceps"
    triceps = "triceps"
    chest = "chest"
    lats = "lats"
    traps = "traps"
    rhomboids = "rhomboids"
    shoulders = "shoulders"
    forearms = "forearms"
    lowerback = "lowerback"
    glutes = "glutes"
    quadriceps = "quadriceps"
    hamstrings = "hamstrings"
    calves = "calves"


class ExerciseCategoryEnum(str, enum.Enum):
    weight_training = "weight_training"
    cardio = "cardio"


class WorkoutRatingEnum(str, enum.Enum):
    easy = "easy"
    moderate = "moderate"
    hard = "hard"


class FoodCategoryEnum(str, enum.Enum):
    grains = "grains"
    fruits = "fruits"
    vegetables = "vegetables"
    dairy = "dairy"
    meat = "meat"
    fish_and_seafood = "fishAndSeafood"
    eggs = "eggs"
    nuts_seeds_and_legumes = "nutsSeedsAndLegumes"
    fats_and_oils = "fatsAndOils"
    sweets_and_desserts = "sweetsAndDesserts"
    snacks = "snacks"
    water = "water"
    juices = "juices"
    soft_drinks = "softDrinks"
    alcoholic_drinks = "alcoholicDrinks"
    coffee_and_tea = "coffeeAndTea"
    fast_food = "fastFood"
    condiments_and_sauces = "condimentsAndSauces"
    soups_and_broths = "soupsAndBroths"
    processed_and_prepackaged_foods = "processedAndPrepackagedFoods"
    ethnic_or_regional_cuisines = "ethnicOrRegionalCuisines"
    breakfast_foods = "breakfastFoods"


class Exercise(Base, TimestampMixin):
    __tablename__ = "exercises"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=True)
    category: Mapped[ExerciseCategoryEnum] = mapped_column(
        Enum(ExerciseCategoryEnum), default=ExerciseCategoryEnum.weight_training
    )
    # Списки ключей BodyPartEnum
    primary_body_parts: Mapped[list] = mapped_column(JSON, default=list)
    secondary_body_parts: Mapped[list] = mapped_column(JSON, default=list)
    tags: Mapped[list] = mapped_column(JSON, default=list)
    steps: Mapped[list] = mapped_column(JSON, default=list)
    sets: Mapped[int] = mapped_column(Integer, default=3, server_default="3")
    reps: Mapped[str] = mapped_column(String, default="12", server_default="12")
    weight: Mapped[float] = mapped_column(Float, default=0.0, server_default="0")
    is_body_weight: Mapped[bool] = mapped_column(Boolean, default=False)
    author: Mapped[str] = mapped_column(String, nullable=True)

    videos: Mapped[List["ExerciseVideo"]] = relationship(
        "ExerciseVideo", back_populates="exercise", cascade="all, delete-orphan"
    )


class ExerciseVideo(Base):
    __tablename__ = "exercise_videos"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    exercise_id: Mapped[str] = mapped_column(
        ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    username: Mapped[str] = mapped_column(String, nullable=True)
    video_url: Mapped[str] = mapped_column(String, nullable=True)
    thumbnail_url: Mapped[str] = mapped_column(String, nullable=True)

    exercise: Mapped["Exercise"] = relationship("Exercise", back_populates="videos")


class Workout(Base, TimestampMixin):
    __tablename__ = "workouts"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=True)
    duration: Mapped[int] = mapped_column(Integer, default=60)
    workout_rating: Mapped[WorkoutRatingEnum | None] = mapped_column(
        Enum(WorkoutRatingEnum), nullable=True
    )
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    author: Mapped[str] = mapped_column(String, nullable=True)

    workout_exercises: Mapped[list["WorkoutExercise"]] = relationship(
        "WorkoutExercise",
        back_populates="workout",
        cascade="all, delete-orphan",
        order_by="WorkoutExercise.order",
    )
    exercise_logs: Mapped[list["ExerciseLog"]] = relationship(
        "ExerciseLog", back_populates="workout", cascade="all, delete-orphan"
    )


class WorkoutExercise(Base):
    __tablename__ = "workout_exercises"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    workout_id: Mapped[str] = mapped_column(
        ForeignKey("workouts.id", ondelete="CASCADE"), nullable=False
    )
    exercise_id: Mapped[str] = mapped_column(
        ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False
    )
    group_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    workout: Mapped["Workout"] = relationship("Workout", back_populates="workout_exercises")
    exercise: Mapped["Exercise"] = relationship("Exercise")


class ExerciseLog(Base, TimestampMixin):
    __tablename__ = "exercise_logs"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    workout_id: Mapped[str] = mapped_column(
        ForeignKey("workouts.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String, nullable=True)
    # Снимок упражнения на момент тренировки, а не ссылка на каталог
    exercise_snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)
    sets: Mapped[list] = mapped_column(JSON, default=list)
    feedback: Mapped[str] = mapped_column(Text, default="")
    note: Mapped[str] = mapped_column(Text, default="")
    is_split: Mapped[bool] = mapped_column(Boolean, default=False)
    is_body_weight: Mapped[bool] = mapped_column(Boolean, default=False)
    is_submitted: Mapped[bool] = mapped_column(Boolean, default=False)

    workout: Mapped["Workout"] = relationship("Workout", back_populates="exercise_logs")


class Follow(Base, TimestampMixin):
    __tablename__ = "follows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    to_user_id: Mapped[str] = mapped_column(String, nullable=False)
    is_user_content_prioritized: Mapped[bool] = mapped_column(Boolean, default=False)


class AppConfig(Base, TimestampMixin):
    """Удалённо редактируемые значения (например, шаблон промпта тренировки)."""

    __tablename__ = "app_config"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
