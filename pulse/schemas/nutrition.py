import uuid
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from database.models import FoodCategoryEnum


class Meal(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    categories: List[FoodCategoryEnum] = Field(default_factory=list)
    caption: str = ""
    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fat: int = 0
    image: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class MacroTargets(BaseModel):
    calories: int
    protein: int
    carbs: int
    fat: int
