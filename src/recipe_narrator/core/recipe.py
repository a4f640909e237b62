"""Meal plan model and the narration text read aloud for it."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RecipeModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Ingredient(RecipeModel):
    item: str
    amount: str
    substitute: str | None = None


class Course(RecipeModel):
    name: str
    type: str = ""
    summary: str = ""
    ingredients: list[Ingredient] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    wine_pairing: str = ""
    difficulty_notes: str = ""


class TimelineStep(RecipeModel):
    task: str
    duration: float  # minutes
    course_index: int
    type: Literal["prep", "cook", "rest"]


class Macros(RecipeModel):
    protein: float = 0
    carbs: float = 0
    fats: float = 0
    fiber: float = 0


class MealPlan(RecipeModel):
    """A generated meal plan as returned by the recipe backend."""

    id: str = ""
    title: str
    identified_ingredients: list[str] = Field(default_factory=list)
    courses: list[Course] = Field(default_factory=list)
    timeline: list[TimelineStep] = Field(default_factory=list)
    macros: Macros = Field(default_factory=Macros)
    total_time: str = ""
    flavor_palette: list[str] = Field(default_factory=list)


def course_narration(course: Course) -> str:
    return f"{course.name}. {'. '.join(course.instructions)}"


def narration_text(meal: MealPlan) -> str:
    """
    Assemble the text read aloud for a meal plan.

    Each course contributes its name followed by its instructions, all joined
    with sentence breaks.

    Example:
        >>> meal = MealPlan(title="Dinner", courses=[Course(name="Soup", instructions=["Chop", "Simmer"])])
        >>> narration_text(meal)
        'Soup. Chop. Simmer'
    """
    return ". ".join(course_narration(course) for course in meal.courses)
