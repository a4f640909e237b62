from recipe_narrator.core.recipe import Course, MealPlan, narration_text

MEAL_JSON = """
{
  "id": "m1",
  "title": "Autumn Tasting Menu",
  "identifiedIngredients": ["fusilli", "pomegranate"],
  "courses": [
    {
      "name": "Pomegranate Salad",
      "type": "Appetizer",
      "summary": "Bright and tart",
      "ingredients": [{"item": "pomegranate", "amount": "1", "substitute": "cranberries"}],
      "instructions": ["Seed the pomegranate", "Dress the greens"],
      "winePairing": "Riesling",
      "difficultyNotes": "Easy"
    },
    {
      "name": "Fusilli al Limone",
      "type": "Entree",
      "instructions": ["Boil the pasta", "Toss with lemon butter"]
    }
  ],
  "timeline": [{"task": "Boil water", "duration": 10, "courseIndex": 1, "type": "prep"}],
  "macros": {"protein": 20, "carbs": 80, "fats": 15, "fiber": 6},
  "totalTime": "45 minutes",
  "flavorPalette": ["#aa0033"]
}
"""


def test_meal_plan_parses_backend_json() -> None:
    meal = MealPlan.model_validate_json(MEAL_JSON)
    assert meal.identified_ingredients == ["fusilli", "pomegranate"]
    assert meal.courses[0].wine_pairing == "Riesling"
    assert meal.courses[0].ingredients[0].substitute == "cranberries"
    assert meal.timeline[0].course_index == 1
    assert meal.macros.fiber == 6


def test_narration_text_reads_course_names_and_steps() -> None:
    meal = MealPlan.model_validate_json(MEAL_JSON)
    assert narration_text(meal) == (
        "Pomegranate Salad. Seed the pomegranate. Dress the greens. "
        "Fusilli al Limone. Boil the pasta. Toss with lemon butter"
    )


def test_narration_text_without_courses_is_empty() -> None:
    assert narration_text(MealPlan(title="Nothing yet")) == ""


def test_course_without_instructions() -> None:
    meal = MealPlan(title="Snack", courses=[Course(name="Cheese Board")])
    assert narration_text(meal) == "Cheese Board. "
