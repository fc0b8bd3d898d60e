"""Fixed meal suggestions offered on the nutrition page.

Macros are the standard profile applied when a suggestion is added to a meal.
"""

MEAL_SUGGESTIONS = [
    {
        "name": "Mediterranean Bowl",
        "description": "High protein, balanced macros",
        "calories": 520,
        "protein": 25,
        "carbs": 45,
        "fat": 15,
        "image": "https://images.unsplash.com/photo-1512621776951-a57141f2eefd?w=80&h=80&fit=crop&crop=center",
    },
    {
        "name": "Protein Smoothie",
        "description": "Post-workout recovery",
        "calories": 280,
        "protein": 25,
        "carbs": 45,
        "fat": 15,
        "image": "https://images.unsplash.com/photo-1553530666-ba11a7da3888?w=80&h=80&fit=crop&crop=center",
    },
    {
        "name": "Quinoa Salad",
        "description": "Fiber-rich, nutrient dense",
        "calories": 380,
        "protein": 25,
        "carbs": 45,
        "fat": 15,
        "image": "https://images.unsplash.com/photo-1512058564366-18510be2db19?w=80&h=80&fit=crop&crop=center",
    },
]
