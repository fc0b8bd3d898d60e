"""Onboarding tours registered per page, in presentation order."""

TOUR_DEFINITIONS = {
    "dashboard": [
        {
            "target_selector": ".quick-stats",
            "title": "Quick Stats",
            "content": "View your daily fitness metrics at a glance. These update in real-time as you log activities.",
            "preferred_position": "bottom",
        },
        {
            "target_selector": ".progress-section",
            "title": "Progress Tracking",
            "content": 'Monitor your weekly workout progress. Click "Continue Exercise" to add more workouts.',
            "preferred_position": "bottom",
        },
        {
            "target_selector": ".fitness-goals-section",
            "title": "Set Goals",
            "content": "Define your fitness objectives here. Set distance, duration, or calorie targets.",
            "preferred_position": "top",
        },
        {
            "target_selector": ".global-search-btn",
            "title": "Global Search",
            "content": "Use this button or press Ctrl+K to search across all your fitness data.",
            "preferred_position": "left",
        },
    ],
    "exercise": [
        {
            "target_selector": ".workout-header",
            "title": "Workout Overview",
            "content": "See your planned exercises and estimated duration before starting.",
            "preferred_position": "bottom",
        },
        {
            "target_selector": ".exercise-categories",
            "title": "Exercise Categories",
            "content": "Browse exercises by body part and difficulty level.",
            "preferred_position": "bottom",
        },
        {
            "target_selector": ".exercise-filters",
            "title": "Filter Exercises",
            "content": "Filter exercises by difficulty to match your fitness level.",
            "preferred_position": "top",
        },
    ],
    "nutrition": [
        {
            "target_selector": ".nutrition-overview",
            "title": "Daily Nutrition",
            "content": "Track your daily calorie and macro intake with visual progress rings.",
            "preferred_position": "bottom",
        },
        {
            "target_selector": ".meal-planning",
            "title": "Meal Planning",
            "content": "Log your meals throughout the day and track nutritional content.",
            "preferred_position": "bottom",
        },
        {
            "target_selector": ".water-tracking",
            "title": "Water Intake",
            "content": "Stay hydrated by tracking your daily water consumption.",
            "preferred_position": "top",
        },
    ],
}
