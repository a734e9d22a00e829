"""Score normalization, levels, streaks, performance bands and the achievement catalog."""
from datetime import date

from app.schemas.stats import AchievementSchema

MIN_SCORE = 0
MAX_SCORE = 100

# (minimum final score, performance level, badge); first match wins
PERFORMANCE_BANDS = [
    (85, "Excellent", "Civic Champion"),
    (70, "Good", "Active Citizen"),
    (55, "Fair", "Learning Citizen"),
    (0, "Needs Improvement", "Participant"),
]

# Activity kinds and the achievement types they trigger
ACTIVITY_ACHIEVEMENT_TYPES = {
    "lesson": "lesson_completion",
    "simulation": "simulation_completion",
    "quiz": "quiz_score",
}
STREAK_ACHIEVEMENT_TYPE = "streak"

# Static achievement catalog: (id, name, description, type, conditions, points)
ACHIEVEMENTS = [
    ("civic_starter", "Civic Starter", "Complete your first lesson",
     "lesson_completion", {"min_lessons": 1}, 10),
    ("constitution_scholar", "Constitution Scholar", "Complete a lesson on the Constitution",
     "lesson_completion", {"category": "constitution", "min_lessons": 1}, 50),
    ("democracy_defender", "Democracy Defender", "Complete a lesson about voting and democracy",
     "lesson_completion", {"category": "voting", "min_lessons": 1}, 75),
    ("lesson_marathon", "Lesson Marathon", "Complete 10 lessons",
     "lesson_completion", {"min_lessons": 10}, 100),
    ("first_simulation", "First Steps in Office", "Complete your first simulation",
     "simulation_completion", {"min_simulations": 1}, 15),
    ("simulation_veteran", "Seasoned Official", "Complete 5 simulations",
     "simulation_completion", {"min_simulations": 5}, 50),
    ("flawless_governance", "Flawless Governance", "Reach a final score of 100 in a simulation",
     "simulation_completion", {"min_score_percentage": 100}, 25),
    ("first_quiz", "First Quiz", "Complete your first quiz",
     "quiz_score", {"min_quizzes": 1}, 10),
    ("civic_scholar", "Civic Scholar", "Complete 3 quizzes with a score of 80% or more",
     "quiz_score", {"min_quizzes": 3, "min_score_percentage": 80}, 75),
    ("quiz_master", "Quiz Master", "Complete 5 quizzes",
     "quiz_score", {"min_quizzes": 5}, 50),
    ("perfect_quiz", "Perfect Score", "Achieve 100% on any quiz",
     "quiz_score", {"min_score_percentage": 100}, 25),
    ("civic_streak", "Civic Streak", "Be active 7 days in a row",
     "streak", {"days": 7}, 30),
]


def achievement_catalog() -> list[AchievementSchema]:
    return [
        AchievementSchema(id=a_id, name=name, description=desc, type=a_type, points=points)
        for a_id, name, desc, a_type, _, points in ACHIEVEMENTS
    ]


ACHIEVEMENT_CONDITIONS = {a_id: conditions for a_id, _, _, _, conditions, _ in ACHIEVEMENTS}


def clamp_score(value: int) -> int:
    """Clamp to 0..100."""
    return max(MIN_SCORE, min(MAX_SCORE, value))


def normalize_score(total_score: int, max_possible_score: int) -> int:
    """Final score as a 0-100 percentage of the best achievable path."""
    if max_possible_score <= 0:
        return MIN_SCORE
    return clamp_score(round(100 * total_score / max_possible_score))


def performance_band(final_score: int) -> tuple[str, str]:
    """Return (performance level, badge) for a final score."""
    for minimum, level, badge in PERFORMANCE_BANDS:
        if final_score >= minimum:
            return level, badge
    return PERFORMANCE_BANDS[-1][1], PERFORMANCE_BANDS[-1][2]


def score_points(final_score: int) -> int:
    """Profile points for a scored simulation or quiz: 0-10 based on the score."""
    return round(clamp_score(final_score) / 10)


def compute_level(points: int, points_per_level: int = 100) -> int:
    return 1 + max(points, 0) // points_per_level


def ratchet_level(stored_level: int, points: int, points_per_level: int = 100) -> int:
    """Level never decreases, whatever the points say."""
    return max(stored_level or 1, compute_level(points, points_per_level))


def next_streak(current: int, last_activity: date | None, today: date, reset_on_gap: bool = False) -> int:
    """Streak after an activity on ``today``.

    Same day leaves it unchanged; any earlier day increments it. With
    ``reset_on_gap`` a gap of more than one day starts over at 1.
    """
    if last_activity is None:
        return 1
    if last_activity >= today:
        return current or 1
    if reset_on_gap and (today - last_activity).days > 1:
        return 1
    return (current or 0) + 1


def conditions_met(conditions: dict, counters: dict, activity: dict) -> bool:
    """All present conditions must hold against updated counters and the activity."""
    checks = {
        "min_lessons": lambda v: counters.get("completed_lessons", 0) >= v,
        "min_simulations": lambda v: counters.get("completed_simulations", 0) >= v,
        "min_quizzes": lambda v: counters.get("completed_quizzes", 0) >= v,
        "days": lambda v: counters.get("streak", 0) >= v,
        "min_score_percentage": lambda v: (activity.get("score_percentage") or 0) >= v,
        "category": lambda v: activity.get("category") == v,
    }
    if not conditions:
        return False
    for key, value in conditions.items():
        check = checks.get(key)
        if check is None or not check(value):
            return False
    return True


def eligible_achievements(activity_kind: str, counters: dict, activity: dict) -> list[AchievementSchema]:
    """Achievements of the activity's type (and streak ones) whose conditions hold."""
    types = {STREAK_ACHIEVEMENT_TYPE}
    if activity_kind in ACTIVITY_ACHIEVEMENT_TYPES:
        types.add(ACTIVITY_ACHIEVEMENT_TYPES[activity_kind])
    return [
        a for a in achievement_catalog()
        if a.type in types and conditions_met(ACHIEVEMENT_CONDITIONS[a.id], counters, activity)
    ]
