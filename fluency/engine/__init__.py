"""
Engine Module - Store-backed progress services.

Components:
- mastery_tracker: Per-item mastery state machine
- daily_activity: Per-day rollups and the daily-goal streak
- lesson_gate: Level and lesson unlock rules
- achievements: Badge evaluation, unlock and acknowledgement
- plan_usage: Persisted usage counters for plan limits
- profile: Profile stats adapter (points, any-activity streak)
- catalog: Read-only lessons and practice items
- practice: Orchestrates one answer through all of the above
- quiz: Practice/timed/challenge quizzes answered through practice
"""

from fluency.engine.achievements import AchievementEvaluator
from fluency.engine.catalog import ContentCatalog, load_catalog
from fluency.engine.daily_activity import DailyActivityAggregator, compute_goal_streak
from fluency.engine.lesson_gate import LessonGate, LessonState, LevelSummary
from fluency.engine.mastery_tracker import MasteryTracker, MasteryUpdate, points_for
from fluency.engine.plan_usage import PlanUsageService
from fluency.engine.practice import PracticeService, evaluate_answer
from fluency.engine.profile import ProfileService
from fluency.engine.quiz import QuizAnswer, QuizService

__all__ = [
    "AchievementEvaluator",
    "ContentCatalog",
    "DailyActivityAggregator",
    "LessonGate",
    "LessonState",
    "LevelSummary",
    "MasteryTracker",
    "MasteryUpdate",
    "PlanUsageService",
    "PracticeService",
    "ProfileService",
    "QuizAnswer",
    "QuizService",
    "compute_goal_streak",
    "evaluate_answer",
    "load_catalog",
    "points_for",
]
