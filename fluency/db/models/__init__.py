# SQLAlchemy models
from .base import Base
from .catalog import Lesson, LessonSentence, Sentence
from .profile import LearnerProfile
from .progress import (
    AchievementRecord,
    ChatUsageRecord,
    DailyActivityRecord,
    LessonProgressRecord,
    LessonStatus,
    ProgressRecord,
    ProgressStatus,
)

__all__ = [
    # Base
    "Base",
    # Catalog (read-only)
    "Lesson",
    "Sentence",
    "LessonSentence",
    # Profile
    "LearnerProfile",
    # Progress
    "ProgressRecord",
    "ProgressStatus",
    "DailyActivityRecord",
    "LessonProgressRecord",
    "LessonStatus",
    "AchievementRecord",
    "ChatUsageRecord",
]
