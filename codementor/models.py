"""CodeMentor data models.

Payloads are cached as the raw API JSON; these typed views are built from it
on every read so a cached dict and a fresh response produce the same object.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


def _id(data: dict) -> str:
    return str(data.get("_id") or data.get("id") or "")


@dataclass
class User:
    id: str
    name: str
    email: str
    level: int = 1
    xp: int = 0
    streak: int = 0
    profile_picture_url: str | None = None

    @classmethod
    def from_api_response(cls, data: dict) -> User:
        return cls(
            id=_id(data),
            name=data.get("name", ""),
            email=data.get("email", ""),
            level=data.get("level", 1),
            xp=data.get("xp", 0),
            streak=data.get("streak", 0),
            profile_picture_url=data.get("fullProfilePictureUrl") or data.get("profilePictureUrl"),
        )


@dataclass
class Lesson:
    id: str
    title: str
    course_id: str = ""
    content: str | list = ""
    duration: int = 0
    topic: str = ""
    order: int = 0
    progress: int | None = None
    completed: bool = False
    accessible: bool = True

    @classmethod
    def from_api_response(cls, data: dict) -> Lesson:
        course_id = data.get("courseId", "")
        if isinstance(course_id, dict):
            course_id = _id(course_id)
        return cls(
            id=_id(data),
            title=data.get("title", ""),
            course_id=str(course_id),
            content=data.get("content", ""),
            duration=data.get("duration", 0),
            topic=data.get("topic", ""),
            order=data.get("order", 0),
            progress=data.get("progress"),
            completed=data.get("completed", False),
            accessible=data.get("accessible", True),
        )


@dataclass
class Course:
    id: str
    title: str
    description: str = ""
    difficulty: str = ""
    tags: list[str] = field(default_factory=list)
    lessons: list[Lesson] = field(default_factory=list)
    image_url: str | None = None
    progress: int | None = None

    @classmethod
    def from_api_response(cls, data: dict) -> Course:
        lessons = [
            Lesson.from_api_response(lesson)
            for lesson in data.get("lessons", [])
            if isinstance(lesson, dict)
        ]
        return cls(
            id=_id(data),
            title=data.get("title", ""),
            description=data.get("description", ""),
            difficulty=data.get("difficulty", ""),
            tags=data.get("tags", []),
            lessons=lessons,
            image_url=data.get("imageUrl"),
            progress=data.get("progress"),
        )


@dataclass
class UserProgress:
    user_id: str
    level: int = 1
    xp: int = 0
    next_level_xp: int | None = None
    completed_lessons: int = 0
    total_coding_time: int = 0
    avg_quiz_score: int = 0
    achievements: list[dict] = field(default_factory=list)
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_api_response(cls, user_id: str, data: dict) -> UserProgress:
        completed = data.get("completedLessons", 0)
        if isinstance(completed, list):
            completed = len(completed)
        return cls(
            user_id=user_id,
            level=data.get("level", 1),
            xp=data.get("xp", 0),
            next_level_xp=data.get("nextLevelXp"),
            completed_lessons=completed,
            total_coding_time=data.get("totalCodingTime", 0),
            avg_quiz_score=data.get("avgQuizScore", 0),
            achievements=data.get("achievements", []),
            raw=data,
        )


@dataclass
class LessonCompletion:
    """Result of marking a lesson complete. XP figures come straight from the server."""

    success: bool
    already_completed: bool = False
    xp_earned: int = 0
    new_xp: int | None = None
    new_level: int | None = None

    @classmethod
    def from_api_response(cls, data: dict) -> LessonCompletion:
        return cls(
            success=data.get("success", False),
            already_completed=data.get("alreadyCompleted", False),
            xp_earned=data.get("xpEarned", 0),
            new_xp=data.get("newXp"),
            new_level=data.get("newLevel"),
        )


@dataclass
class Quiz:
    course_id: str
    id: str = ""
    questions: list[dict] = field(default_factory=list)
    title: str = ""

    @classmethod
    def from_api_response(cls, course_id: str, data: dict) -> Quiz:
        return cls(
            course_id=course_id,
            id=_id(data),
            questions=data.get("questions", []),
            title=data.get("title", ""),
        )


@dataclass
class ChatMessage:
    role: str
    content: str
    timestamp: int | None = None


@dataclass
class ChatSession:
    id: str
    title: str = ""
    messages: list[ChatMessage] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> ChatSession:
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title", ""),
            messages=[
                ChatMessage(role=m.get("role", ""), content=m.get("content", ""), timestamp=m.get("timestamp"))
                for m in data.get("messages", [])
            ],
        )
