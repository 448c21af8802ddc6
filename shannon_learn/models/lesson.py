"""
Lesson content handed to a session by the lesson source.

A lesson is read-only for the whole session: pages are shown in order, quiz
questions are index-addressed, and nothing here is mutated by the controller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

OPTIONS_PER_QUESTION = 4


@dataclass(frozen=True)
class LessonPage:
    """
    One screen of lesson content.

    Attributes:
        sentences: Sentences shown on the page, in display order
        image: Opaque illustration handle (data URI or URL), None if absent
    """
    sentences: Sequence[str]
    image: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "sentences", tuple(self.sentences))

    @property
    def text(self) -> str:
        """Page sentences joined for read-aloud."""
        return " ".join(s.strip() for s in self.sentences if s and s.strip())


@dataclass(frozen=True)
class QuizQuestion:
    """Multiple-choice question with exactly four options."""
    question: str
    options: Sequence[str]
    correct_answer_index: int
    explanation: str = ""

    def __post_init__(self):
        if len(self.options) != OPTIONS_PER_QUESTION:
            raise ValueError(
                f"Quiz question must have exactly {OPTIONS_PER_QUESTION} options, "
                f"got {len(self.options)}"
            )
        if not (0 <= self.correct_answer_index < OPTIONS_PER_QUESTION):
            raise ValueError(
                f"correct_answer_index must be between 0 and {OPTIONS_PER_QUESTION - 1}, "
                f"got {self.correct_answer_index}"
            )
        # Tuples so a frozen question cannot be mutated through its options
        object.__setattr__(self, "options", tuple(self.options))


@dataclass(frozen=True)
class CurriculumAlignment:
    """
    How the lesson lines up with the learner's curriculum.

    Attributes:
        summary: Short description of the curriculum fit
        source_hints: Where the alignment came from (syllabus names, standards)
        is_placeholder: True when generic, non-curriculum-specific content was used
    """
    summary: str
    source_hints: Sequence[str] = field(default_factory=tuple)
    is_placeholder: bool = False


@dataclass(frozen=True)
class Lesson:
    """A generated lesson: ordered pages followed by an optional quiz."""
    title: str
    subject: str
    lesson_format: str
    pages: Sequence[Optional[LessonPage]]
    quiz: Sequence[QuizQuestion] = field(default_factory=tuple)
    topic: Optional[str] = None
    curriculum: Optional[CurriculumAlignment] = None

    def __post_init__(self):
        object.__setattr__(self, "pages", tuple(self.pages))
        object.__setattr__(self, "quiz", tuple(self.quiz))

    @property
    def topic_label(self) -> str:
        """Topic recorded on attempts; falls back to the title."""
        return self.topic or self.title

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def question_count(self) -> int:
        return len(self.quiz)

    @property
    def has_quiz(self) -> bool:
        return len(self.quiz) > 0

    def page_at(self, index: int) -> Optional[LessonPage]:
        """Page at index, or None when the index is out of range or the slot is empty."""
        if 0 <= index < len(self.pages):
            return self.pages[index]
        return None

    def question_at(self, index: int) -> Optional[QuizQuestion]:
        """Question at index, or None when out of range."""
        if 0 <= index < len(self.quiz):
            return self.quiz[index]
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], validate: bool = True) -> "Lesson":
        """
        Build a lesson from the lesson source's wire format.

        Args:
            data: Lesson dict (lessonTitle, lessonPages, quiz, ...)
            validate: Check the payload against lesson.schema.json first

        Raises:
            ValueError: If validation fails
        """
        if validate:
            from ..utils.validation import validate_lesson

            result = validate_lesson(data)
            if not result:
                raise ValueError("Invalid lesson payload:\n" + "\n".join(result.errors))

        curriculum_data = data.get("curriculumInfo")
        curriculum = None
        if curriculum_data:
            curriculum = CurriculumAlignment(
                summary=curriculum_data.get("summary", ""),
                source_hints=tuple(curriculum_data.get("sourceHints", [])),
                is_placeholder=bool(curriculum_data.get("isPlaceholder", False)),
            )

        return cls(
            title=data["lessonTitle"],
            subject=data.get("subject", ""),
            lesson_format=data.get("lessonFormat", ""),
            pages=[
                LessonPage(sentences=tuple(p.get("sentences", [])), image=p.get("imageDataUri"))
                for p in data.get("lessonPages", [])
            ],
            quiz=[
                QuizQuestion(
                    question=q["question"],
                    options=q["options"],
                    correct_answer_index=q["correctAnswerIndex"],
                    explanation=q.get("explanation", ""),
                )
                for q in data.get("quiz", [])
            ],
            topic=data.get("lessonTopic"),
            curriculum=curriculum,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the lesson source's wire format."""
        result: Dict[str, Any] = {
            "lessonTitle": self.title,
            "subject": self.subject,
            "lessonFormat": self.lesson_format,
            "lessonPages": [
                {"sentences": list(p.sentences), "imageDataUri": p.image}
                for p in self.pages
                if p is not None
            ],
            "quiz": [
                {
                    "question": q.question,
                    "options": list(q.options),
                    "correctAnswerIndex": q.correct_answer_index,
                    "explanation": q.explanation,
                }
                for q in self.quiz
            ],
        }
        if self.topic:
            result["lessonTopic"] = self.topic
        if self.curriculum:
            result["curriculumInfo"] = {
                "summary": self.curriculum.summary,
                "sourceHints": list(self.curriculum.source_hints),
                "isPlaceholder": self.curriculum.is_placeholder,
            }
        return result
