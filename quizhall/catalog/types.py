from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class QuestionDraft:
    text: str
    options: tuple[str, ...]
    correct_option: int


@dataclass(frozen=True, slots=True)
class QuestionSnapshot:
    question_id: int
    quiz_id: int
    text: str
    options: tuple[str, ...]
    correct_option: int

    def is_correct(self, choice: int) -> bool:
        return choice == self.correct_option


@dataclass(frozen=True, slots=True)
class QuizSnapshot:
    quiz_id: int
    title: str
    description: str
    time_limit: int | None
    questions: tuple[QuestionSnapshot, ...] = field(default_factory=tuple)

    @property
    def question_count(self) -> int:
        return len(self.questions)
