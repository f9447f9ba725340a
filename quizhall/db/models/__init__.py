from quizhall.db.models.accounts import Account
from quizhall.db.models.attempts import Attempt
from quizhall.db.models.base import Base
from quizhall.db.models.questions import Question
from quizhall.db.models.quizzes import Quiz

__all__ = [
    "Account",
    "Attempt",
    "Base",
    "Question",
    "Quiz",
]
