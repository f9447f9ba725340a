from quizhall.db.repo.accounts_repo import AccountsRepo
from quizhall.db.repo.attempts_repo import AttemptsRepo
from quizhall.db.repo.questions_repo import QuestionsRepo
from quizhall.db.repo.quizzes_repo import QuizzesRepo

__all__ = [
    "AccountsRepo",
    "AttemptsRepo",
    "QuestionsRepo",
    "QuizzesRepo",
]
