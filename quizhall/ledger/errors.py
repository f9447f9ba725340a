class LedgerError(Exception):
    pass


class AttemptValidationError(LedgerError):
    pass


class AnswerCountMismatchError(AttemptValidationError):
    pass


class StudentNotFoundError(LedgerError):
    pass
