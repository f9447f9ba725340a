class CatalogError(Exception):
    pass


class QuizValidationError(CatalogError):
    pass


class QuestionValidationError(CatalogError):
    pass


class QuizNotFoundError(CatalogError):
    pass
