class AccountError(Exception):
    pass


class AccountValidationError(AccountError):
    pass


class InvalidRoleError(AccountValidationError):
    pass


class DuplicateIdentityError(AccountError):
    pass


class InvalidCredentialsError(AccountError):
    pass


class RoleSelectionError(AccountError):
    pass


class PermissionDeniedError(AccountError):
    pass
