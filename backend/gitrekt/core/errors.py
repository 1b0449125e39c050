"""
Domain errors
Each carries the HTTP status the API layer translates it to
"""


class GitRektError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class NotTracked(GitRektError):
    """Repository has no TrackedRepo configuration"""
    status_code = 404


class NotFound(GitRektError):
    status_code = 404


class AlreadyProcessed(GitRektError):
    """Record has already left the pending state"""
    status_code = 409


class JudgmentFailed(GitRektError):
    status_code = 500


class InvalidSignature(GitRektError):
    status_code = 401
