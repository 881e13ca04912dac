class SessionTodoError(Exception):
    """Base class for errors raised while handling a list operation."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SessionTodoError):
    """Submitted list name or todo text was rejected.

    The error flash has already been set; the caller redisplays the form
    with the user's input preserved.
    """


class NotFoundError(SessionTodoError):
    """A list (or todo) id did not match anything in the session.

    `redirect` is where the client should be sent; no mutation has happened.
    """

    def __init__(self, message: str, redirect: str = '/lists'):
        super().__init__(message)
        self.redirect = redirect
