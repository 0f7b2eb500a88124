# boxbox/exceptions.py
# Service-level errors. ValueError subclasses, so callers that only
# catch ValueError keep working.


class NotFound(ValueError):
    status_code = 404


class RecordNotFound(NotFound):
    pass


class BoxNotFound(NotFound):
    pass


class UserNotFound(NotFound):
    pass
