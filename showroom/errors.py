class ShowroomError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(ShowroomError):
    status_code = 400


class InvalidTransition(ValidationError):
    pass


class NotFoundError(ShowroomError):
    status_code = 404


class StoreError(ShowroomError):
    """Panggilan ke database gagal (insert/update/delete/prosedur)."""

    status_code = 500
