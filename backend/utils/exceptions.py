class ServiceError(Exception):
    """Base exception for all service-layer errors."""

    def __init__(self, detail: str, status_code: int = 500):
        self.detail = detail
        self.status_code = status_code
        super().__init__(self.detail)


class BadRequestError(ServiceError):
    """Raised for invalid client requests (e.g., a negative reporting window)."""

    def __init__(self, detail: str = "Bad request"):
        super().__init__(detail, status_code=400)
