"""Error taxonomy shared by every context.

``BadRequestError`` covers invalid input and business-rule violations,
``NotFoundError`` a missing user, order, cart or reference, and
``UnauthorizedError`` a missing auth context or a failed webhook signature.
The API layer maps each to its HTTP status (see ``shared.api``).
"""


class ShopError(Exception):
    status_code = 500
    kind = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class BadRequestError(ShopError):
    status_code = 400
    kind = "bad_request"


class NotFoundError(ShopError):
    status_code = 404
    kind = "not_found"


class UnauthorizedError(ShopError):
    status_code = 401
    kind = "unauthorized"
