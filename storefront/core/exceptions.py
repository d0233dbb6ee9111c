from fastapi import HTTPException, status


class Unauthorized(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class InvalidArgument(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class PaymentGatewayError(HTTPException):
    """The payment session could not be created. The order stays pending."""

    def __init__(self, order_id: int, reason: str):
        self.order_id = order_id
        self.reason = reason
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Payment provider unavailable for order {order_id}: {reason}",
        )


class SignatureInvalid(Exception):
    """Raised by payment gateways when a webhook signature does not verify."""
