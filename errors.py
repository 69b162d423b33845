"""
Errors raised while handling an OpenPhone webhook.

Each carries the HTTP status and the message returned to the caller as
``{"error": message}``.
"""


class WebhookError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.message)


class InvalidSignature(WebhookError):
    status_code = 401
    message = "Invalid signature"


class MissingPhoneNumber(WebhookError):
    status_code = 400
    message = "Missing required phone number data"


class ContactPersistenceError(WebhookError):
    message = "Failed to upsert contact"


class CommunicationPersistenceError(WebhookError):
    message = "Failed to insert communication"
