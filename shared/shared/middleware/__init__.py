from shared.middleware.error_handler import error_envelope_middleware, register_error_handlers
from shared.middleware.request_id import request_id_middleware

__all__ = ["request_id_middleware", "error_envelope_middleware", "register_error_handlers"]
