import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import request_id_var

_VALID_RID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        incoming = request.headers.get("X-Request-Id", "")
        rid = incoming if _VALID_RID.match(incoming) else str(uuid.uuid4())
        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-Id"] = rid
        return response
