from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ...core.setting import get_settings
from ...utils.jwt_handler import JWTHandler
from ...utils.logging import setup_product_logging

logger = setup_product_logging("product_service.auth")

DEFAULT_EXCLUDE_PATHS = ["/health", "/docs", "/redoc", "/openapi.json"]


class ProductServiceAuthMiddleware(BaseHTTPMiddleware):
    """Authenticate requests with a JWT from the Authorization header or a cookie."""

    def __init__(
        self,
        app: Any,
        exclude_paths: Optional[list[str]] = None,
        jwt_handler: Optional[JWTHandler] = None,
    ):
        super().__init__(app)
        self.exclude_paths = exclude_paths or list(DEFAULT_EXCLUDE_PATHS)
        if jwt_handler is None:
            settings = get_settings()
            jwt_handler = JWTHandler(
                secret_key=settings.SECRET_KEY, algorithm=settings.ALGORITHM
            )
        self.jwt_handler = jwt_handler

    def _should_skip_auth(self, path: str) -> bool:
        return any(
            path == exclude_path or path.startswith(exclude_path + "/")
            for exclude_path in self.exclude_paths
        )

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if self._should_skip_auth(request.url.path):
            return await call_next(request)

        correlation_id = getattr(request.state, "correlation_id", "unknown")
        auth_result = self._authenticate_request(request)

        if not auth_result["authenticated"]:
            logger.warning(
                f"Authentication failed: {auth_result['reason']}",
                extra={
                    "correlation_id": correlation_id,
                    "path": request.url.path,
                    "method": request.method,
                    "reason": auth_result["reason"],
                },
            )
            return JSONResponse(
                status_code=401,
                content={
                    "error": {
                        "type": "authentication_error",
                        "message": "Authentication required",
                        "correlation_id": correlation_id,
                        "details": {"reason": auth_result["reason"]},
                    }
                },
            )

        request.state.user_id = auth_result["user_id"]
        request.state.user_role = auth_result["user_role"]
        request.state.token_data = auth_result["token_data"]
        return await call_next(request)

    def _extract_token(self, request: Request) -> tuple[Optional[str], str]:
        authorization = request.headers.get("Authorization") or ""
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip(), "header"

        token = request.cookies.get("auth_token") or request.cookies.get("access_token")
        return token, "cookie"

    def _authenticate_request(self, request: Request) -> Dict[str, Any]:
        token, source = self._extract_token(request)
        if not token:
            return {"authenticated": False, "reason": "missing_token"}
        if token.strip() in ("", "null", "undefined"):
            return {"authenticated": False, "reason": "empty_token"}

        try:
            token_data = self.jwt_handler.decode_token(token)
        except ValueError as e:
            logger.warning(f"JWT validation failed: {str(e)}")
            return {"authenticated": False, "reason": "invalid_token"}

        return {
            "authenticated": True,
            "user_id": token_data.user_id,
            "user_role": token_data.role,
            "token_data": token_data.model_dump(mode="json"),
            "token_source": source,
        }


class AuthenticatedUser:
    """Dependency returning the authenticated user id, optionally role-gated."""

    def __init__(self, required_role: Optional[str] = None):
        self.required_role = required_role

    async def __call__(self, request: Request) -> str:
        user_id = getattr(request.state, "user_id", None)
        user_role = getattr(request.state, "user_role", None)

        if not user_id:
            raise HTTPException(status_code=401, detail="Authentication required")

        if self.required_role and user_role != self.required_role:
            raise HTTPException(
                status_code=403, detail=f"Required role: {self.required_role}"
            )

        return str(user_id)


def setup_product_auth_middleware(
    app: FastAPI,
    exclude_paths: Optional[list[str]] = None,
) -> None:
    """Setup authentication middleware for the Product Service."""

    exclude_paths = exclude_paths or list(DEFAULT_EXCLUDE_PATHS)
    app.add_middleware(ProductServiceAuthMiddleware, exclude_paths=exclude_paths)

    logger.info(
        "Product Service authentication middleware configured",
        extra={"excluded_paths": exclude_paths},
    )


authenticated_user = AuthenticatedUser()
admin_user = AuthenticatedUser(required_role="admin")
