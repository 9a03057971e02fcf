from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from typing import Optional, Any


class AppHttpException(HTTPException):
    def __init__(
        self,
        status_code: int,
        detail: str,
        solution: Optional[str] = None,
        errors: Optional[Any] = None,
    ):
        # O storefront lê sempre a chave "message" do corpo de erro
        content = {
            "message": detail,
        }
        if solution:
            content["solution"] = solution
        if errors:
            content["errors"] = errors

        super().__init__(status_code=status_code, detail=detail)
        self.status_code = status_code
        self.detail = detail
        self.solution = solution
        self.errors = errors
        self.content = content


async def app_http_exception_handler(request: Request, exc: AppHttpException) -> JSONResponse:
    headers = getattr(exc, "headers", None)
    return JSONResponse(status_code=exc.status_code, content=exc.content, headers=headers)
