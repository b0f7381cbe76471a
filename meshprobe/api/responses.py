from __future__ import annotations

from fastapi.responses import JSONResponse, PlainTextResponse


NOSNIFF = {"X-Content-Type-Options": "nosniff"}


class ProbeJSONResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"

    def __init__(self, content, status_code: int = 200, **kwargs) -> None:
        headers = {**NOSNIFF, **(kwargs.pop("headers", None) or {})}
        super().__init__(content, status_code=status_code, headers=headers, **kwargs)


def not_found() -> PlainTextResponse:
    return PlainTextResponse("Not Found\n", status_code=404, headers=NOSNIFF)
