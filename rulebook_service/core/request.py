"""Raw request access: body decoding and content-type inspection."""

from __future__ import annotations

from fastapi import Request
from starlette.datastructures import Headers

CONTENT_TYPE = "Content-Type"


class BodyDecodeError(ValueError):
    """Raised when the request body cannot be decoded with the given charset."""


class RequestExtractor:
    """Wraps the headers and the already-read body of one request."""

    def __init__(self, headers: Headers | dict[str, str], body: bytes):
        self._headers = headers if isinstance(headers, Headers) else Headers(headers)
        self._body = body

    def content(self, charset: str = "utf-8") -> str:
        """Decode the body.

        Raises:
            BodyDecodeError: if the bytes are not valid under ``charset``.
        """
        try:
            return self._body.decode(charset)
        except (UnicodeDecodeError, LookupError) as e:
            raise BodyDecodeError(f"Unable to decode request body as {charset}: {e}") from e

    def is_content_type(self, candidate: str) -> bool:
        """Case-insensitive media type match, ignoring parameters such as charset."""
        declared = self.header(CONTENT_TYPE, "")
        media_type = declared.split(";", 1)[0].strip().lower()
        return media_type == candidate.strip().lower()

    def header(self, name: str, default: str = "") -> str:
        return self._headers.get(name, default)


async def get_request_extractor(request: Request) -> RequestExtractor:
    """FastAPI dependency reading the body exactly once."""
    body = await request.body()
    return RequestExtractor(request.headers, body)
