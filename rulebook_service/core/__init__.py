"""Core plumbing: configuration, logging, envelopes, request access, outcomes."""

from rulebook_service.core.config import Settings, get_settings
from rulebook_service.core.envelope import ErrorEnvelope, SuccessEnvelope, error, success
from rulebook_service.core.request import (
    CONTENT_TYPE,
    BodyDecodeError,
    RequestExtractor,
    get_request_extractor,
)
from rulebook_service.core.result import Err, ErrorKind, Ok, Outcome

__all__ = [
    "Settings",
    "get_settings",
    "ErrorEnvelope",
    "SuccessEnvelope",
    "error",
    "success",
    "CONTENT_TYPE",
    "BodyDecodeError",
    "RequestExtractor",
    "get_request_extractor",
    "Err",
    "ErrorKind",
    "Ok",
    "Outcome",
]
