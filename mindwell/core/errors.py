"""
MindWell Error Handling
Domain exceptions and the FastAPI handlers that render them.

Every user-visible failure is a static title/message pair, the same text
the mobile client shows in its alert dialog. No structured error codes.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class MindWellError(Exception):
    """Base class for errors surfaced to the client."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    title: str = "Error"
    message: str = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None, title: str | None = None):
        if message is not None:
            self.message = message
        if title is not None:
            self.title = title
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": {"title": self.title, "message": self.message}}


class InputValidationError(MindWellError):
    """Missing or unusable input (no text, no image, no recording)."""
    status_code = status.HTTP_400_BAD_REQUEST
    title = "Invalid Input"


class ClassificationError(MindWellError):
    """The emotion label source failed; the analysis is aborted."""
    status_code = status.HTTP_502_BAD_GATEWAY
    title = "Analysis Failed"
    message = "Unable to analyze your input. Please try again."


class AnalysisInProgress(MindWellError):
    """An analysis for this session and modality is already running."""
    status_code = status.HTTP_409_CONFLICT
    title = "Analysis In Progress"
    message = "Please wait for the current analysis to finish."


class GenerationError(MindWellError):
    """A required AI generation step returned nothing usable."""
    status_code = status.HTTP_502_BAD_GATEWAY
    title = "AI Error"
    message = "Could not generate content."


class NotFoundError(MindWellError):
    """Unknown history entry, affirmation or reminder."""
    status_code = status.HTTP_404_NOT_FOUND
    title = "Not Found"
    message = "The requested item does not exist."


async def mindwell_error_handler(request: Request, exc: MindWellError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def setup_exception_handlers(app: FastAPI) -> None:
    """Register domain exception handlers on the app."""
    app.add_exception_handler(MindWellError, mindwell_error_handler)
