"""Errors returned by the edge API to its clients."""

from __future__ import annotations

from http import HTTPStatus


class APIError(Exception):
    """Base class for every error the API reports to a client."""

    code: str = "ERROR"
    status: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, title: str) -> None:
        super().__init__(title)
        self.title = title

    def __str__(self) -> str:
        return self.title

    def to_dict(self) -> dict:
        """Return the JSON body sent to the client."""
        return {"Code": self.code, "Status": int(self.status), "Title": self.title}


class InternalServerError(APIError):
    """A generic failure inside the service."""

    code = "ERROR"
    status = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self) -> None:
        super().__init__("Something went wrong.")


class BadRequest(APIError):
    """The client's input could not be accepted."""

    code = "BAD_REQUEST"
    status = HTTPStatus.BAD_REQUEST


class NotFound(APIError):
    """A requested entity does not exist."""

    code = "NOT_FOUND"
    status = HTTPStatus.NOT_FOUND