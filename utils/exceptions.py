"""
Failure vocabulary shared by the aggregation engine and the HTTP routes.

Upstream error detail is logged where it happens; only these exception
types cross the boundary between the engine and its callers.
"""

from typing import Any, Dict, List, Optional


class PokedexError(Exception):
    """Base class for failures reported to callers of the proxy."""

    status = 500

    def to_dict(self) -> Dict[str, Any]:
        """JSON body describing the failure."""
        return {"message": str(self)}


class InvalidRequestError(PokedexError):
    """Raised when a request parameter fails validation."""

    status = 400


class NotFoundError(PokedexError):
    """
    Raised when the requested creature or form does not exist upstream.

    Attributes:
        suggestions: Close upstream names, when any are known.
    """

    status = 404

    def __init__(self, message: str, suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.suggestions:
            body["suggestions"] = self.suggestions
        return body


class UpstreamUnavailableError(PokedexError):
    """Raised when a mandatory upstream resource could not be fetched."""

    status = 500


class IndexUnavailableError(PokedexError):
    """
    Raised when the search master list could not be built.

    The failure is not remembered: the next search retries the build.
    """

    status = 503
