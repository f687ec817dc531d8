class MetadataServiceError(Exception):
    """Raised when the movie metadata service cannot answer a request."""


class MovieNotFoundError(MetadataServiceError):
    def __init__(self, movie_id: int, reason: str = ""):
        self.movie_id = movie_id
        message = f"Movie {movie_id} not found"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SummaryUnavailableError(Exception):
    """Raised when every summarization endpoint failed."""

    def __init__(self, message: str = "Backend not working: API is offline.",
                 attempts=None):
        self.attempts = list(attempts or [])
        super().__init__(message)
