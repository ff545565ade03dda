"""Exception types raised by each stage of the try-on pipelines."""


class TryOnError(Exception):
    """Base class for every failure that ends a request with an error body."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(TryOnError):
    """A required setting is missing or malformed."""


class RequestBodyError(TryOnError):
    """The request body is missing a required field."""


class ImageFetchError(TryOnError):
    """An image URL answered with a non-2xx status or could not be reached."""


class MimeTypeError(TryOnError):
    """No MIME type could be resolved for a fetched image."""


class StorageError(TryOnError):
    """A Supabase Storage upload, download or signing call failed."""


class DatabaseError(TryOnError):
    """A Supabase table read or write failed or returned no row."""


class GenerationError(TryOnError):
    """The Gemini API failed or returned a response without the expected payload."""


class VideoPollTimeout(TryOnError):
    """The video job did not finish within the allowed attempts or deadline."""


class VideoPollCancelled(TryOnError):
    """The caller went away while the video job was still running."""
