"""
Exception hierarchy for gallerygen.
"""


class GalleryGenError(Exception):
    """Base class for all gallerygen errors."""
    pass


class ConfigurationError(GalleryGenError):
    """Raised when the content endpoint or storage cannot be configured."""
    pass


class ContentError(GalleryGenError):
    """Raised when the content source cannot deliver a document or file."""
    
    def __init__(self, message: str, url: str = '', status_code: int = 0):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ContentNotFoundError(ContentError):
    """The content source answered 404 for the requested resource."""
    pass


class ContentTransportError(ContentError):
    """Any other failure talking to the content source (5xx, timeouts, DNS...)."""
    pass
