from typing import Optional


class KubeLauncherError(Exception):
    """Base launcher exception."""

    pass


class TransportError(KubeLauncherError):
    """Cluster API could not be reached, refused auth, or rejected a request."""

    def __init__(
        self, message: str, status: Optional[int] = None, reason: Optional[str] = None
    ):
        super().__init__(message)
        self.status = status
        self.reason = reason


class MalformedManifestError(KubeLauncherError):
    """Job manifest template is missing required structure."""

    pass


class TemplateError(KubeLauncherError):
    """Manifest template could not be loaded or rendered."""

    pass
