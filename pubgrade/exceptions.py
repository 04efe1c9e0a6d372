"""Custom exceptions for pubgrade."""


class PubgradeError(Exception):
    """Base exception for all pubgrade errors."""


class ManifestError(PubgradeError):
    """Raised when a pubspec manifest cannot be loaded."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class ManifestReadError(ManifestError):
    """Raised when a manifest file is missing or unreadable."""


class ManifestParseError(ManifestError):
    """Raised when a manifest is not well-formed YAML."""


class ConfigError(PubgradeError):
    """Raised when the settings file is malformed."""


class PubGetError(PubgradeError):
    """Raised when the package fetch command fails."""

    def __init__(self, command: list[str], returncode: int | None, output: str = ""):
        self.command = command
        self.returncode = returncode
        self.output = output
        status = "not found" if returncode is None else f"exit {returncode}"
        detail = f": {output.strip()}" if output.strip() else ""
        super().__init__(f"{' '.join(command)} failed ({status}){detail}")
