from __future__ import annotations

from typing import Optional


class AlpackError(RuntimeError):
    """Base error carrying a machine-readable kind and an optional usage hint.

    The message stays free of presentation details; alpack.render turns
    kind + message + hint into the text shown to the user.
    """

    kind = "error"

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class ConfigError(AlpackError):
    kind = "configuration"


class ValidationError(AlpackError):
    kind = "validation"


class UsageError(ValidationError):
    pass


class TargetExistsError(ValidationError):
    def __init__(self, path: str) -> None:
        super().__init__(
            f"Rootfs directory {path} is already available.",
            hint="Use [-r|--reinstall] to reinstall it.",
        )
        self.path = path


class RootfsMissingError(ValidationError):
    def __init__(self, path: str) -> None:
        super().__init__("rootfs directory not found.", hint="setup")
        self.path = path


class NetworkError(AlpackError):
    kind = "network"


class ParseError(AlpackError):
    kind = "parse"


class NoMatchingRootfsError(ParseError):
    def __init__(self, arch: str, index_url: str) -> None:
        super().__init__(f"No alpine-minirootfs files found for {arch} at {index_url}")
        self.arch = arch
        self.index_url = index_url


class FilesystemError(AlpackError):
    kind = "filesystem"


class ArchiveError(AlpackError):
    kind = "archive"


class ExternalProcessError(AlpackError):
    kind = "external-process"

    def __init__(self, message: str, *, returncode: Optional[int] = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
