from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, TYPE_CHECKING

from .env import get_arch

if TYPE_CHECKING:
    from ..settings import Settings


@dataclass(frozen=True)
class MirrorSelection:
    base_url: str
    release: str
    arch: str

    def index_url(self) -> str:
        return f"{self.base_url}{self.release}/releases/{self.arch}/"

    def repositories(self) -> List[str]:
        repos = ["main", "community"]
        if self.release == "edge":
            repos.append("testing")
        return [f"{self.base_url}{self.release}/{r}" for r in repos]

    def repository_manifest(self) -> str:
        """Contents of /etc/apk/repositories for the new rootfs."""

        return "\n".join(self.repositories()) + "\n"


def resolve_mirror(
    settings: "Settings",
    *,
    mirror: Optional[str] = None,
    release: Optional[str] = None,
    arch: Optional[str] = None,
) -> MirrorSelection:
    base = mirror or settings.default_mirror
    if not base.endswith("/"):
        base += "/"
    return MirrorSelection(
        base_url=base,
        release=release or settings.release,
        arch=arch or get_arch(),
    )
