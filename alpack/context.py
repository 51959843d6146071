from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import requests

from .lib.mirror import MirrorSelection
from .lib.sandbox import Sandbox
from .lib.versions import CandidateEntry
from .settings import Settings


@dataclass
class SetupContext:
    """Inputs and intermediate results of one `alpack setup` run."""

    settings: Settings
    rootfs_dir: Path
    # Where directory creation falls back to on permission denial.
    default_rootfs: Path
    cache_dir: Path
    mirror_override: Optional[str] = None
    edge: bool = False
    no_cache: bool = False
    reinstall: bool = False
    minimal: bool = False
    progress: bool = True
    session: Optional[requests.Session] = None
    sandbox: Optional[Sandbox] = None
    echo: Callable[[str], None] = print

    current_step: Optional[str] = None
    mirror: Optional[MirrorSelection] = None
    index_html: Optional[str] = None
    candidate: Optional[CandidateEntry] = None
    archive_path: Optional[Path] = None
    installed_rootfs: Optional[Path] = None
    fallbacks: List[str] = field(default_factory=list)

    def get_sandbox(self) -> Sandbox:
        if self.sandbox is None:
            if self.installed_rootfs is None:
                raise RuntimeError("rootfs not extracted yet")
            self.sandbox = Sandbox(self.settings.cmd_rootfs, self.installed_rootfs, session=self.session)
        return self.sandbox
