from .step_10_validate_target import ValidateTargetStep
from .step_20_resolve_mirror import ResolveMirrorStep
from .step_30_fetch_index import FetchIndexStep
from .step_40_select_version import SelectVersionStep
from .step_50_download import DownloadStep
from .step_60_extract import ExtractStep
from .step_70_write_repositories import WriteRepositoriesStep
from .step_80_bootstrap_index import BootstrapIndexStep
from .step_90_install_toolchain import InstallToolchainStep

__all__ = [
    "ValidateTargetStep",
    "ResolveMirrorStep",
    "FetchIndexStep",
    "SelectVersionStep",
    "DownloadStep",
    "ExtractStep",
    "WriteRepositoriesStep",
    "BootstrapIndexStep",
    "InstallToolchainStep",
]
