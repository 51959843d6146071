"""ALPack: Alpine Linux rootfs provisioning and packaging helper.

Core design goals:
- One explicit Settings object, loaded once per invocation
- Permission problems fall back to the configured rootfs with a warning
- Everything else fails fast with a structured error
- apk, proot and bwrap are treated as external tools
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
