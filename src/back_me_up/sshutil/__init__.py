"""SSH helpers shared by remote endpoints."""

from .master import SSHMasterManager

__all__ = ["SSHMasterManager"]
