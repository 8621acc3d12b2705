"""remit_vm.cli — developer command line (`remit-vm`)."""

from .main import app

__all__ = ["app"]
