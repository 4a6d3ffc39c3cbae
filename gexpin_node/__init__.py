"""gexpin node: pin GitHub-published gx packages to a local IPFS daemon."""

__version__ = "0.1.0"
