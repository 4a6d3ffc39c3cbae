from .client import IPFSClient, normalize_api_addr

__all__ = ["IPFSClient", "normalize_api_addr"]
