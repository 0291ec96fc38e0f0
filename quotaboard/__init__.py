"""QuotaBoard - quota cache and refresh coordination for the proxy management console."""

__version__ = "0.1.0"
