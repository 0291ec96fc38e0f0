"""View models for QuotaBoard."""

from .quota_viewmodel import QuotaViewModel

__all__ = ["QuotaViewModel"]
