"""
Sharing: share tokens and public links for saved analyses.
"""

from guardaio.sharing.share import AuthenticatedUser, ShareService

__all__ = ["AuthenticatedUser", "ShareService"]
