"""
app/resolvers package marker.
"""

from app.resolvers.identity_resolver import IdentityResolver, discriminator

__all__ = [
    "IdentityResolver",
    "discriminator",
]
