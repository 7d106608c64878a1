"""
app/resolvers/identity_resolver.py

Resolves parsed listing names to internal property/room identities.

A resolver is built once per run from that run's mapping snapshot. Names that
cannot be resolved are collected, deduplicated in first-seen order, so the
operator can add the missing mappings.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from app.domain.booking import CanonicalBooking, PropertyIdentity, SourceMapping

logger = logging.getLogger(__name__)

WILDCARD = "*"


def discriminator(prefix: str | None) -> str:
    """
    Comparable form of a mapping's sub-space prefix (``"4A*"`` -> ``"4A"``).
    """

    if not prefix:
        return ""
    return prefix.strip().rstrip(WILDCARD).strip()


class IdentityResolver:
    """
    Maps ``CanonicalBooking.source_display_name`` to a ``PropertyIdentity``.

    Listings shared by several rooms are disambiguated by the booking's
    sub-space label; everything else resolves by exact display-name equality.
    When a room registry is supplied, mappings pointing at identities that
    are missing from it or inactive do not resolve.
    """

    def __init__(
        self,
        mappings: Iterable[SourceMapping],
        *,
        ambiguous_patterns: Sequence[str] = (),
        registry: Iterable[PropertyIdentity] | None = None,
    ) -> None:
        self._by_name: dict[str, list[SourceMapping]] = {}
        for mapping in mappings:
            self._by_name.setdefault(mapping.source_display_name, []).append(mapping)

        self._ambiguous_patterns = tuple(pattern for pattern in ambiguous_patterns if pattern)
        self._active: set[tuple[int, int | None]] | None = None
        if registry is not None:
            self._active = {
                (identity.property_id, identity.room_id)
                for identity in registry
                if identity.is_active
            }
        self._unmapped: list[str] = []

    @property
    def unmapped(self) -> list[str]:
        return list(self._unmapped)

    def is_ambiguous(self, display_name: str) -> bool:
        if any(pattern in display_name for pattern in self._ambiguous_patterns):
            return True
        return any(
            discriminator(mapping.sub_space_prefix)
            for mapping in self._by_name.get(display_name, ())
        )

    def resolve(self, booking: CanonicalBooking) -> PropertyIdentity | None:
        """
        Resolve one booking, recording its display name when unresolved.
        """

        name = booking.source_display_name
        if self.is_ambiguous(name):
            mapping = self._select_sub_space(name, booking.sub_space_label)
        else:
            candidates = self._by_name.get(name, ())
            mapping = candidates[0] if candidates else None

        identity = mapping.identity if mapping is not None else None
        if identity is not None and not self._is_registered(identity):
            logger.debug(
                "Mapping for %r points at inactive identity property_id=%s room_id=%s",
                name,
                identity.property_id,
                identity.room_id,
            )
            identity = None

        if identity is None and name not in self._unmapped:
            self._unmapped.append(name)
        return identity

    def _select_sub_space(self, name: str, label: str | None) -> SourceMapping | None:
        if not label:
            return None
        value = label.strip()
        for mapping in self._by_name.get(name, ()):
            token = discriminator(mapping.sub_space_prefix)
            if token and value.startswith(token):
                return mapping
        return None

    def _is_registered(self, identity: PropertyIdentity) -> bool:
        if self._active is None:
            return identity.is_active
        return (identity.property_id, identity.room_id) in self._active
