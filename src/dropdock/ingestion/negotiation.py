"""Ordering of the representations offered by a drag source."""

from __future__ import annotations

from typing import Iterable, Optional

from .errors import NegotiationExhausted
from .models import FALLBACK_TYPES, FILE_URL_TYPE, PayloadDescriptor
from .providers import PayloadProvider


class PayloadNegotiator:
    """Turn a source's advertised identifiers into a resolution order.

    A direct file reference is the cheapest and most faithful representation,
    so it always goes first. The generic fallbacks go last so uncommon
    identifiers still have some route through the resolution chain.
    """

    def __init__(
        self,
        *,
        file_reference_type: str = FILE_URL_TYPE,
        fallback_types: Iterable[str] = FALLBACK_TYPES,
    ) -> None:
        self._file_reference_type = file_reference_type
        self._fallback_types = tuple(fallback_types)

    def negotiate(
        self,
        source_identifiers: Iterable[str],
        *,
        provider: Optional[PayloadProvider] = None,
        suggested_name: Optional[str] = None,
    ) -> PayloadDescriptor:
        """Build a descriptor from the advertised identifiers.

        Args:
            source_identifiers: Identifiers in the order the source offered them.
            provider: Drag source that will load the representations.
            suggested_name: Name advertised by the source, if any.

        Returns:
            PayloadDescriptor: Deduplicated identifiers with the file reference
            first and the fallbacks appended.

        Raises:
            NegotiationExhausted: If the source offered no identifiers at all.
        """
        ordered: list[str] = []
        seen: set[str] = set()
        for identifier in source_identifiers:
            if not isinstance(identifier, str):
                continue
            identifier = identifier.strip()
            if not identifier or identifier in seen:
                continue
            seen.add(identifier)
            ordered.append(identifier)

        if not ordered:
            raise NegotiationExhausted("Drag source offered no type identifiers.")

        if self._file_reference_type in seen:
            ordered.remove(self._file_reference_type)
            ordered.insert(0, self._file_reference_type)

        for fallback in self._fallback_types:
            if fallback not in seen:
                ordered.append(fallback)
                seen.add(fallback)

        return PayloadDescriptor(
            identifiers=tuple(ordered),
            provider=provider,
            suggested_name=suggested_name,
        )

    def negotiate_provider(self, provider: PayloadProvider) -> PayloadDescriptor:
        """Negotiate using the identifiers and name advertised by ``provider``."""
        return self.negotiate(
            list(provider.registered_type_identifiers),
            provider=provider,
            suggested_name=provider.suggested_name,
        )


__all__ = ["PayloadNegotiator"]
