"""Tests for payload negotiation ordering."""

import pytest

from dropdock.ingestion import NegotiationExhausted, PayloadNegotiator, StaticPayloadProvider
from dropdock.ingestion.models import DATA_TYPE, FILE_URL_TYPE, ITEM_TYPE, URL_TYPE


def test_file_reference_moves_first_and_fallbacks_are_appended() -> None:
    descriptor = PayloadNegotiator().negotiate(["public.png", "public.tiff", FILE_URL_TYPE])

    assert descriptor.identifiers == (
        FILE_URL_TYPE,
        "public.png",
        "public.tiff",
        ITEM_TYPE,
        DATA_TYPE,
        URL_TYPE,
    )


def test_duplicates_and_blank_identifiers_are_dropped() -> None:
    descriptor = PayloadNegotiator().negotiate(
        ["public.png", " ", "public.png", DATA_TYPE, "public.jpeg"]
    )

    assert descriptor.identifiers == ("public.png", DATA_TYPE, "public.jpeg", ITEM_TYPE, URL_TYPE)
    assert len(set(descriptor.identifiers)) == len(descriptor.identifiers)


def test_source_order_is_preserved_without_file_reference() -> None:
    identifiers = ["com.example.custom", "public.html", "public.utf8-plain-text"]

    descriptor = PayloadNegotiator().negotiate(identifiers)

    assert list(descriptor.identifiers[:3]) == identifiers


def test_empty_source_is_rejected() -> None:
    with pytest.raises(NegotiationExhausted):
        PayloadNegotiator().negotiate([])


def test_negotiate_provider_carries_provider_and_name() -> None:
    provider = StaticPayloadProvider(["public.png"], suggested_name="shot.png")

    descriptor = PayloadNegotiator().negotiate_provider(provider)

    assert descriptor.provider is provider
    assert descriptor.suggested_name == "shot.png"
    assert descriptor.identifiers[0] == "public.png"


def test_non_string_identifiers_are_skipped() -> None:
    descriptor = PayloadNegotiator().negotiate([None, "public.png", 7])  # type: ignore[list-item]

    assert descriptor.identifiers[0] == "public.png"
    assert None not in descriptor.identifiers


def test_only_non_string_identifiers_are_exhausted() -> None:
    with pytest.raises(NegotiationExhausted):
        PayloadNegotiator().negotiate([None])  # type: ignore[list-item]
