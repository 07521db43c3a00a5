"""Tests for the representation fallback chain."""

import asyncio
from pathlib import Path

import pytest
from PIL import Image

from dropdock.ingestion import (
    Bytes,
    FileOnDisk,
    ImageObject,
    NegotiationExhausted,
    PayloadNegotiator,
    RemoteReference,
    RepresentationLoadFailed,
    ResolutionAttempt,
    ResolutionChain,
    StaticPayloadProvider,
    Text,
)
from dropdock.ingestion.models import FILE_URL_TYPE, URL_TYPE, PayloadDescriptor
from dropdock.ingestion.resolution import looks_like_url, materialize_value


def _resolve(provider: StaticPayloadProvider, chain: ResolutionChain | None = None):
    descriptor = PayloadNegotiator().negotiate_provider(provider)
    attempt = ResolutionAttempt(descriptor)
    content = asyncio.run((chain or ResolutionChain()).resolve(descriptor, attempt=attempt))
    return content, attempt


def test_in_place_file_short_circuits(tmp_path: Path) -> None:
    source = tmp_path / "a.txt"
    source.write_text("hi", encoding="utf-8")
    provider = StaticPayloadProvider([FILE_URL_TYPE], in_place={FILE_URL_TYPE: source})

    content, attempt = _resolve(provider)

    assert content == FileOnDisk(source)
    assert attempt.identifier == FILE_URL_TYPE
    assert provider.calls == [("in_place", FILE_URL_TYPE)]


def test_strategies_run_in_order_for_each_identifier(tmp_path: Path) -> None:
    temp_file = tmp_path / "copy.png"
    temp_file.write_bytes(b"png")
    provider = StaticPayloadProvider(
        ["public.jpeg", "public.png"],
        in_place={"public.jpeg": RuntimeError("busy")},
        temporary={"public.png": temp_file},
    )

    content, attempt = _resolve(provider)

    assert content == FileOnDisk(temp_file)
    assert attempt.identifier == "public.png"
    assert provider.calls == [
        ("in_place", "public.jpeg"),
        ("temporary", "public.jpeg"),
        ("item", "public.jpeg"),
        ("in_place", "public.png"),
        ("temporary", "public.png"),
    ]
    assert len(attempt.failures) == 4


def test_item_load_produces_bytes() -> None:
    provider = StaticPayloadProvider(["public.png"], items={"public.png": b"\x89PNG"})

    content, _ = _resolve(provider)

    assert content == Bytes(b"\x89PNG", "public.png")


def test_item_text_and_url_strings() -> None:
    text_content, _ = _resolve(
        StaticPayloadProvider(["public.utf8-plain-text"], items={"public.utf8-plain-text": "hello"})
    )
    url_content, _ = _resolve(
        StaticPayloadProvider(
            ["public.utf8-plain-text"], items={"public.utf8-plain-text": "https://example.com/x"}
        )
    )

    assert text_content == Text("hello")
    assert url_content == RemoteReference("https://example.com/x")


def test_url_data_routes_by_scheme(tmp_path: Path) -> None:
    remote, _ = _resolve(StaticPayloadProvider([URL_TYPE], items={URL_TYPE: b"https://example.com/a.png"}))
    local, _ = _resolve(
        StaticPayloadProvider([URL_TYPE], items={URL_TYPE: f"file://{tmp_path}/b.txt".encode()})
    )
    other, _ = _resolve(StaticPayloadProvider([URL_TYPE], items={URL_TYPE: b"ftp://example.com/c"}))

    assert remote == RemoteReference("https://example.com/a.png")
    assert local == FileOnDisk(tmp_path / "b.txt")
    assert other == RemoteReference("ftp://example.com/c")


def test_image_objects_are_materialized() -> None:
    image = Image.new("RGB", (4, 4), "red")

    content, _ = _resolve(StaticPayloadProvider(["public.image"], items={"public.image": image}))

    assert isinstance(content, ImageObject)
    assert content.image is image


def test_fallback_identifiers_are_tried_last() -> None:
    provider = StaticPayloadProvider(["com.example.custom"], items={"public.data": b"raw"})

    content, attempt = _resolve(provider)

    assert content == Bytes(b"raw", "public.data")
    assert attempt.identifier == "public.data"


def test_exhausted_chain_raises_with_every_failure() -> None:
    provider = StaticPayloadProvider(["public.png"], items={"public.png": b""})
    descriptor = PayloadNegotiator().negotiate_provider(provider)
    attempt = ResolutionAttempt(descriptor)

    with pytest.raises(NegotiationExhausted):
        asyncio.run(ResolutionChain().resolve(descriptor, attempt=attempt))

    assert attempt.exhausted
    assert len(attempt.failures) == 3 * len(descriptor.identifiers)


def test_missing_provider_is_exhausted() -> None:
    with pytest.raises(NegotiationExhausted):
        asyncio.run(ResolutionChain().resolve(PayloadDescriptor(("public.png",))))


def test_missing_in_place_file_falls_through(tmp_path: Path) -> None:
    provider = StaticPayloadProvider(
        ["public.png"],
        in_place={"public.png": tmp_path / "gone.png"},
        items={"public.png": b"png"},
    )

    content, _ = _resolve(provider)

    assert content == Bytes(b"png", "public.png")


class _SlowProvider(StaticPayloadProvider):
    async def load_in_place(self, identifier: str):
        await asyncio.sleep(5)
        return None


def test_load_timeout_moves_to_next_strategy() -> None:
    provider = _SlowProvider(["public.png"], items={"public.png": b"png"})

    content, attempt = _resolve(provider, ResolutionChain(load_timeout_seconds=0.05))

    assert content == Bytes(b"png", "public.png")
    assert any("timed out" in failure for failure in attempt.failures)


def test_materialize_value_rejects_non_url_under_url_identifier() -> None:
    with pytest.raises(RepresentationLoadFailed):
        materialize_value("just words", URL_TYPE)
    assert looks_like_url("https://example.com/path?q=1")
    assert not looks_like_url("two words://x")


def test_first_identifier_failing_everywhere_does_not_raise(tmp_path: Path) -> None:
    temp_file = tmp_path / "y.bin"
    temp_file.write_bytes(b"y")
    provider = StaticPayloadProvider(
        ["com.example.x", "com.example.y"],
        in_place={"com.example.x": OSError("no"), "com.example.y": OSError("no")},
        temporary={"com.example.x": OSError("no"), "com.example.y": temp_file},
        items={"com.example.x": ValueError("no")},
    )

    content, attempt = _resolve(provider)

    assert content == FileOnDisk(temp_file)
    assert attempt.identifier == "com.example.y"
    assert attempt.strategy == "temporary"
