"""Tests for the drop service entry points."""

import asyncio
import threading
from pathlib import Path

import httpx

from dropdock.config import DropdockConfig
from dropdock.ingestion import (
    DropOutcome,
    DropService,
    LocalPayloadProvider,
    StaticPayloadProvider,
)


def test_accept_rejects_sources_without_identifiers(tmp_path: Path) -> None:
    service = DropService()

    accepted = service.accept([StaticPayloadProvider([])], tmp_path)

    assert accepted is False
    assert service.wait(timeout=1) == []
    service.close()


def test_accept_writes_in_background_and_notifies(tmp_path: Path) -> None:
    service = DropService()
    received: list[DropOutcome] = []
    done = threading.Event()

    def _listener(outcome: DropOutcome) -> None:
        received.append(outcome)
        done.set()

    service.subscribe(_listener)
    accepted = service.accept([LocalPayloadProvider.for_text("hello", "greeting")], tmp_path)

    assert accepted is True
    assert done.wait(timeout=5)
    outcomes = service.wait(timeout=5)
    service.close()

    assert [outcome.written for outcome in outcomes] == [received[0].written]
    assert received[0].content_kind == "text"
    assert (tmp_path / "greeting.txt").read_text(encoding="utf-8") == "hello"


def test_each_provider_is_independent(tmp_path: Path) -> None:
    source = tmp_path / "keep.txt"
    source.write_text("k", encoding="utf-8")
    destination = tmp_path / "dest"
    destination.mkdir()
    providers = [
        StaticPayloadProvider(["public.png"]),
        LocalPayloadProvider.for_path(source),
    ]

    outcomes = asyncio.run(DropService().ingest(providers, destination))

    assert [outcome.succeeded for outcome in outcomes] == [False, True]
    assert "NegotiationExhausted" in (outcomes[0].error or "")
    assert outcomes[1].written == destination.resolve() / "keep.txt"
    assert outcomes[1].identifier == "public.file-url"


def test_unsubscribe_stops_notifications(tmp_path: Path) -> None:
    service = DropService()
    received: list[DropOutcome] = []
    unsubscribe = service.subscribe(received.append)
    unsubscribe()

    asyncio.run(service.ingest([LocalPayloadProvider.for_text("x")], tmp_path))

    assert received == []


def test_url_drop_downloads_through_configured_transport(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})

    service = DropService.from_config(DropdockConfig(), transport=httpx.MockTransport(handler))

    outcomes = asyncio.run(
        service.ingest([LocalPayloadProvider.for_url("https://example.com/img")], tmp_path)
    )

    assert outcomes[0].content_kind == "remote"
    assert outcomes[0].written == tmp_path.resolve() / "downloaded_image.png"


def test_unsupported_url_scheme_fails_the_drop(tmp_path: Path) -> None:
    outcomes = asyncio.run(
        DropService().ingest(
            [StaticPayloadProvider(["public.url"], items={"public.url": b"ftp://example.com/f"})],
            tmp_path,
        )
    )

    assert not outcomes[0].succeeded
    assert "NetworkFetchFailed" in (outcomes[0].error or "")
    assert list(tmp_path.iterdir()) == []


def test_from_argument_classifies_cli_values(tmp_path: Path) -> None:
    existing = tmp_path / "file.txt"
    existing.write_text("f", encoding="utf-8")

    assert LocalPayloadProvider.from_argument(str(existing)).registered_type_identifiers == (
        "public.file-url",
    )
    assert LocalPayloadProvider.from_argument("https://example.com").registered_type_identifiers == (
        "public.url",
    )
    assert LocalPayloadProvider.from_argument("plain words").registered_type_identifiers == (
        "public.utf8-plain-text",
    )


class _FailingSession(StaticPayloadProvider):
    """Drag source whose identifier list can no longer be read."""

    @property
    def registered_type_identifiers(self):
        raise RuntimeError("drag session went away")


class _CountingProvider(StaticPayloadProvider):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.identifier_reads = 0

    @property
    def registered_type_identifiers(self):
        self.identifier_reads += 1
        return super().registered_type_identifiers


def test_failing_provider_is_skipped_by_accept(tmp_path: Path) -> None:
    service = DropService()

    try:
        assert service.accept([_FailingSession(["public.png"])], tmp_path) is False
        accepted = service.accept(
            [_FailingSession(["public.png"]), LocalPayloadProvider.for_text("still here")],
            tmp_path,
        )
        outcomes = service.wait(timeout=5)
    finally:
        service.close()

    assert accepted is True
    assert [outcome.succeeded for outcome in outcomes] == [True]
    assert (tmp_path / "dropped_file.txt").read_text(encoding="utf-8") == "still here"


def test_non_string_identifiers_are_ignored(tmp_path: Path) -> None:
    provider = StaticPayloadProvider(
        [None, "public.utf8-plain-text", 42],
        items={"public.utf8-plain-text": "typed"},
    )

    outcomes = asyncio.run(DropService().ingest([provider], tmp_path))

    assert outcomes[0].identifier == "public.utf8-plain-text"
    assert (tmp_path / "dropped_file.txt").read_text(encoding="utf-8") == "typed"


def test_identifiers_are_read_once_per_drop(tmp_path: Path) -> None:
    provider = _CountingProvider(["public.utf8-plain-text"], items={"public.utf8-plain-text": "x"})

    asyncio.run(DropService().ingest([provider], tmp_path))

    assert provider.identifier_reads == 1
