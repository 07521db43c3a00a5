"""Drop entry point: negotiate, resolve, and write each dragged source."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Coroutine, Iterable, Sequence

import httpx

from dropdock.config.models import DropdockConfig

from .errors import DropError, NegotiationExhausted
from .fetcher import NetworkFetcher
from .models import DropOutcome, PayloadDescriptor, ResolutionAttempt, content_kind
from .negotiation import PayloadNegotiator
from .providers import PayloadProvider
from .resolution import ResolutionChain
from .writer import ArtifactWriter

LOGGER = logging.getLogger(__name__)

OutcomeCallback = Callable[[DropOutcome], None]


class _LoopThread:
    """Persistent daemon thread running one asyncio event loop."""

    def __init__(self, name: str = "dropdock-ingest") -> None:
        self._loop = asyncio.new_event_loop()
        self._ready = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()
        self._ready.wait()

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._ready.set)
        self._loop.run_forever()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def stop(self, timeout: float | None = 5) -> None:
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        if not self._thread.is_alive():
            self._loop.close()


class DropService:
    """Accept drops from one or more payload providers into a directory.

    Each provider is handled independently: its identifiers are negotiated,
    resolved through the :class:`ResolutionChain`, and written with the
    :class:`ArtifactWriter`. Failures are logged and reported as
    :class:`DropOutcome` values; they never propagate to the caller.
    """

    def __init__(
        self,
        *,
        negotiator: PayloadNegotiator | None = None,
        chain: ResolutionChain | None = None,
        writer: ArtifactWriter | None = None,
    ) -> None:
        self.negotiator = negotiator or PayloadNegotiator()
        self.chain = chain or ResolutionChain()
        self.writer = writer or ArtifactWriter()
        self._listeners: list[OutcomeCallback] = []
        self._listeners_lock = threading.Lock()
        self._pending: list[concurrent.futures.Future] = []
        self._pending_lock = threading.Lock()
        self._loop_thread: _LoopThread | None = None

    @classmethod
    def from_config(
        cls,
        config: DropdockConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "DropService":
        """Build a service whose components honor ``config``.

        Args:
            config: Loaded DropDock configuration.
            transport: Optional HTTP transport override for the fetcher.
        """
        fetcher = NetworkFetcher(
            timeout_seconds=config.network.timeout_seconds,
            follow_redirects=config.network.follow_redirects,
            user_agent=config.network.user_agent,
            transport=transport,
        )
        writer = ArtifactWriter(
            fetcher=fetcher,
            max_name_attempts=config.ingestion.max_name_attempts,
            image_encode_format=config.ingestion.image_encode_format,
        )
        chain = ResolutionChain(load_timeout_seconds=config.ingestion.load_timeout_seconds)
        return cls(chain=chain, writer=writer)

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    def subscribe(self, callback: OutcomeCallback) -> Callable[[], None]:
        """Register ``callback`` for every finished drop.

        Returns:
            Callable[[], None]: Function that removes the subscription.
        """
        with self._listeners_lock:
            self._listeners.append(callback)

        def _unsubscribe() -> None:
            with self._listeners_lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return _unsubscribe

    def accept(self, providers: Sequence[PayloadProvider], destination: Path) -> bool:
        """Schedule ingestion of ``providers`` into ``destination``.

        Returns ``True`` as soon as any provider negotiates successfully; the
        actual writes happen in the background and are reported to
        subscribers and through :meth:`wait`.
        """
        descriptors = self._negotiate_all(providers)
        if not descriptors:
            LOGGER.warning("Drop rejected: no provider offered a usable type identifier.")
            return False

        loop_thread = self._ensure_loop()
        for descriptor in descriptors:
            future = loop_thread.submit(self._ingest_descriptor(descriptor, destination))
            with self._pending_lock:
                self._pending.append(future)
        return True

    async def ingest(
        self, providers: Iterable[PayloadProvider], destination: Path
    ) -> list[DropOutcome]:
        """Ingest ``providers`` concurrently and return one outcome per accepted source."""
        descriptors = self._negotiate_all(providers)
        tasks = [self._ingest_descriptor(descriptor, destination) for descriptor in descriptors]
        return list(await asyncio.gather(*tasks))

    def wait(self, timeout: float | None = None) -> list[DropOutcome]:
        """Block until drops scheduled by :meth:`accept` finish.

        Returns:
            list[DropOutcome]: Outcomes of the drops that completed.
        """
        with self._pending_lock:
            pending, self._pending = self._pending, []
        done, not_done = concurrent.futures.wait(pending, timeout=timeout)
        if not_done:
            with self._pending_lock:
                self._pending.extend(not_done)
        return [future.result() for future in pending if future in done and not future.cancelled()]

    def close(self, timeout: float | None = None) -> None:
        """Stop the background event loop after waiting for scheduled drops."""
        self.wait(timeout)
        if self._loop_thread is not None:
            self._loop_thread.stop()
            self._loop_thread = None

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _negotiate_all(self, providers: Iterable[PayloadProvider]) -> list[PayloadDescriptor]:
        descriptors: list[PayloadDescriptor] = []
        for provider in providers:
            try:
                identifiers = list(provider.registered_type_identifiers)
                LOGGER.debug("Provider %r offers %s", provider, identifiers)
                descriptors.append(
                    self.negotiator.negotiate(
                        identifiers, provider=provider, suggested_name=provider.suggested_name
                    )
                )
            except NegotiationExhausted as exc:
                LOGGER.info("Skipping provider %r: %s", provider, exc)
            except Exception:
                LOGGER.exception("Skipping provider %r: negotiation failed", provider)
        return descriptors

    async def _ingest_descriptor(
        self, descriptor: PayloadDescriptor, destination: Path
    ) -> DropOutcome:
        attempt = ResolutionAttempt(descriptor)
        outcome = DropOutcome(destination=destination)
        try:
            content = await self.chain.resolve(descriptor, attempt=attempt)
            outcome.content_kind = content_kind(content)
            outcome.identifier = attempt.identifier
            outcome.written = await self.writer.write(
                content, destination, suggested_name=descriptor.suggested_name
            )
        except DropError as exc:
            outcome.error = f"{type(exc).__name__}: {exc}"
            LOGGER.warning("Drop into %s failed: %s", destination, outcome.error)
        except Exception as exc:  # pragma: no cover - unexpected failures stay local
            outcome.error = f"{type(exc).__name__}: {exc}"
            LOGGER.exception("Unexpected error while dropping into %s", destination)
        self._notify(outcome)
        return outcome

    def _notify(self, outcome: DropOutcome) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for callback in listeners:
            try:
                callback(outcome)
            except Exception:  # pragma: no cover - listener bugs must not break drops
                LOGGER.exception("Drop outcome listener %r failed", callback)

    def _ensure_loop(self) -> _LoopThread:
        if self._loop_thread is None:
            self._loop_thread = _LoopThread()
        return self._loop_thread


__all__ = ["DropService", "OutcomeCallback"]
