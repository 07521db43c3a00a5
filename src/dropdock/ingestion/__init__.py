"""Drop ingestion: negotiation, resolution, naming, fetching and writing."""

from .classifier import Classification, ContentClassifier
from .errors import (
    ClassificationUnknown,
    DropError,
    NegotiationExhausted,
    NetworkFetchFailed,
    RepresentationLoadFailed,
    WriteFailed,
)
from .fetcher import FetchResult, NetworkFetcher
from .models import (
    Bytes,
    DropOutcome,
    FileOnDisk,
    ImageObject,
    MaterializedContent,
    PayloadDescriptor,
    RemoteReference,
    ResolutionAttempt,
    Text,
)
from .naming import DestinationNamer
from .negotiation import PayloadNegotiator
from .providers import LocalPayloadProvider, PayloadProvider, StaticPayloadProvider
from .resolution import ResolutionChain
from .service import DropService
from .writer import ArtifactWriter

__all__ = [
    "ArtifactWriter",
    "Bytes",
    "Classification",
    "ClassificationUnknown",
    "ContentClassifier",
    "DestinationNamer",
    "DropError",
    "DropOutcome",
    "DropService",
    "FetchResult",
    "FileOnDisk",
    "ImageObject",
    "LocalPayloadProvider",
    "MaterializedContent",
    "NegotiationExhausted",
    "NetworkFetchFailed",
    "NetworkFetcher",
    "PayloadDescriptor",
    "PayloadNegotiator",
    "PayloadProvider",
    "RemoteReference",
    "RepresentationLoadFailed",
    "ResolutionAttempt",
    "ResolutionChain",
    "StaticPayloadProvider",
    "Text",
    "WriteFailed",
]
