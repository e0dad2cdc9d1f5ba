"""Mock implementations for testing."""

from tests.mocks.factories import make_quote, make_token
from tests.mocks.http import MockHttpClient, RecordedRequest
from tests.mocks.sources import (
    CountingQuoteSource,
    FakeClock,
    FakeHistorySource,
    FakePriceSource,
    FakeTopTokensSource,
    RecordingSleep,
)


__all__ = [
    "CountingQuoteSource",
    "FakeClock",
    "FakeHistorySource",
    "FakePriceSource",
    "FakeTopTokensSource",
    "MockHttpClient",
    "RecordedRequest",
    "RecordingSleep",
    "make_quote",
    "make_token",
]
