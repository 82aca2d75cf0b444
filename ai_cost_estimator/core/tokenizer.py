"""
Text tokenization and measurement.

Counts tokens through a byte-pair encoder. All counts use one fixed
vocabulary so totals shown together stay comparable.
"""

import asyncio
import logging
from typing import Callable, Optional, Protocol, Sequence

import tiktoken

from .units import UnitMode

logger = logging.getLogger(__name__)

# Vocabulary of the GPT-4.1 / GPT-4o model family
DEFAULT_ENCODING = "o200k_base"


class Encoder(Protocol):
    """Anything that turns text into token ids."""

    def encode(self, text: str) -> Sequence[int]:
        ...


class TokenizerUnavailable(RuntimeError):
    """Raised when the tokenizer is not loaded or failed to load.

    Callers must not treat this as a count of zero.
    """


def _load_tiktoken(encoding_name: str) -> Encoder:
    return tiktoken.get_encoding(encoding_name)


class TokenCounter:
    """Counts tokens once its encoder is ready.

    Loading may download the vocabulary, so it happens once, off the event
    loop, and is shared by every caller.
    """

    def __init__(
        self,
        encoding_name: str = DEFAULT_ENCODING,
        loader: Optional[Callable[[str], Encoder]] = None,
    ):
        self.encoding_name = encoding_name
        self._loader = loader or _load_tiktoken
        self._encoder: Optional[Encoder] = None
        self._error: Optional[BaseException] = None
        self._loading: Optional[asyncio.Task] = None

    @classmethod
    def from_encoder(cls, encoder: Encoder, encoding_name: str = DEFAULT_ENCODING) -> "TokenCounter":
        """Build a counter around an already loaded encoder."""
        counter = cls(encoding_name)
        counter._encoder = encoder
        return counter

    @property
    def is_ready(self) -> bool:
        return self._encoder is not None

    def load(self) -> None:
        """Load the encoder synchronously.

        Raises:
            TokenizerUnavailable: If the encoder cannot be loaded
        """
        if self._encoder is not None:
            return
        try:
            self._encoder = self._loader(self.encoding_name)
        except Exception as e:
            self._error = e
            raise TokenizerUnavailable(
                f"Tokenizer '{self.encoding_name}' failed to initialize: {e}"
            ) from e
        self._error = None
        logger.info("Tokenizer %s ready", self.encoding_name)

    async def ready(self) -> None:
        """Wait until the encoder is loaded.

        Concurrent callers share one load.

        Raises:
            TokenizerUnavailable: If the encoder cannot be loaded
        """
        if self._encoder is not None:
            return
        if self._loading is None or self._loading.done():
            self._loading = asyncio.ensure_future(asyncio.to_thread(self.load))
        await asyncio.shield(self._loading)

    def count(self, text: str) -> int:
        """Count tokens in text using the loaded encoder.

        Empty and whitespace-only text counts as 0.

        Raises:
            TokenizerUnavailable: If the encoder has not been loaded
        """
        if not text or not text.strip():
            return 0
        if self._encoder is None:
            reason = f": {self._error}" if self._error else ""
            raise TokenizerUnavailable(f"Tokenizer '{self.encoding_name}' is not loaded{reason}")
        return len(self._encoder.encode(text))

    async def tokenize(self, text: str) -> int:
        """Count tokens in text, waiting for the encoder if needed."""
        if not text or not text.strip():
            return 0
        await self.ready()
        return self.count(text)


def count_words(text: str) -> int:
    """Number of whitespace-separated words."""
    return len(text.split())


def count_characters(text: str) -> int:
    """Number of Unicode code points."""
    return len(text)


def measure_text(text: str, unit_mode: UnitMode, counter: TokenCounter) -> int:
    """Measure a text body in the given unit mode.

    Tokens come from the tokenizer, which must already be loaded.

    Raises:
        TokenizerUnavailable: In tokens mode when the tokenizer is not loaded
    """
    if unit_mode == UnitMode.TOKENS:
        return counter.count(text)
    if unit_mode == UnitMode.WORDS:
        return count_words(text)
    return count_characters(text)


async def measure_text_async(text: str, unit_mode: UnitMode, counter: TokenCounter) -> int:
    """Measure a text body, waiting for the tokenizer in tokens mode."""
    if unit_mode == UnitMode.TOKENS:
        return await counter.tokenize(text)
    return measure_text(text, unit_mode, counter)
