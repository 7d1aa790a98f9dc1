"""Google Speech-to-Text streaming recognition backend."""

import time
import wave
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Iterable, FrozenSet

from .base import AbstractRecognitionBackend
from ..errors import RecognitionFailed, RecognizerUnavailable, UnsupportedLocale
from ..models.transcription import TranscriptionResult, AuthorizationStatus

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.auth import exceptions as auth_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

# Language subtags accepted by Speech-to-Text for file recognition
SUPPORTED_LANGUAGE_CODES = frozenset({
    "ar", "cs", "da", "de", "el", "en", "es", "fi", "fr", "he", "hi", "hu",
    "id", "it", "ja", "ko", "nl", "no", "pl", "pt", "ro", "ru", "sv", "th",
    "tr", "uk", "vi", "zh",
})

# MPEG audio sample rates by version bits, indexed by the header rate bits
MPEG_SAMPLE_RATES = {
    0b11: (44100, 48000, 32000),  # MPEG-1
    0b10: (22050, 24000, 16000),  # MPEG-2
    0b00: (11025, 12000, 8000),   # MPEG-2.5
}

# Opus input rates accepted by the API; anything else is decoded at 48 kHz
OPUS_SAMPLE_RATES = (8000, 12000, 16000, 24000, 48000)


def read_mp3_sample_rate(audio_path: Path) -> int:
    """Read the sample rate from the first MPEG audio frame header, skipping an ID3v2 tag."""
    with open(audio_path, "rb") as f:
        header = f.read(10)
        if len(header) == 10 and header[:3] == b"ID3":
            tag_size = ((header[6] & 0x7F) << 21 | (header[7] & 0x7F) << 14
                        | (header[8] & 0x7F) << 7 | (header[9] & 0x7F))
            f.seek(10 + tag_size)
        else:
            f.seek(0)
        data = f.read(64 * 1024)

    for i in range(len(data) - 2):
        if data[i] != 0xFF or data[i + 1] & 0xE0 != 0xE0:
            continue
        version = (data[i + 1] >> 3) & 0x03
        rate_index = (data[i + 2] >> 2) & 0x03
        if version in MPEG_SAMPLE_RATES and rate_index < 3:
            return MPEG_SAMPLE_RATES[version][rate_index]
    raise RecognitionFailed(f"No MPEG audio frame found in {audio_path.name}")


def read_opus_sample_rate(audio_path: Path) -> int:
    """Read the input sample rate from the OpusHead packet of an Ogg file."""
    with open(audio_path, "rb") as f:
        data = f.read(4096)
    index = data.find(b"OpusHead")
    if index < 0 or len(data) < index + 16:
        raise RecognitionFailed(f"No Opus header found in {audio_path.name}")
    rate = int.from_bytes(data[index + 12:index + 16], "little")
    return rate if rate in OPUS_SAMPLE_RATES else 48000


class GoogleSpeechBackend(AbstractRecognitionBackend):
    """Google Speech-to-Text API backend using streaming recognition with interim results."""

    service_name = "Google Speech-to-Text"

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 chunk_bytes: int = 32768,
                 timeout: float = 300.0,
                 supported_language_codes: Iterable[str] = SUPPORTED_LANGUAGE_CODES):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            chunk_bytes: Audio bytes sent per streaming request
            timeout: Deadline for one streaming call in seconds
            supported_language_codes: Language subtags this backend accepts
        """
        self.credentials_path = credentials_path
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.chunk_bytes = chunk_bytes
        self.timeout = timeout
        self.supported_language_codes: FrozenSet[str] = frozenset(c.lower() for c in supported_language_codes)
        self.client = None
        self.project_id = None

    def initialize(self) -> bool:
        """Load credentials and create the Speech client."""
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")

        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")

        logger.info("Google Speech-to-Text backend initialized successfully")
        return True

    def request_authorization(self) -> AuthorizationStatus:
        """Authorization is granted when the service account credentials load."""
        if self.client is not None:
            return AuthorizationStatus.AUTHORIZED
        if not self.credentials_path:
            logger.warning("No Google credentials configured")
            return AuthorizationStatus.NOT_DETERMINED
        try:
            self.initialize()
        except (OSError, ValueError, auth_exceptions.GoogleAuthError) as e:
            logger.error(f"Google credentials rejected: {e}")
            return AuthorizationStatus.DENIED
        return AuthorizationStatus.AUTHORIZED

    def supports_locale(self, locale: str) -> bool:
        return locale.split("-")[0].lower() in self.supported_language_codes

    def is_available(self) -> bool:
        return self.client is not None

    def recognize(self,
                  audio_path: Path,
                  locale: str,
                  cancel_event: Optional[threading.Event] = None) -> Iterator[TranscriptionResult]:
        """Stream an audio file to Speech-to-Text and yield cumulative hypotheses.

        Each partial result carries every finalized segment so far plus the
        current interim hypothesis. A single final result closes the run.
        """
        if not self.supports_locale(locale):
            raise UnsupportedLocale(locale)
        if not self.is_available():
            raise RecognizerUnavailable("Google Speech client is not initialized")

        audio_path = Path(audio_path)
        recognition_config, chunks = self._open_audio(audio_path, locale)
        streaming_config = speech.StreamingRecognitionConfig(
            config=recognition_config,
            interim_results=True,
        )
        requests = (speech.StreamingRecognizeRequest(audio_content=chunk) for chunk in chunks)

        logger.debug(f"Streaming {audio_path.name}; Language: {locale}; Enhanced model: {self.use_enhanced}; "
                     f"Auto punctuation: {self.enable_automatic_punctuation}")
        start_time = time.time()
        committed = []
        sequence_number = 0
        confidence = 0.0
        try:
            responses = self.client.streaming_recognize(
                config=streaming_config, requests=requests, timeout=self.timeout)
            for response in responses:
                if cancel_event is not None and cancel_event.is_set():
                    logger.info(f"Recognition of {audio_path.name} cancelled")
                    return
                if response.error.code:
                    raise RecognitionFailed(f"Google Speech streaming error: {response.error.message}")
                interim = []
                for result in response.results:
                    if not result.alternatives:
                        continue
                    alternative = result.alternatives[0]
                    if result.is_final:
                        committed.append(alternative.transcript.strip())
                        confidence = alternative.confidence
                    else:
                        interim.append(alternative.transcript.strip())
                text = " ".join(part for part in committed + interim if part)
                if not text:
                    continue
                sequence_number += 1
                yield self._make_result(text, False, confidence, locale, sequence_number)
        except gax_exceptions.ServiceUnavailable as e:
            logger.error("Google STT service unavailable for %s", audio_path.name)
            raise RecognizerUnavailable(f"Google Speech service unavailable: {e}") from e
        except gax_exceptions.DeadlineExceeded as e:
            logger.error("Google STT deadline exceeded for %s", audio_path.name)
            raise RecognitionFailed(f"Google Speech recognize timeout ({audio_path.name}): {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error("Google STT API call error for %s: %s", audio_path.name, e)
            raise RecognitionFailed(f"Google Speech API error ({audio_path.name}): {e}") from e

        if cancel_event is not None and cancel_event.is_set():
            return
        final_text = " ".join(part for part in committed if part)
        logger.debug(f"TRANSCRIPTION FINISHED in {time.time() - start_time:.3f}s: '{final_text}'")
        yield self._make_result(final_text, True, confidence, locale, sequence_number + 1)

    def _make_result(self, text: str, is_final: bool, confidence: float,
                     locale: str, sequence_number: int) -> TranscriptionResult:
        return TranscriptionResult(
            text=text,
            is_final=is_final,
            confidence=confidence,
            timestamp=datetime.now(),
            service=self.service_name,
            language=locale,
            sequence_number=sequence_number,
        )

    def _open_audio(self, audio_path: Path, locale: str):
        """Build the recognition config for a file and an iterator over its audio bytes."""
        suffix = audio_path.suffix.lower()
        common = dict(
            language_code=locale,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
        )
        if suffix == ".wav":
            try:
                with wave.open(str(audio_path), "rb") as wf:
                    sample_rate = wf.getframerate()
                    channels = wf.getnchannels()
                    sample_width = wf.getsampwidth()
            except (wave.Error, EOFError, OSError) as e:
                raise RecognitionFailed(f"Cannot read WAV file {audio_path}: {e}") from e
            if sample_width != 2:
                raise RecognitionFailed(f"Only 16-bit PCM WAV is supported, got {sample_width * 8}-bit")
            config = speech.RecognitionConfig(
                encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
                sample_rate_hertz=sample_rate,
                audio_channel_count=channels,
                **common,
            )
            return config, self._iter_wav_frames(audio_path, channels)
        if suffix == ".flac":
            config = speech.RecognitionConfig(
                encoding=speech.RecognitionConfig.AudioEncoding.FLAC, **common)
            return config, self._iter_file_bytes(audio_path)
        if suffix in (".ogg", ".opus", ".mp3"):
            try:
                if suffix == ".mp3":
                    encoding = speech.RecognitionConfig.AudioEncoding.MP3
                    sample_rate = read_mp3_sample_rate(audio_path)
                else:
                    encoding = speech.RecognitionConfig.AudioEncoding.OGG_OPUS
                    sample_rate = read_opus_sample_rate(audio_path)
            except OSError as e:
                raise RecognitionFailed(f"Cannot read audio file {audio_path}: {e}") from e
            config = speech.RecognitionConfig(
                encoding=encoding,
                sample_rate_hertz=sample_rate,
                **common,
            )
            return config, self._iter_file_bytes(audio_path)
        raise RecognitionFailed(f"Unsupported audio encoding for streaming recognition: {suffix or 'none'}")

    def _iter_wav_frames(self, audio_path: Path, channels: int) -> Iterator[bytes]:
        frames_per_chunk = max(1, self.chunk_bytes // (2 * channels))
        with wave.open(str(audio_path), "rb") as wf:
            while True:
                data = wf.readframes(frames_per_chunk)
                if not data:
                    break
                yield data

    def _iter_file_bytes(self, audio_path: Path) -> Iterator[bytes]:
        with open(audio_path, "rb") as f:
            while True:
                data = f.read(self.chunk_bytes)
                if not data:
                    break
                yield data

    def cleanup(self) -> None:
        """Drop the Speech client."""
        if self.client is not None:
            transport = getattr(self.client, "transport", None)
            if transport is not None:
                transport.close()
        self.client = None
