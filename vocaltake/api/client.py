"""HTTP client for the song/recording server."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import httpx

from vocaltake.core.config import API_CONFIG
from vocaltake.core.errors import LoadError, PersistError
from vocaltake.utils.logger import logger


def default_recording_name(now: Optional[datetime] = None) -> str:
    """Name offered for a take the user has not named."""
    now = now or datetime.now()
    return f"Recording {now.strftime('%Y-%m-%d %H:%M:%S')}"


def export_filename(now: Optional[datetime] = None) -> str:
    """Download filename for a full mix, e.g. mix_2024-05-01T12-30-00.wav."""
    now = now or datetime.now()
    return f"mix_{now.strftime('%Y-%m-%dT%H-%M-%S')}.wav"


@dataclass
class RecordingMetadata:
    """What the server stores next to a take.

    A take with a ``recording_id`` updates that recording; otherwise a new
    recording is created under ``song_id``.
    """

    song_id: Optional[str] = None
    name: str = field(default_factory=default_recording_name)
    recording_id: Optional[str] = None

    @property
    def is_update(self) -> bool:
        return bool(self.recording_id)


class TakeApiClient:
    """Client for the recording server.

    Implements both engine collaborators: ``fetch_track_bytes`` (TrackSource)
    and ``persist_final_mix`` (MixSink).
    """

    def __init__(
        self,
        base_url: str = API_CONFIG.base_url,
        token: Optional[str] = None,
        timeout: float = API_CONFIG.timeout_seconds,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_url = f"{self.base_url}{API_CONFIG.api_prefix}"
        self.token = token
        self.timeout = httpx.Timeout(timeout)
        self._transport = transport

    def _client(self) -> httpx.Client:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        return httpx.Client(timeout=self.timeout, headers=headers, transport=self._transport)

    def _get(self, url: str, what: str) -> httpx.Response:
        try:
            with self._client() as client:
                response = client.get(url)
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            code = "NOT_FOUND" if status == 404 else "TRANSPORT"
            raise LoadError(
                f"Could not load {what}: HTTP {status}",
                code=code,
                details={"url": url, "status": status},
            ) from e
        except httpx.HTTPError as e:
            raise LoadError(
                f"Could not load {what}: {e}",
                code="TRANSPORT",
                details={"url": url},
            ) from e

    def fetch_track_bytes(self, track_id: str) -> bytes:
        """Download raw encoded audio.

        Args:
            track_id: Server-relative audio path (e.g. "uploads/123.wav").

        Returns:
            The file's bytes.
        """
        url = f"{self.base_url}/{str(track_id).lstrip('/')}"
        logger.info(f"Fetching audio {url}")
        return self._get(url, f"audio {track_id}").content

    def get_song(self, song_id: str) -> dict[str, Any]:
        """Song record, including its ``audio_path``."""
        songs = self._get(f"{self.api_url}/songs/{song_id}", f"song {song_id}").json()
        if not songs:
            raise LoadError(f"Song {song_id} not found", code="NOT_FOUND")
        return songs[0]

    def get_recording(self, recording_id: str) -> dict[str, Any]:
        """Recording record, including its ``audio_path``."""
        recordings = self._get(
            f"{self.api_url}/recordings/id/{recording_id}", f"recording {recording_id}"
        ).json()
        if not recordings:
            raise LoadError(f"Recording {recording_id} not found", code="NOT_FOUND")
        return recordings[0]

    def persist_final_mix(self, data: bytes, metadata: RecordingMetadata) -> dict[str, Any]:
        """Upload a rendered WAV as a new recording or over an existing one.

        Returns:
            The server's JSON acknowledgement.

        Raises:
            PersistError: If the upload fails or the server rejects it.
        """
        form = {"name": metadata.name}
        if metadata.is_update:
            method, url = "PUT", f"{self.api_url}/recordings/{metadata.recording_id}"
        else:
            if not metadata.song_id:
                raise PersistError("A new recording needs a song id", code="MISSING_SONG")
            method, url = "POST", f"{self.api_url}/recordings"
            form["song_id"] = str(metadata.song_id)

        files = {"audio": (API_CONFIG.upload_filename, data, API_CONFIG.upload_content_type)}
        try:
            with self._client() as client:
                response = client.request(method, url, data=form, files=files)
                response.raise_for_status()
                ack = response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            raise PersistError(
                f"Server rejected the recording: HTTP {e.response.status_code}",
                code="REJECTED",
                details={"url": url, "status": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise PersistError(f"Upload failed: {e}", code="TRANSPORT", details={"url": url}) from e

        logger.info(f"Recording {'updated' if metadata.is_update else 'saved'}: {metadata.name}")
        return ack
