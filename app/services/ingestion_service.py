# ============================================================================
# FILE: app/services/ingestion_service.py
# Streaming-history ingestion: validate -> resolve user -> batch insert
# Handles both interactive uploads and the startup bulk sync
# ============================================================================
import json
import re
import logging
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union
from sqlalchemy import insert
from sqlalchemy.orm import Session
from app.config import settings
from app.db.models.stream_event import StreamEvent
from app.schemas.upload import FileImportResult
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

# Spotify Extended Streaming History field names
TRACK_FIELD = "master_metadata_track_name"
ARTIST_FIELD = "master_metadata_album_artist_name"
ALBUM_FIELD = "master_metadata_album_album_name"
MS_PLAYED_FIELD = "ms_played"

# User_<name>_Streaming_History_Audio_2019-2021_0.json, underscores in <name> are spaces
USER_HISTORY_FILE = re.compile(r"^User_(?P<name>.+?)_Streaming_History_Audio.*\.json$")
PLAIN_HISTORY_FILE = re.compile(r"^Streaming_History_Audio.*\.json$")


# ============================================================================
# Record validation and mapping
# ============================================================================

def is_valid_record(entry: Any) -> bool:
    """A record counts only with a non-empty track name and a positive duration"""
    if not isinstance(entry, dict):
        return False
    track_name = entry.get(TRACK_FIELD)
    if not isinstance(track_name, str) or not track_name:
        return False
    ms_played = entry.get(MS_PLAYED_FIELD)
    if isinstance(ms_played, bool) or not isinstance(ms_played, (int, float)):
        return False
    # ms_played is an integer column
    if isinstance(ms_played, float) and not ms_played.is_integer():
        return False
    return ms_played > 0

def filter_valid_records(entries: Iterable[Any]) -> List[Dict[str, Any]]:
    """Keep the valid records, in input order; invalid ones are dropped silently"""
    return [entry for entry in entries if is_valid_record(entry)]

def parse_timestamp(value: Any) -> datetime:
    """Parse an export timestamp such as 2023-04-01T18:22:05Z into naive UTC"""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

def to_stream_event_row(user_id: int, record: Dict[str, Any]) -> Dict[str, Any]:
    """Map a validated export record onto streaming_history columns"""
    return {
        "user_id": user_id,
        "ts": parse_timestamp(record.get("ts")),
        "track_name": record.get(TRACK_FIELD),
        "artist_name": record.get(ARTIST_FIELD),
        "album_name": record.get(ALBUM_FIELD),
        "ms_played": int(record[MS_PLAYED_FIELD]),
        "spotify_track_uri": record.get("spotify_track_uri"),
        "platform": record.get("platform"),
    }

def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    """Yield consecutive slices of at most `size` items"""
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def username_from_filename(filename: str) -> Optional[str]:
    """Recover the display name embedded in a bulk-sync export filename"""
    match = USER_HISTORY_FILE.match(filename)
    if not match:
        return None
    return match.group("name").replace("_", " ").strip() or None


class IngestionError(Exception):
    """A history file could not be read or parsed"""


# ============================================================================
# Ingestion service
# ============================================================================

class IngestionService:
    """Service layer for turning exported history files into StreamEvents"""

    def __init__(self, batch_size: Optional[int] = None):
        self.batch_size = batch_size or settings.INGEST_BATCH_SIZE

    def insert_records(self, db: Session, user_id: int, records: Sequence[Dict[str, Any]]) -> int:
        """
        Bulk-insert validated records for one user

        One multi-row INSERT per batch, committed per batch. A failing batch is
        rolled back and the error propagates, so earlier batches stay persisted
        and later ones are never attempted.

        Returns:
            Number of records persisted
        """
        inserted = 0
        for batch in chunked(records, self.batch_size):
            rows = [to_stream_event_row(user_id, record) for record in batch]
            try:
                db.execute(insert(StreamEvent).values(rows))
                db.commit()
            except Exception:
                db.rollback()
                raise
            inserted += len(rows)
        return inserted

    def load_payload(self, raw: Union[bytes, str]) -> List[Any]:
        """Decode one export file into its list of entries"""
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8-sig")
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise IngestionError(f"Invalid JSON: {e}") from e
        if not isinstance(data, list):
            raise IngestionError("Expected a JSON array of streaming records")
        return data

    def import_payload(self, db: Session, user_id: int, filename: str, raw: Union[bytes, str]) -> FileImportResult:
        """Import one file; any failure is captured on the result, not raised"""
        try:
            entries = self.load_payload(raw)
            valid = filter_valid_records(entries)
            imported = self.insert_records(db, user_id, valid)
        except Exception as e:
            logger.error(f"Error processing file {filename}: {e}")
            return FileImportResult(filename=filename, error=f"Import failed for file {filename}")

        logger.info(f"Loaded {filename} ({imported} of {len(entries)} records)")
        return FileImportResult(filename=filename, records_imported=imported)

    def import_files(self, db: Session, user_id: int, files: Iterable[Tuple[str, Union[bytes, str]]]) -> List[FileImportResult]:
        """Import files one after another; one bad file never stops the rest"""
        results = []
        for filename, raw in files:
            results.append(self.import_payload(db, user_id, filename, raw))
        total = sum(r.records_imported for r in results)
        logger.info(f"Imported {total} records for user {user_id} from {len(results)} file(s)")
        return results

    def import_paths(self, db: Session, user_id: int, paths: Iterable[Path]) -> List[FileImportResult]:
        """Import history files from disk"""
        results = []
        for path in paths:
            try:
                raw = path.read_bytes()
            except OSError as e:
                logger.error(f"Error reading file {path.name}: {e}")
                results.append(FileImportResult(filename=path.name, error=f"Import failed for file {path.name}"))
                continue
            results.append(self.import_payload(db, user_id, path.name, raw))
        return results

    def discover_history_files(self, directory: Union[str, Path]) -> Dict[str, List[Path]]:
        """
        Group export files in a directory by the display name they belong to

        User_<name>_Streaming_History_Audio*.json is attributed to <name>.
        Unprefixed Streaming_History_Audio*.json goes to SYNC_DEFAULT_USERNAME
        when it is set, and is skipped otherwise.
        """
        directory = Path(directory)
        groups: Dict[str, List[Path]] = defaultdict(list)
        if not directory.is_dir():
            logger.warning(f"History import directory not found: {directory}")
            return {}

        for path in sorted(directory.iterdir()):
            if not path.is_file():
                continue
            username = username_from_filename(path.name)
            if username is None and PLAIN_HISTORY_FILE.match(path.name):
                username = settings.SYNC_DEFAULT_USERNAME.strip() or None
                if username is None:
                    logger.warning(f"Skipping {path.name}: no owner in filename and no default sync user")
                    continue
            if username is None:
                continue
            groups[username].append(path)
        return dict(groups)

    def sync_directory(self, db: Session, directory: Union[str, Path, None] = None) -> int:
        """
        Bulk-load every export found in the directory

        Users that already have at least one StreamEvent are skipped entirely,
        so re-running is a no-op for them.

        Returns:
            Total records imported across all users
        """
        directory = directory if directory is not None else settings.HISTORY_IMPORT_DIR
        groups = self.discover_history_files(directory)
        if not groups:
            logger.info(f"No streaming history exports found in {directory}")
            return 0

        total = 0
        for username, paths in groups.items():
            try:
                user = user_service.get_or_create_user(db, username)
            except Exception as e:
                logger.error(f"Skipping {len(paths)} file(s) for {username}: {e}")
                continue
            if user_service.has_stream_events(db, user.id):
                logger.info(f"History already loaded for {user.username}, skipping {len(paths)} file(s)")
                continue
            results = self.import_paths(db, user.id, paths)
            imported = sum(r.records_imported for r in results)
            logger.info(f"Synced {imported} records for {user.username}")
            total += imported

        logger.info(f"Bulk sync loaded {total} total records")
        return total

# Create singleton instance
ingestion_service = IngestionService()
