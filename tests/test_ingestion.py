"""
Tests for the streaming-history ingestion pipeline.
"""

from datetime import datetime

import pytest
from sqlalchemy import event, func, select

from conftest import history_file, make_record

from app.config import settings
from app.db.models.stream_event import StreamEvent
from app.services.ingestion_service import (
    IngestionService,
    chunked,
    filter_valid_records,
    is_valid_record,
    parse_timestamp,
    username_from_filename,
)
from app.services.user_service import UserResolutionError, user_service


def count_events(db, user_id=None):
    stmt = select(func.count(StreamEvent.id))
    if user_id is not None:
        stmt = stmt.where(StreamEvent.user_id == user_id)
    return db.scalar(stmt)


@pytest.fixture
def insert_statements(engine):
    """Collect every INSERT issued against streaming_history."""
    statements = []

    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("INSERT INTO STREAMING_HISTORY"):
            statements.append(statement)

    event.listen(engine, "before_cursor_execute", before_cursor_execute)
    yield statements
    event.remove(engine, "before_cursor_execute", before_cursor_execute)


# =============================================================================
# Record validation
# =============================================================================


class TestRecordValidator:
    def test_valid_record(self):
        assert is_valid_record(make_record("Song", ms_played=1)) is True

    @pytest.mark.parametrize(
        "record",
        [
            make_record("Song", ms_played=0),
            make_record("Song", ms_played=-5),
            make_record("", ms_played=1000),
            make_record(None, ms_played=1000),
            make_record("Song", ms_played=None),
            make_record("Song", ms_played="1000"),
            make_record("Song", ms_played=True),
            make_record("Song", ms_played=0.5),
            make_record("Song", ms_played=1500.25),
            {"ts": "2023-01-01T00:00:00Z"},
            "not an object",
            None,
            42,
        ],
    )
    def test_invalid_records_rejected(self, record):
        assert is_valid_record(record) is False

    def test_whole_valued_float_duration_accepted(self):
        assert is_valid_record(make_record("Song", ms_played=1000.0)) is True

    def test_filter_preserves_order_and_drops_invalid(self):
        entries = [
            make_record("A", ms_played=10),
            make_record("B", ms_played=0),
            "garbage",
            make_record("C", ms_played=20),
        ]
        valid = filter_valid_records(entries)
        assert [r["master_metadata_track_name"] for r in valid] == ["A", "C"]


class TestHelpers:
    def test_chunked_sizes(self):
        items = list(range(1201))
        batches = list(chunked(items, 500))
        assert [len(b) for b in batches] == [500, 500, 201]
        assert [x for b in batches for x in b] == items

    def test_chunked_empty(self):
        assert list(chunked([], 500)) == []

    def test_chunked_rejects_zero_size(self):
        with pytest.raises(ValueError):
            list(chunked([1, 2], 0))

    def test_parse_timestamp_zulu(self):
        assert parse_timestamp("2023-04-01T18:22:05Z") == datetime(2023, 4, 1, 18, 22, 5)

    def test_parse_timestamp_offset_normalized_to_utc(self):
        assert parse_timestamp("2023-04-01T20:22:05+02:00") == datetime(2023, 4, 1, 18, 22, 5)

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("User_David_Stouck_Streaming_History_Audio_2019-2021_0.json", "David Stouck"),
            ("User_nova_Streaming_History_Audio_2023.json", "nova"),
            ("Streaming_History_Audio_2023.json", None),
            ("User_nova_Streaming_History_Video_2023.json", None),
            ("User_nova_Streaming_History_Audio_2023.txt", None),
        ],
    )
    def test_username_from_filename(self, filename, expected):
        assert username_from_filename(filename) == expected


# =============================================================================
# Batch inserter
# =============================================================================


class TestBatchInserter:
    def test_one_statement_per_batch(self, db, insert_statements):
        user = user_service.get_or_create_user(db, "Batcher")
        records = [make_record(f"Track {i}", ms_played=1000 + i) for i in range(1201)]

        inserted = IngestionService(batch_size=500).insert_records(db, user.id, records)

        assert inserted == 1201
        assert len(insert_statements) == 3
        assert count_events(db, user.id) == 1201

    def test_exact_multiple_of_batch_size(self, db, insert_statements):
        user = user_service.get_or_create_user(db, "Exact")
        records = [make_record(f"Track {i}") for i in range(10)]

        IngestionService(batch_size=5).insert_records(db, user.id, records)

        assert len(insert_statements) == 2

    def test_no_records_no_statements(self, db, insert_statements):
        user = user_service.get_or_create_user(db, "Empty")
        assert IngestionService().insert_records(db, user.id, []) == 0
        assert insert_statements == []

    def test_batches_preserve_input_order(self, db):
        user = user_service.get_or_create_user(db, "Ordered")
        records = [make_record(f"Track {i:02d}") for i in range(7)]

        IngestionService(batch_size=3).insert_records(db, user.id, records)

        names = db.scalars(
            select(StreamEvent.track_name).where(StreamEvent.user_id == user.id).order_by(StreamEvent.id)
        ).all()
        assert names == [f"Track {i:02d}" for i in range(7)]

    def test_columns_mapped(self, db):
        user = user_service.get_or_create_user(db, "Mapper")
        record = make_record("Hey Jude", artist="The Beatles", ms_played=4321, ts="2022-05-06T07:08:09Z")

        IngestionService().insert_records(db, user.id, [record])

        event_row = db.scalars(select(StreamEvent).where(StreamEvent.user_id == user.id)).one()
        assert event_row.track_name == "Hey Jude"
        assert event_row.artist_name == "The Beatles"
        assert event_row.album_name == "Album"
        assert event_row.ms_played == 4321
        assert event_row.platform == "ios"
        assert event_row.spotify_track_uri == record["spotify_track_uri"]
        assert event_row.ts == datetime(2022, 5, 6, 7, 8, 9)

    def test_failed_batch_keeps_earlier_batches(self, db):
        user = user_service.get_or_create_user(db, "Partial")
        records = [make_record(f"Track {i}") for i in range(4)]
        records.append(make_record("Broken", ts="not a timestamp"))

        with pytest.raises(ValueError):
            IngestionService(batch_size=2).insert_records(db, user.id, records)

        # First two batches committed, the third never made it
        assert count_events(db, user.id) == 4


# =============================================================================
# User resolver
# =============================================================================


class TestUserResolver:
    def test_creates_then_reuses_user(self, db):
        created = user_service.get_or_create_user(db, "  Nova ")
        again = user_service.get_or_create_user(db, "NOVA")

        assert created.username == "Nova"
        assert again.id == created.id

    @pytest.mark.parametrize(
        "name,lookup",
        [("Émile", "ÉMILE"), ("Ólafur Arnalds", "ólafur arnalds"), ("Øystein", "øYSTEIN")],
    )
    def test_non_ascii_names_resolve(self, db, name, lookup):
        created = user_service.get_or_create_user(db, name)

        assert created is not None
        assert created.username == name
        assert user_service.get_user_by_username(db, lookup).id == created.id

    def test_non_ascii_name_matched_across_case(self, db):
        created = user_service.get_or_create_user(db, "Émile")

        assert user_service.get_or_create_user(db, "ÉMILE").id == created.id
        assert user_service.get_user_by_username(db, "émile").id == created.id

    def test_unresolvable_user_raises(self, db, monkeypatch):
        monkeypatch.setattr(user_service, "get_user_by_username", lambda db, username: None)

        with pytest.raises(UserResolutionError):
            user_service.get_or_create_user(db, "Ghost")


# =============================================================================
# File imports
# =============================================================================


class TestImportFiles:
    def test_bad_file_does_not_stop_siblings(self, db):
        user = user_service.get_or_create_user(db, "Siblings")
        files = [
            ("broken.json", b"{not json"),
            ("object.json", b'{"ts": "2023-01-01T00:00:00Z"}'),
            ("good.json", history_file([make_record("A"), make_record("B", ms_played=0)])),
        ]

        results = IngestionService().import_files(db, user.id, files)

        assert [r.filename for r in results] == ["broken.json", "object.json", "good.json"]
        assert results[0].error == "Import failed for file broken.json"
        assert results[1].error == "Import failed for file object.json"
        assert results[2].error is None
        assert results[2].records_imported == 1
        assert count_events(db, user.id) == 1

    def test_repeated_import_duplicates_rows(self, db):
        user = user_service.get_or_create_user(db, "Twice")
        payload = history_file([make_record("A")])
        service = IngestionService()

        service.import_files(db, user.id, [("a.json", payload)])
        service.import_files(db, user.id, [("a.json", payload)])

        assert count_events(db, user.id) == 2

    def test_fractional_durations_not_persisted(self, db):
        user = user_service.get_or_create_user(db, "Fractions")
        payload = history_file([make_record("A", ms_played=0.5), make_record("B", ms_played=2000.0)])

        results = IngestionService().import_files(db, user.id, [("f.json", payload)])

        assert results[0].records_imported == 1
        stored = db.scalars(select(StreamEvent.ms_played).where(StreamEvent.user_id == user.id)).all()
        assert stored == [2000]


# =============================================================================
# Bulk sync
# =============================================================================


class TestBulkSync:
    def test_groups_files_by_embedded_username(self, db, tmp_path):
        (tmp_path / "User_David_Stouck_Streaming_History_Audio_2019_0.json").write_bytes(
            history_file([make_record("A"), make_record("B")])
        )
        (tmp_path / "User_David_Stouck_Streaming_History_Audio_2020_1.json").write_bytes(
            history_file([make_record("C")])
        )
        (tmp_path / "User_Nova_Streaming_History_Audio_2023.json").write_bytes(
            history_file([make_record("D"), make_record("E", ms_played=0)])
        )
        (tmp_path / "notes.json").write_text("[]")

        total = IngestionService().sync_directory(db, tmp_path)

        assert total == 4
        david = user_service.get_user_by_username(db, "David Stouck")
        nova = user_service.get_user_by_username(db, "nova")
        assert count_events(db, david.id) == 3
        assert count_events(db, nova.id) == 1
        assert david.avatar == "goat"

    def test_rerun_is_noop_for_users_with_history(self, db, tmp_path):
        path = tmp_path / "User_Nova_Streaming_History_Audio_2023.json"
        path.write_bytes(history_file([make_record("A"), make_record("B")]))
        service = IngestionService()

        assert service.sync_directory(db, tmp_path) == 2
        assert service.sync_directory(db, tmp_path) == 0

        nova = user_service.get_user_by_username(db, "Nova")
        assert count_events(db, nova.id) == 2

    def test_existing_history_from_upload_blocks_sync(self, db, tmp_path):
        user = user_service.get_or_create_user(db, "Nova")
        IngestionService().insert_records(db, user.id, [make_record("Uploaded")])
        (tmp_path / "User_Nova_Streaming_History_Audio_2023.json").write_bytes(
            history_file([make_record("A"), make_record("B")])
        )

        assert IngestionService().sync_directory(db, tmp_path) == 0
        assert count_events(db, user.id) == 1

    def test_bad_file_skipped_during_sync(self, db, tmp_path):
        (tmp_path / "User_Nova_Streaming_History_Audio_0.json").write_text("oops")
        (tmp_path / "User_Nova_Streaming_History_Audio_1.json").write_bytes(history_file([make_record("A")]))

        assert IngestionService().sync_directory(db, tmp_path) == 1

    def test_unprefixed_files_skipped_without_default_user(self, db, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "SYNC_DEFAULT_USERNAME", "")
        (tmp_path / "Streaming_History_Audio_2023.json").write_bytes(history_file([make_record("A")]))

        assert IngestionService().sync_directory(db, tmp_path) == 0
        assert count_events(db) == 0

    def test_unprefixed_files_go_to_default_user(self, db, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "SYNC_DEFAULT_USERNAME", "David Stouck")
        (tmp_path / "Streaming_History_Audio_2023.json").write_bytes(history_file([make_record("A")]))

        assert IngestionService().sync_directory(db, tmp_path) == 1
        david = user_service.get_user_by_username(db, "David Stouck")
        assert count_events(db, david.id) == 1

    def test_missing_directory(self, db, tmp_path):
        assert IngestionService().sync_directory(db, tmp_path / "nope") == 0

    def test_non_ascii_owners_synced(self, db, tmp_path):
        (tmp_path / "User_Émile_Streaming_History_Audio_0.json").write_bytes(history_file([make_record("A")]))
        (tmp_path / "User_Zoë_Streaming_History_Audio_0.json").write_bytes(
            history_file([make_record("B"), make_record("C")])
        )

        assert IngestionService().sync_directory(db, tmp_path) == 3

        emile = user_service.get_user_by_username(db, "émile")
        zoe = user_service.get_user_by_username(db, "ZOË")
        assert count_events(db, emile.id) == 1
        assert count_events(db, zoe.id) == 2

    def test_unresolvable_user_does_not_stop_others(self, db, tmp_path, monkeypatch):
        resolve = user_service.get_or_create_user

        def resolve_or_fail(db, username):
            if username == "Broken":
                raise UserResolutionError(username)
            return resolve(db, username)

        monkeypatch.setattr(user_service, "get_or_create_user", resolve_or_fail)
        (tmp_path / "User_Broken_Streaming_History_Audio_0.json").write_bytes(history_file([make_record("A")]))
        (tmp_path / "User_Nova_Streaming_History_Audio_0.json").write_bytes(history_file([make_record("B")]))

        assert IngestionService().sync_directory(db, tmp_path) == 1
        assert user_service.get_user_by_username(db, "Broken") is None
