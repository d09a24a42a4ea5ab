"""
Unit tests for the catalog reader, run against the in-memory bucket.
"""

from collections import Counter

import pytest

from src.core.videos import (
    CatalogConfig,
    CatalogReader,
    CorruptMetadataError,
    InvalidTitleError,
    StorageReadError,
    VideoRecord,
)


pytestmark = pytest.mark.asyncio


async def seed(storage, year_month: str, name: str, upload_date: str, **fields) -> VideoRecord:
    """Write a metadata sidecar (and its binary) straight into storage."""
    key = f"videos/{year_month}/{name}.mp4"
    record = VideoRecord(
        title=fields.pop("title", name),
        upload_date=upload_date,
        file_size=fields.pop("file_size", 100),
        format="mp4",
        video_url=f"gs://{storage.bucket_name}/{key}",
        public_url=f"https://storage.googleapis.com/{storage.bucket_name}/{key}",
        **fields,
    )
    await storage.put_object(key, b"video", "video/mp4")
    await storage.put_object(
        f"videos/{year_month}/metadata/{name}.json",
        record.to_json().encode("utf-8"),
        "application/json",
    )
    return record


async def seed_many(storage, count: int) -> list[VideoRecord]:
    return [
        await seed(storage, "2025/07", f"video-{i:02d}", f"2025-07-{i + 1:02d}T00:00:00.000Z")
        for i in range(count)
    ]


class TestListAll:
    """Tests for CatalogReader.list_all."""

    async def test_empty_catalog(self, reader):
        assert await reader.list_all() == []

    async def test_newest_first(self, reader, storage):
        await seed(storage, "2025/06", "june", "2025-06-30T23:59:59.999Z")
        await seed(storage, "2025/07", "july-late", "2025-07-20T10:00:00.000Z")
        await seed(storage, "2025/07", "july-early", "2025-07-02T10:00:00.000Z")
        await seed(storage, "2024/12", "december", "2024-12-25T00:00:00.000Z")

        records = await reader.list_all()

        assert [r.title for r in records] == ["july-late", "july-early", "june", "december"]

    async def test_order_is_non_increasing(self, reader, storage):
        await seed_many(storage, 10)

        records = await reader.list_all()

        for newer, older in zip(records, records[1:]):
            assert older.uploaded_at <= newer.uploaded_at

    async def test_ties_keep_listing_order(self, reader, storage):
        same = "2025-07-24T14:48:03.064Z"
        await seed(storage, "2025/07", "bravo", same)
        await seed(storage, "2025/07", "alpha", same)
        await seed(storage, "2025/07", "charlie", same)

        records = await reader.list_all()

        assert [r.title for r in records] == ["alpha", "bravo", "charlie"]

    async def test_compares_instants_not_strings(self, reader, storage):
        """An offset timestamp sorts by the instant it denotes."""
        await seed(storage, "2025/07", "utc", "2025-07-24T10:00:00.000Z")
        await seed(storage, "2025/07", "seoul", "2025-07-24T18:30:00.000+09:00")

        records = await reader.list_all()

        assert [r.title for r in records] == ["utc", "seoul"]

    async def test_ignores_binaries_and_stray_objects(self, reader, storage):
        await seed(storage, "2025/07", "cat", "2025-07-24T14:48:03.064Z")
        await storage.put_object("videos/2025/07/notes.json", b"{}", "application/json")
        await storage.put_object("videos/2025/07/metadata/readme.txt", b"hi", "text/plain")
        await storage.put_object("other/metadata/x.json", b"{}", "application/json")

        records = await reader.list_all()

        assert [r.title for r in records] == ["cat"]

    async def test_record_contents_survive(self, reader, storage):
        seeded = await seed(
            storage, "2025/07", "cat", "2025-07-24T14:48:03.064Z",
            title="Cat", description="고양이", tags=["a", "b"], category="pets",
        )

        assert await reader.list_all() == [seeded]


class TestCorruptMetadata:
    """A bad sidecar aborts the listing unless skipping is configured."""

    async def test_corrupt_object_aborts_listing(self, reader, storage):
        await seed(storage, "2025/07", "good", "2025-07-24T14:48:03.064Z")
        await storage.put_object("videos/2025/07/metadata/bad.json", b"{oops", "application/json")

        with pytest.raises(CorruptMetadataError) as exc_info:
            await reader.list_all()

        assert exc_info.value.key == "videos/2025/07/metadata/bad.json"

    async def test_skip_policy_returns_remaining_records(self, storage):
        reader = CatalogReader(
            storage=storage,
            config=CatalogConfig(bucket_name=storage.bucket_name, skip_corrupt_metadata=True),
        )
        await seed(storage, "2025/07", "good", "2025-07-24T14:48:03.064Z")
        await storage.put_object("videos/2025/07/metadata/bad.json", b"[]", "application/json")

        records = await reader.list_all()

        assert [r.title for r in records] == ["good"]

    async def test_skip_policy_still_raises_on_read_failure(self, storage):
        reader = CatalogReader(
            storage=storage,
            config=CatalogConfig(bucket_name=storage.bucket_name, skip_corrupt_metadata=True),
        )
        await seed(storage, "2025/07", "good", "2025-07-24T14:48:03.064Z")
        storage.fail_get_key = "videos/2025/07/metadata/good.json"

        with pytest.raises(StorageReadError):
            await reader.list_all()


class TestReadFailures:
    """Storage failures surface as StorageReadError."""

    async def test_list_failure(self, reader, storage):
        storage.fail_list = True

        with pytest.raises(StorageReadError) as exc_info:
            await reader.list_all()

        assert exc_info.value.key == "videos/"
        assert "403" in str(exc_info.value.cause)

    async def test_download_failure_names_key(self, reader, storage):
        await seed(storage, "2025/07", "cat", "2025-07-24T14:48:03.064Z")
        storage.fail_get_key = "videos/2025/07/metadata/cat.json"

        with pytest.raises(StorageReadError) as exc_info:
            await reader.list_all()

        assert exc_info.value.key == "videos/2025/07/metadata/cat.json"


class TestLookupByTitle:
    """Tests for CatalogReader.lookup_by_title."""

    async def test_finds_title_in_any_month(self, reader, storage):
        await seed(storage, "2025/07", "other", "2025-07-01T00:00:00.000Z")
        seeded = await seed(storage, "2024/03", "my-cat-video", "2024-03-01T00:00:00.000Z", title="My Cat! Video")

        assert await reader.lookup_by_title("my cat video") == seeded

    async def test_not_found(self, reader, storage):
        await seed(storage, "2025/07", "black-cat", "2025-07-01T00:00:00.000Z")

        assert await reader.lookup_by_title("cat") is None

    async def test_first_match_in_listing_order(self, reader, storage):
        await seed(storage, "2025/07", "cat", "2025-07-01T00:00:00.000Z", description="newer")
        await seed(storage, "2024/07", "cat", "2024-07-01T00:00:00.000Z", description="older")

        record = await reader.lookup_by_title("Cat")

        assert record.description == "older"

    async def test_invalid_title(self, reader):
        with pytest.raises(InvalidTitleError):
            await reader.lookup_by_title("???")


class TestSampleRandom:
    """Tests for CatalogReader.sample_random."""

    async def test_returns_requested_number_of_distinct_records(self, reader, storage):
        catalog = await seed_many(storage, 10)

        sample = await reader.sample_random(3)

        assert len(sample) == 3
        assert len({r.title for r in sample}) == 3
        assert all(r in catalog for r in sample)

    async def test_count_larger_than_catalog_returns_everything(self, reader, storage):
        catalog = await seed_many(storage, 5)

        sample = await reader.sample_random(100)

        assert sorted(r.title for r in sample) == sorted(r.title for r in catalog)

    @pytest.mark.parametrize("count", [0, -1, -100])
    async def test_non_positive_count_is_empty(self, reader, storage, count):
        await seed_many(storage, 5)

        assert await reader.sample_random(count) == []

    async def test_empty_catalog(self, reader):
        assert await reader.sample_random(5) == []

    async def test_seed_makes_sample_reproducible(self, reader, storage):
        await seed_many(storage, 10)

        first = await reader.sample_random(4, seed=1234)
        second = await reader.sample_random(4, seed=1234)

        assert first == second

    async def test_every_record_reachable_in_every_position(self, reader, storage):
        """Across many seeds each record shows up first, with no bias to listing order."""
        catalog = await seed_many(storage, 10)

        leaders = Counter()
        for seed_value in range(1000):
            sample = await reader.sample_random(3, seed=seed_value)
            leaders[sample[0].title] += 1

        assert set(leaders) == {r.title for r in catalog}
        # expected 100 each; a biased shuffle would skew well past these bounds
        assert all(40 <= hits <= 170 for hits in leaders.values())

    async def test_does_not_reorder_catalog(self, reader, storage):
        await seed_many(storage, 10)
        before = await reader.list_all()

        await reader.sample_random(10, seed=7)

        assert await reader.list_all() == before
