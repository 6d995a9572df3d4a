import pytest

from coin_exchange.storage import InMemoryStorage, StorageConfigError, SupabaseStorage


class FakeBucket:
    def __init__(self, name, fail_with=None):
        self.name = name
        self.fail_with = fail_with
        self.uploads = []

    def upload(self, path, file, file_options=None):
        if self.fail_with:
            raise self.fail_with
        self.uploads.append((path, file, file_options))
        return {"path": path}

    def get_public_url(self, path):
        return f"https://proj.supabase.co/storage/v1/object/public/{self.name}/{path}"


class FakeStorageApi:
    def __init__(self, fail_with=None):
        self.buckets = {}
        self.fail_with = fail_with

    def from_(self, bucket):
        return self.buckets.setdefault(bucket, FakeBucket(bucket, self.fail_with))


class FakeSupabase:
    def __init__(self, fail_with=None):
        self.storage = FakeStorageApi(fail_with)


@pytest.mark.parametrize("url, key", [("", "service-key"), ("https://proj.supabase.co", ""), ("", "")])
def test_missing_credentials_fail_at_construction(url, key):
    with pytest.raises(StorageConfigError):
        SupabaseStorage(url, key, client=FakeSupabase())


def test_upload_pdf_upserts_and_returns_public_url():
    fake = FakeSupabase()
    storage = SupabaseStorage("https://proj.supabase.co", "service-key", client=fake)

    url = storage.upload_pdf("receipts", "transactions/abc.pdf", b"%PDF-1.4")

    assert url == "https://proj.supabase.co/storage/v1/object/public/receipts/transactions/abc.pdf"
    path, body, options = fake.storage.buckets["receipts"].uploads[0]
    assert path == "transactions/abc.pdf"
    assert body == b"%PDF-1.4"
    assert options == {"content-type": "application/pdf", "upsert": "true"}


def test_storage_errors_propagate_unchanged():
    boom = RuntimeError("Bucket not found")
    storage = SupabaseStorage("https://proj.supabase.co", "service-key", client=FakeSupabase(fail_with=boom))
    with pytest.raises(RuntimeError) as exc:
        storage.upload_pdf("missing", "a.pdf", b"x")
    assert exc.value is boom


def test_in_memory_storage_overwrites_same_path():
    storage = InMemoryStorage()
    storage.upload_pdf("receipts", "a.pdf", b"one")
    url = storage.upload_pdf("receipts", "a.pdf", b"two")
    assert url.endswith("/receipts/a.pdf")
    assert storage.stored_objects[("receipts", "a.pdf")]["body"] == b"two"
    assert len(storage.stored_objects) == 1
