# tests/test_storage_unit.py
import pytest
from botocore.exceptions import ClientError

import app.services.storage as storage_mod
from app.core.config import Settings
from app.core.errors import InvalidFileReference, StorageError
from app.services.storage import FileLocation, ObjectStorage, parse_file_reference


class DummyS3Client:
    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, ContentType=None):
        # Body may be bytes or a file-like; we expect bytes in our test use
        self.objects[(Bucket, Key)] = Body
        return {"ETag": '"dummy-etag"'}

    def download_file(self, Bucket, Key, Filename):
        data = self.objects.get((Bucket, Key))
        if data is None:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        with open(Filename, "wb") as f:
            f.write(data)


def test_parse_s3_reference():
    assert parse_file_reference("s3://resumes/resumes/u1/a.pdf", "resumes") == FileLocation("resumes", "resumes/u1/a.pdf")


def test_parse_download_url():
    url = "https://firebasestorage.googleapis.com/v0/b/proj.appspot.com/o/resumes%2Fu1%2Fmy%20cv.pdf?alt=media&token=t"
    assert parse_file_reference(url, "resumes") == FileLocation("resumes", "resumes/u1/my cv.pdf")


@pytest.mark.parametrize("ref", ["", "https://example.com/resume.pdf", "s3://bucket-only", "s3:///no-bucket", "o/no-query"])
def test_parse_rejects_unknown_shapes(ref):
    with pytest.raises(InvalidFileReference) as ei:
        parse_file_reference(ref, "resumes")
    assert str(ei.value) == "Invalid file URL format"


def test_no_credentials_means_local_storage(tmp_path):
    settings = Settings(_env_file=None, S3_ACCESS_KEY=None, S3_SECRET_KEY=None, LOCAL_UPLOAD_DIR=str(tmp_path))
    assert ObjectStorage.from_settings(settings).is_local


def test_credentials_build_s3_client(monkeypatch):
    dummy = DummyS3Client()
    seen = {}

    def fake_boto3_client(service, **kwargs):
        seen["service"] = service
        seen.update(kwargs)
        return dummy

    monkeypatch.setattr("app.services.storage.boto3.client", fake_boto3_client)
    settings = Settings(
        _env_file=None, S3_ACCESS_KEY="ak", S3_SECRET_KEY="sk", S3_ENDPOINT="http://minio:9000", S3_BUCKET="unit"
    )
    store = ObjectStorage.from_settings(settings)
    assert not store.is_local
    assert seen["service"] == "s3"
    assert seen["endpoint_url"].startswith("http://minio:9000")
    assert seen["aws_access_key_id"] == "ak"


@pytest.mark.asyncio
async def test_s3_upload_and_download(tmp_path):
    dummy = DummyS3Client()
    store = ObjectStorage("unit-test-bucket", client=dummy)

    ref = await store.upload("resumes/u1/a.pdf", b"hello unit test", content_type="application/pdf")
    assert ref == "s3://unit-test-bucket/resumes/u1/a.pdf"
    assert dummy.objects[("unit-test-bucket", "resumes/u1/a.pdf")] == b"hello unit test"

    dest = tmp_path / "dl" / "a.pdf"
    await store.download_to_file(parse_file_reference(ref, "unit-test-bucket"), dest)
    assert dest.read_bytes() == b"hello unit test"


@pytest.mark.asyncio
async def test_s3_missing_object_raises_storage_error(tmp_path):
    store = ObjectStorage("unit-test-bucket", client=DummyS3Client())
    with pytest.raises(StorageError):
        await store.download_to_file(FileLocation("unit-test-bucket", "nope.pdf"), tmp_path / "x.pdf")


@pytest.mark.asyncio
async def test_local_round_trip_and_missing(storage, tmp_path):
    ref = await storage.upload("resumes/u1/a.pdf", b"%PDF local")
    dest = tmp_path / "out.pdf"
    await storage.download_to_file(parse_file_reference(ref, storage.bucket), dest)
    assert dest.read_bytes() == b"%PDF local"

    with pytest.raises(StorageError):
        await storage.download_to_file(FileLocation(storage.bucket, "missing.pdf"), tmp_path / "y.pdf")


def test_reference_for_uses_bucket():
    assert storage_mod.ObjectStorage("b").reference_for("k/x.pdf") == "s3://b/k/x.pdf"


@pytest.mark.parametrize(
    "ref",
    [
        "s3://other/resumes/u1/a.pdf",
        "s3://resumes//etc/passwd",
        "s3://resumes/resumes/u1/../../secret",
        "https://x/v0/b/p/o/%2Fetc%2Fpasswd?alt=media",
        "https://x/v0/b/p/o/resumes%2Fu1%2F..%2F..%2Fsecret?alt=media",
        "https://x/v0/b/p/o/resumes%2Fu1%2F.%2Fa.pdf?alt=media",
        "https://x/v0/b/p/o/resumes%5Cu1%5Ca.pdf?alt=media",
        "https://x/v0/b/p/o/resumes%2Fu1%2Fa%00.pdf?alt=media",
    ],
)
def test_parse_rejects_escaping_keys_and_foreign_buckets(ref):
    with pytest.raises(InvalidFileReference):
        parse_file_reference(ref, "resumes")


@pytest.mark.asyncio
async def test_local_path_stays_inside_upload_dir(tmp_path):
    secret = tmp_path / "secret.txt"
    secret.write_text("top secret")
    store = ObjectStorage("resumes", local_dir=tmp_path / "uploads")
    with pytest.raises(StorageError):
        await store.download_to_file(FileLocation("resumes", "../secret.txt"), tmp_path / "out" / "x.pdf")
    with pytest.raises(StorageError):
        await store.download_to_file(FileLocation("resumes", str(secret)), tmp_path / "out" / "y.pdf")
    assert not (tmp_path / "out" / "x.pdf").exists()
