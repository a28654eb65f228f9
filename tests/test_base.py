import pytest

from longtailstore.base import (
    BlobClient,
    BlobNotFoundError,
    BlobObject,
    BlobProperties,
    BlobStore,
    BlobStoreError,
    GenerationMismatchError,
    LockingNotSupportedError,
)


class _RecordingClient(BlobClient):
    def __init__(self):
        self.closed = False

    def new_object(self, path):
        raise BlobNotFoundError(path)

    def get_objects(self, path_prefix):
        return [BlobProperties(size=len(path_prefix), name=path_prefix)]

    def supports_locking(self):
        return False

    def close(self):
        self.closed = True

    def __str__(self):
        return "recording"


def test_blob_properties_fields_and_equality():
    props = BlobProperties(size=5, name="chunks/a.lsb")
    assert props.size == 5
    assert props.name == "chunks/a.lsb"
    assert props == BlobProperties(5, "chunks/a.lsb")


def test_blob_properties_is_immutable():
    props = BlobProperties(size=1, name="x")
    with pytest.raises(AttributeError):
        props.size = 2
    assert props.size == 1
    assert props == BlobProperties(1, "x")


@pytest.mark.parametrize("cls", [BlobObject, BlobClient, BlobStore])
def test_abstract_classes_cannot_be_instantiated(cls):
    with pytest.raises(TypeError):
        cls()


def test_client_context_manager_closes():
    client = _RecordingClient()
    entered = BlobClient.__enter__(client)
    assert entered is client
    assert client.closed is False
    BlobClient.__exit__(client, None, None, None)
    assert client.closed is True


def test_client_context_manager_closes_on_error():
    client = _RecordingClient()
    BlobClient.__enter__(client)
    error = BlobNotFoundError("missing")
    suppressed = BlobClient.__exit__(client, BlobNotFoundError, error, None)
    assert not suppressed
    assert client.closed is True


@pytest.mark.parametrize(
    "error_cls",
    [BlobNotFoundError, GenerationMismatchError, LockingNotSupportedError],
)
def test_errors_derive_from_blob_store_error(error_cls):
    error = error_cls("boom")
    assert issubclass(error_cls, BlobStoreError)
    assert "boom" in str(error)


def test_concrete_client_listing():
    client = _RecordingClient()
    assert client.get_objects("store") == [BlobProperties(5, "store")]
    assert str(client) == "recording"