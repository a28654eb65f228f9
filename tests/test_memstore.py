import pytest

from longtailstore.base import (
    BlobNotFoundError,
    BlobProperties,
    GenerationMismatchError,
)
from longtailstore.memstore import MemBlobStore

V1_FILES = {
    "empty-file": "",
    "abitoftext.txt": "this is a test file",
    "folder/abitoftextinasubfolder.txt": "this is a test file in a subfolder",
    "folder/anotherabitoftextinasubfolder.txt": "this is a second test file in a subfolder",
}

V2_FILES = {
    **V1_FILES,
    "stuff.txt": "we have some stuff",
    "folder2/anotherabitoftextinasubfolder2.txt": "and some more text that we need",
}

V3_FILES = {
    **V2_FILES,
    "morestuff.txt": "we have even more stuff",
}

LAYER_DATA = {
    "empty-file": "",
    "abitoftext.txt": "this is a test file",
    "abitoftext.layer2": "second layer test file",
    "folder/abitoftextmvinasubfolder.txt": "this is a test file in a subfolder",
    "folder/abitoftextmvinasubfolder.layer2": "layer 2 data in folder",
    "folder/anotherabitoftextinasubfolder.txt": "this is a second test file in a subfolder",
    "stuff.txt": "we have some stuff",
    "blobby/fluff.layer2": "more fluff is always essential",
    "glob.layer2": "glob is all you need",
    "morestuff.txt": "we have some more stuff",
    "folder2/anotherabitoftextinasubfolder2.txt": "and some more text that we need",
    "folder2/anotherabitoftextinasubfolder2.layer3": "stuff for layer 3 is good stuff for any layer",
    "folder3/wefewef.layer3": "layer3 on top of the world",
}


def _create_content(store, path, content):
    for name, data in content.items():
        client = store.new_client()
        client.new_object(path + name).write(data.encode())


def _validate_content(store, path, content):
    client = store.new_client()
    found = {}
    for item in client.get_objects(path):
        name = item.name[len(path):]
        assert name in content
        data = client.new_object(item.name).read()
        assert data == content[name].encode()
        assert item.size == len(data)
        found[name] = item.size
    assert set(found) == set(content)


def test_mem_blob_store():
    store = MemBlobStore("test", True)
    client = store.new_client()
    obj = client.new_object("test")
    obj.write(b"testit")
    assert obj.read() == b"testit"
    obj.delete()
    assert not obj.exists()


def test_version_data_round_trip():
    store = MemBlobStore("test", True)
    _create_content(store, "version/v1/", V1_FILES)
    _create_content(store, "version/v2/", V2_FILES)
    _create_content(store, "version/v3/", V3_FILES)
    _validate_content(store, "version/v1/", V1_FILES)
    _validate_content(store, "version/v2/", V2_FILES)
    _validate_content(store, "version/v3/", V3_FILES)


def test_layer_data_round_trip():
    store = MemBlobStore("test", True)
    _create_content(store, "source/", LAYER_DATA)
    _validate_content(store, "source/", LAYER_DATA)


def test_clients_share_blobs():
    store = MemBlobStore("test", True)
    store.new_client().new_object("a").write(b"1")
    assert store.new_client().new_object("a").read() == b"1"


def test_strings():
    store = MemBlobStore("test", True)
    client = store.new_client()
    assert str(store) == "memstore"
    assert str(client) == "memstore"
    assert str(client.new_object("test")) == "memstore/test"


def test_supports_locking_follows_store():
    assert MemBlobStore("p", True).new_client().supports_locking() is True
    assert MemBlobStore("p", False).new_client().supports_locking() is False


def test_get_objects_filters_by_prefix():
    store = MemBlobStore("test", True)
    client = store.new_client()
    client.new_object("store/a.lsi").write(b"abc")
    client.new_object("chunks/b.lsb").write(b"")
    assert client.get_objects("store") == [BlobProperties(size=3, name="store/a.lsi")]
    assert len(client.get_objects("")) == 2


def test_read_missing_raises():
    obj = MemBlobStore("test", True).new_client().new_object("missing")
    with pytest.raises(BlobNotFoundError):
        obj.read()


def test_lock_missing_raises():
    obj = MemBlobStore("test", True).new_client().new_object("missing")
    with pytest.raises(BlobNotFoundError):
        obj.lock_write_version()


def test_locked_write_succeeds_then_detects_change():
    client = MemBlobStore("test", True).new_client()
    obj = client.new_object("x")
    obj.write(b"one")
    assert obj.lock_write_version() is True
    obj.write(b"two")
    assert obj.read() == b"two"
    with pytest.raises(GenerationMismatchError):
        obj.write(b"three")
    assert obj.read() == b"two"


def test_locked_write_fails_when_other_writer_changed_blob():
    client = MemBlobStore("test", True).new_client()
    mine = client.new_object("x")
    other = client.new_object("x")
    mine.write(b"one")
    mine.lock_write_version()
    other.write(b"other")
    with pytest.raises(GenerationMismatchError):
        mine.write(b"mine")
    assert mine.read() == b"other"


def test_locked_delete_mismatch_and_missing():
    client = MemBlobStore("test", True).new_client()
    mine = client.new_object("x")
    mine.write(b"one")
    mine.lock_write_version()
    client.new_object("x").write(b"two")
    with pytest.raises(GenerationMismatchError):
        mine.delete()
    client.new_object("x").delete()
    with pytest.raises(BlobNotFoundError):
        mine.delete()


def test_unlocked_delete_of_missing_blob_is_quiet():
    obj = MemBlobStore("test", True).new_client().new_object("nothing")
    obj.delete()
    assert obj.exists() is False


def test_locked_delete_matching_generation():
    obj = MemBlobStore("test", True).new_client().new_object("x")
    obj.write(b"data")
    obj.lock_write_version()
    obj.delete()
    assert obj.exists() is False