# longtailstore

A small library of blob stores for block storage. Every backend offers the
same three-level interface, defined in `longtailstore.base`:

- a **store** (`BlobStore`) describes where blobs live and hands out clients
  with `new_client()`,
- a **client** (`BlobClient`) creates object handles with `new_object(path)`
  and lists objects by name prefix with `get_objects(path_prefix)`; clients
  can be used as context managers, which call `close()` on exit,
- an **object** (`BlobObject`) can be checked with `exists()`, and supports
  `read()`, `write(data)`, `delete()` and, where the backend allows it,
  `lock_write_version()`, which records the blob's write generation so that a
  later conversion by another writer is detected.

`str()` of a store, client or object gives a URI-like description.

Backends:

| Module                   | Store          | URI form                                   |
|--------------------------|----------------|--------------------------------------------|
| `longtailstore.memstore` | `MemBlobStore` | (in memory only)                           |
| `longtailstore.fsstore`  | `FsBlobStore`  | `fsblob://path`, `file://path`, plain path |
| `longtailstore.s3store`  | `S3BlobStore`  | `s3://bucket/prefix`                       |

It also provides `RegexPathFilter` in `longtailstore.path_filter`, an
include/exclude filter over asset paths.

## Installation

```
pip install longtailstore
```

## Errors

The stores raise subclasses of `longtailstore.base.BlobStoreError`:

- `BlobNotFoundError` – the blob does not exist (reading, or deleting a
  missing file or a locked in-memory blob that has gone),
- `GenerationMismatchError` – the blob was changed after
  `lock_write_version()` was called,
- `LockingNotSupportedError` – `lock_write_version()` on a filesystem store
  created without locking,
- `longtailstore.s3store.S3Error` – a request to S3 failed.

Other failures of the file system surface as the usual `OSError`s.

## In-memory store

```python
from longtailstore.memstore import MemBlobStore

store = MemBlobStore("test", True)
client = store.new_client()

obj = client.new_object("test")
obj.write(b"testit")
assert obj.read() == b"testit"

obj.delete()
assert not obj.exists()
```

All clients created from one `MemBlobStore` share its blobs. Each blob keeps a
generation that starts at 0 and grows by one on every overwrite. Locking the
write version of a blob that does not exist raises `BlobNotFoundError`.

Listing returns `BlobProperties` entries with a `name` and a `size`:

```python
client.new_object("version/v1/abitoftext.txt").write(b"this is a test file")
for props in client.get_objects("version/v1/"):
    print(props.name, props.size)
```

`str(store)` is `"memstore"`; `str(obj)` is `"memstore/<path>"`.

## Filesystem store

```python
from longtailstore.fsstore import FsBlobStore

store = FsBlobStore("/var/lib/blocks", True)   # True enables locking
client = store.new_client()

obj = client.new_object("chunks/0001/block.lsb")
obj.write(b"payload")            # creates missing parent directories
obj.lock_write_version()
obj.write(b"new payload")        # checks and bumps the write generation
print(str(obj))                  # fsblob:///var/lib/blocks/chunks/0001/block.lsb
```

With locking enabled, reads, writes, deletes and `lock_write_version()` take
an exclusive lock on a `<blob>.lck` file next to the blob (removed again
afterwards), and after `lock_write_version()` the write generation is kept in
a sibling `<blob>.gen` file. The lock file is opened before anything else, so
the blob's directory must already exist when `lock_write_version()` is
called. Without locking, `lock_write_version()` raises
`LockingNotSupportedError`.

`get_objects(path_prefix)` lists only the files directly inside the store
directory (no recursion), by name relative to it; if the store path is a file,
that single file is returned under its full path. Backslashes in paths are
turned into forward slashes (`normalize_file_system_path`).

## S3 store

```python
from longtailstore.s3store import S3BlobStore, S3Options

store = S3BlobStore("bucket", "prefix", None)
client = store.new_client()
print(str(client))                          # s3://bucket/prefix
print(str(client.new_object("object")))     # s3://bucket/prefix/object
```

Object keys are rooted under the store prefix; a key that already starts with
the prefix is used as it is. Requests go to the S3 REST API over HTTPS:

- credentials come from `AWS_ACCESS_KEY_ID`, `AWS_SECRET_ACCESS_KEY` and, if
  set, `AWS_SESSION_TOKEN`; without them requests are sent unsigned,
- the region comes from `AWS_REGION` or `AWS_DEFAULT_REGION`, defaulting to
  `us-east-1`,
- `S3Options(endpoint_resolver_uri=...)` sends requests to a custom endpoint
  (path-style, bucket after the endpoint), and
  `S3Options(s3_transfer_accel=True)` uses the transfer-acceleration host.

`exists()` returns `False` only for a 404 answer. Reading a missing object
raises `BlobNotFoundError`; other failures raise `S3Error`. S3 objects do not
support write-version locking: `lock_write_version()` returns `False` and
`supports_locking()` is `False`.

## Opening a store from a URI

```python
from longtailstore.uri import create_blob_store_for_uri, read_blob, read_from_uri

store = create_blob_store_for_uri("fsblob:///var/lib/blocks", None)
data = read_blob(store.new_client(), "store/index.lsi")

# Or in one step: the last path component is the blob name.
data = read_from_uri("fsblob:///var/lib/blocks/store/index.lsi", None)
```

`fsblob://`, `file://` and plain paths give an `FsBlobStore` with locking
enabled; `s3://bucket/prefix` gives an `S3BlobStore` (a `ValueError` is raised
when no bucket is given). `split_uri("a/b/c")` returns `("a/b", "c")`; a URI
without a slash yields an empty parent.

## Path filters

`RegexPathFilter` takes optional include and exclude expressions. Several
expressions can be joined in one string with `**` as the separator
(`split_regexes` does the splitting and returns `(source, compiled)` pairs).
An expression matches if it is found anywhere in the asset path. Exclusions
are checked first; with no include expression every non-excluded path is
accepted. Directories are also tested with a trailing `/`. An invalid
expression raises `re.error`.

```python
from longtailstore.path_filter import RegexPathFilter, split_regexes

path_filter = RegexPathFilter(r".*\.txt$", r".*\.rs$")
assert path_filter.include("root", "file.txt", "", False, 0, 0)
assert not path_filter.include("root", "file.rs", "", False, 0, 0)

split_regexes(r".*\.txt$**.*\.md$")   # two expressions
```

## What it does not do

This package is the storage layer only. It has no command-line tool, does
not build, index, upload or download versions or blocks itself, and does not
retry failed operations. S3 listings return a single response page (at most
the first 1,000 keys), and S3 objects cannot be locked to a write generation.

## Running the tests

```
pip install -e ".[test]"
pytest
```