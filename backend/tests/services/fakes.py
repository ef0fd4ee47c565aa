"""Fake Platform & Blob Store — in-memory stand-ins for the collaborator protocols.

Invariants:
    - FakeModel records every call in order in `calls` as (operation, *args) tuples
    - fail_on[operation] = exception makes that operation raise it (checked before any effect)
    - put_file over an existing file raises FileExistsError (delete-before-put is enforced)
    - Image collections are snapshotted on load(), like the real platform's materialised list

Design Decisions:
    - Flat fake classes (no inheritance): simple, explicit, easy to debug
    - One FakeModel shared by platform → app → working copy → model, so tests
      inspect all effects in one place
"""

from dataclasses import dataclass, field
from pathlib import Path

from appwizard.core.domain_types import ImageFormat
from appwizard.core.errors import StorageError

BUCKET = "appwizard-test"
THEME_FILE = "theme/web/custom-variables.scss"
COLLECTION = "Atlas_Core.Images"

THEME_SCSS = (
    b"// Brand\n"
    b"$brand-color: #fff;\n"
    b"$brand-color2: #eee;\n"
    b"$font-size: 14px;\n"
)


@dataclass
class StoredImage:
    name: str
    data: bytes
    image_format: ImageFormat = ImageFormat.PNG


@dataclass
class FakeModel:
    files: dict[str, bytes] = field(default_factory=dict)
    collections: dict[str, list[StoredImage]] = field(default_factory=dict)
    calls: list[tuple] = field(default_factory=list)
    fail_on: dict[str, Exception] = field(default_factory=dict)
    export_bytes: bytes = b"PK-mpk-export"
    flushed: bool = False
    working_copy_deleted: bool = False
    branch: str | None = None

    def record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation in self.fail_on:
            raise self.fail_on[operation]

    def operations(self) -> list[str]:
        return [c[0] for c in self.calls]

    def images_named(self, qualified_name: str, name: str) -> list[StoredImage]:
        return [i for i in self.collections.get(qualified_name, []) if i.name == name]


# -- Image collection handles -------------------------------------------------


class FakeImage:
    def __init__(self, model: FakeModel, qualified_name: str, name: str):
        self._model = model
        self._qualified_name = qualified_name
        self.name = name

    async def delete(self) -> None:
        self._model.record("delete_image", self._qualified_name, self.name)
        images = self._model.collections[self._qualified_name]
        for i, img in enumerate(images):
            if img.name == self.name:
                del images[i]
                return


class FakeImageRef:
    def __init__(self, model: FakeModel, qualified_name: str, name: str):
        self._model = model
        self._qualified_name = qualified_name
        self.name = name

    async def load(self) -> FakeImage:
        self._model.record("load_image", self._qualified_name, self.name)
        return FakeImage(self._model, self._qualified_name, self.name)


class FakeImageCollection:
    def __init__(self, model: FakeModel, qualified_name: str):
        self._model = model
        self.qualified_name = qualified_name
        self.images = [
            FakeImageRef(model, qualified_name, img.name)
            for img in model.collections[qualified_name]
        ]

    async def create_image(
        self, name: str, data: bytes, image_format: ImageFormat,
    ) -> None:
        self._model.record("create_image", self.qualified_name, name)
        self._model.collections[self.qualified_name].append(
            StoredImage(name, data, image_format),
        )


class FakeImageCollectionRef:
    def __init__(self, model: FakeModel, qualified_name: str):
        self._model = model
        self.qualified_name = qualified_name

    async def load(self) -> FakeImageCollection:
        self._model.record("load_collection", self.qualified_name)
        return FakeImageCollection(self._model, self.qualified_name)


# -- Model / working copy / app / platform ------------------------------------


class FakeModelHandle:
    def __init__(self, model: FakeModel):
        self._model = model

    async def get_file(self, path: str) -> bytes:
        self._model.record("get_file", path)
        if path not in self._model.files:
            raise FileNotFoundError(path)
        return self._model.files[path]

    async def put_file(self, data: bytes, path: str) -> None:
        self._model.record("put_file", path)
        if path in self._model.files:
            raise FileExistsError(path)
        self._model.files[path] = data

    async def delete_file(self, path: str) -> None:
        self._model.record("delete_file", path)
        if path not in self._model.files:
            raise FileNotFoundError(path)
        del self._model.files[path]

    async def all_image_collections(self) -> list[FakeImageCollectionRef]:
        self._model.record("all_image_collections")
        return [FakeImageCollectionRef(self._model, qn) for qn in self._model.collections]

    async def flush_changes(self) -> None:
        self._model.record("flush_changes")
        self._model.flushed = True

    async def export_mpk(self, dest_path: Path) -> None:
        self._model.record("export_mpk", str(dest_path))
        Path(dest_path).write_bytes(self._model.export_bytes)

    async def delete_working_copy(self) -> None:
        self._model.record("delete_working_copy")
        self._model.working_copy_deleted = True


class FakeWorkingCopy:
    working_copy_id = "wc-1"

    def __init__(self, model: FakeModel):
        self._model = model

    async def open_model(self) -> FakeModelHandle:
        self._model.record("open_model")
        return FakeModelHandle(self._model)

    async def delete(self) -> None:
        self._model.record("delete_working_copy")
        self._model.working_copy_deleted = True


class FakeApp:
    def __init__(self, model: FakeModel, app_id: str):
        self._model = model
        self.app_id = app_id

    async def create_temporary_working_copy(self, branch: str) -> FakeWorkingCopy:
        self._model.record("create_working_copy", branch)
        self._model.branch = branch
        return FakeWorkingCopy(self._model)


class FakePlatform:
    def __init__(self, model: FakeModel | None = None):
        self.model = model or FakeModel()

    async def get_app(self, app_id: str) -> FakeApp:
        self.model.record("get_app", app_id)
        return FakeApp(self.model, app_id)


# -- Blob store ---------------------------------------------------------------


class FakeBlobStore:
    def __init__(self, objects: dict[tuple[str, str], bytes] | None = None):
        self.objects: dict[tuple[str, str], bytes] = dict(objects or {})
        self.calls: list[tuple] = []
        self.fail_on: dict[str, Exception] = {}

    async def get_object(self, container: str, key: str) -> bytes:
        self.calls.append(("get_object", container, key))
        if "get_object" in self.fail_on:
            raise self.fail_on["get_object"]
        if (container, key) not in self.objects:
            raise StorageError(
                f"Cannot read object {key} from {container}: not_found",
                "get", container, key, "not_found",
            )
        return self.objects[(container, key)]

    async def put_object(self, container: str, key: str, data: bytes) -> None:
        self.calls.append(("put_object", container, key))
        if "put_object" in self.fail_on:
            raise self.fail_on["put_object"]
        self.objects[(container, key)] = data
