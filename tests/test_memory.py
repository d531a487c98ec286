"""Unit tests for session stores."""
import json

import pytest
import pytest_asyncio

from console_buddy.conversation import from_strings
from console_buddy.memory import SessionData, SessionStore, create_session_store
from console_buddy.memory.file import FileSessionStore
from console_buddy.memory.in_memory import InMemorySessionStore
from console_buddy.memory.sqlite import SQLiteSessionStore
from console_buddy.project import ProjectInfo


class TestFactory:
    """Tests for create_session_store."""

    def test_backends(self, tmp_path):
        assert isinstance(create_session_store("file", path=tmp_path / "h"), FileSessionStore)
        assert isinstance(create_session_store("sqlite", path=tmp_path / "h.db"), SQLiteSessionStore)
        assert isinstance(create_session_store("memory"), InMemorySessionStore)

    def test_default_is_file_store(self):
        store = create_session_store()

        assert store.backend_type == "file"
        assert store.path.name == "CB.hist"

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unsupported session store backend"):
            create_session_store("redis")

    def test_store_is_abstract(self):
        with pytest.raises(TypeError):
            SessionStore()  # type: ignore


@pytest_asyncio.fixture(params=["file", "sqlite", "memory"])
async def store(request, tmp_path):
    """Each backend, connected, in a temporary directory."""
    if request.param == "file":
        backend = create_session_store("file", path=tmp_path / "CB.hist")
    elif request.param == "sqlite":
        backend = create_session_store("sqlite", path=tmp_path / "history.db")
    else:
        backend = create_session_store("memory")
    await backend.connect()
    yield backend
    await backend.disconnect()


class TestStoreContract:
    """Behavior every backend shares."""

    @pytest.mark.asyncio
    async def test_empty_store_loads_none(self, store):
        assert await store.load() is None

    @pytest.mark.asyncio
    async def test_save_then_load(self, store):
        info = ProjectInfo(root_path="/work", name="demo", language="Go", dependencies=["gin"])
        history = from_strings(["hi", "hello", "list files", "a.txt"])

        saved = await store.save(history, info, humor_level=30)
        loaded = await store.load()

        assert loaded.conversations == ["hi", "hello", "list files", "a.txt"]
        assert loaded.project_info == info
        assert loaded.humor_level == 30
        assert loaded.total_sessions == 1
        assert loaded.last_updated == saved.last_updated

    @pytest.mark.asyncio
    async def test_save_merges_with_stored_data(self, store):
        info = ProjectInfo(root_path="/work", language="Python")
        await store.save(from_strings(["q1", "a1"]), info, humor_level=50)

        await store.save(from_strings(["q1", "a1", "q2", "a2"]))
        loaded = await store.load()

        assert loaded.conversations == ["q1", "a1", "q2", "a2"]
        assert loaded.project_info == info
        assert loaded.humor_level == 50
        assert loaded.total_sessions == 2

    @pytest.mark.asyncio
    async def test_history_property_restores_roles(self, store):
        await store.save(from_strings(["q", "a"]))

        loaded = await store.load()

        assert [turn.role.value for turn in loaded.history] == ["user", "model"]

    @pytest.mark.asyncio
    async def test_clear(self, store):
        await store.save(from_strings(["q", "a"]))

        await store.clear()

        assert await store.load() is None


class TestFileStore:
    """Tests specific to the JSON file format."""

    @pytest.mark.asyncio
    async def test_binary_file_loads_none(self, tmp_path):
        """Test that a non-UTF-8 history file (e.g. an older binary format) is ignored."""
        path = tmp_path / "CB.hist"
        path.write_bytes(b"\xff\xfe\x00garbage\x80")
        store = FileSessionStore(path)

        assert await store.load() is None

        saved = await store.save(from_strings(["q", "a"]))
        assert saved.total_sessions == 1
        assert (await store.load()).conversations == ["q", "a"]

    @pytest.mark.asyncio
    async def test_legacy_list_format(self, tmp_path):
        path = tmp_path / "CB.hist"
        path.write_text(json.dumps(["hi", "hello"]))

        data = await FileSessionStore(path).load()

        assert data.conversations == ["hi", "hello"]
        assert data.project_info is None
        assert data.total_sessions == 0

    @pytest.mark.asyncio
    async def test_corrupt_file_loads_none(self, tmp_path):
        path = tmp_path / "CB.hist"
        path.write_text("{truncated")

        assert await FileSessionStore(path).load() is None

    @pytest.mark.asyncio
    async def test_written_file_is_json_document(self, tmp_path):
        path = tmp_path / "nested" / "CB.hist"
        store = FileSessionStore(path)

        await store.save(from_strings(["q", "a"]), humor_level=10)

        document = json.loads(path.read_text())
        assert document["conversations"] == ["q", "a"]
        assert document["humor_level"] == 10
        assert not path.with_name("CB.hist.tmp").exists()

    @pytest.mark.asyncio
    async def test_clear_missing_file_is_fine(self, tmp_path):
        await FileSessionStore(tmp_path / "none").clear()


class TestSQLiteStore:
    """Tests specific to the SQLite backend."""

    @pytest.mark.asyncio
    async def test_requires_connect(self, tmp_path):
        store = SQLiteSessionStore(tmp_path / "h.db")

        with pytest.raises(RuntimeError, match="not connected"):
            await store.load()

    @pytest.mark.asyncio
    async def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "h.db"
        first = SQLiteSessionStore(path)
        await first.connect()
        await first.save(from_strings(["q", "a"]))
        await first.disconnect()

        second = SQLiteSessionStore(path)
        await second.connect()
        try:
            data = await second.load()
        finally:
            await second.disconnect()

        assert data.conversations == ["q", "a"]


class TestSessionData:
    """Tests for the merge rule."""

    def test_merged_keeps_project_and_humor(self):
        info = ProjectInfo(root_path=".", language="Rust")
        data = SessionData(project_info=info, humor_level=70, total_sessions=3)

        merged = data.merged(from_strings(["x", "y"]), None, 0)

        assert merged.project_info == info
        assert merged.humor_level == 70
        assert merged.total_sessions == 4
        assert merged.conversations == ["x", "y"]

    def test_merged_overrides_when_given(self):
        data = SessionData(humor_level=70)

        merged = data.merged([], ProjectInfo(root_path=".", language="Go"), 20)

        assert merged.project_info.language == "Go"
        assert merged.humor_level == 20
