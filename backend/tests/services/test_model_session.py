"""Model Session — tests for the working-copy lifecycle and tagged failures.

Tests cover:
    - open → flush → export → cleanup happy path and state transitions
    - Failures at open / flush / export / cleanup raise SessionError with stage
    - File operations outside OPEN are rejected
    - opened() deletes the working copy on success and on failure
    - Cleanup failure is recorded, never raised over the original error
"""

import pytest

from appwizard.core.domain_types import SessionState
from appwizard.core.errors import FileIOError, SessionError
from appwizard.services.model_session import ModelSession

from tests.services.fakes import THEME_FILE, THEME_SCSS, FakeModel, FakePlatform


# ─── Happy path ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_full_lifecycle(platform, fake_model, tmp_path):
    session = ModelSession(platform, "app-1", branch="main")
    assert session.state is SessionState.CLOSED

    await session.open()
    assert session.state is SessionState.OPEN
    assert session.working_copy_id == "wc-1"
    assert fake_model.branch == "main"

    await session.flush()
    assert session.state is SessionState.FLUSHING

    path = await session.export(tmp_path / "out.mpk")
    assert session.state is SessionState.EXPORTING
    assert path.read_bytes() == fake_model.export_bytes
    assert session.exported_path == path

    await session.delete_working_copy()
    assert session.state is SessionState.CLOSED
    assert session.working_copy_deleted
    assert fake_model.operations() == [
        "get_app", "create_working_copy", "open_model",
        "flush_changes", "export_mpk", "delete_working_copy",
    ]


@pytest.mark.asyncio
async def test_file_operations_pass_through(open_session, fake_model):
    assert await open_session.get_file(THEME_FILE) == THEME_SCSS
    await open_session.delete_file(THEME_FILE)
    await open_session.put_file(b"$a: 1;\n", THEME_FILE)
    assert fake_model.files[THEME_FILE] == b"$a: 1;\n"


# ─── Tagged failures ─────────────────────────────────────────────

@pytest.mark.asyncio
async def test_open_failure_is_session_error(fake_model):
    fake_model.fail_on["create_working_copy"] = RuntimeError("quota")
    session = ModelSession(FakePlatform(fake_model), "app-1")
    with pytest.raises(SessionError) as exc:
        await session.open()
    assert exc.value.stage == "open"
    assert "app-1" in exc.value.message
    assert session.state is SessionState.FAILED
    assert isinstance(exc.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_get_missing_file_is_fetch_error(open_session):
    with pytest.raises(FileIOError) as exc:
        await open_session.get_file("theme/web/missing.scss")
    assert exc.value.stage == "fetch"
    assert exc.value.location == "theme/web/missing.scss"


@pytest.mark.asyncio
async def test_put_over_existing_file_is_put_error(open_session):
    with pytest.raises(FileIOError) as exc:
        await open_session.put_file(b"x", THEME_FILE)
    assert exc.value.stage == "put"


@pytest.mark.asyncio
async def test_delete_failure_is_delete_error(open_session, fake_model):
    fake_model.fail_on["delete_file"] = PermissionError("locked")
    with pytest.raises(FileIOError) as exc:
        await open_session.delete_file(THEME_FILE)
    assert exc.value.stage == "delete"


@pytest.mark.asyncio
async def test_listing_collections_failure_is_lookup_stage(open_session, fake_model):
    fake_model.fail_on["all_image_collections"] = RuntimeError("boom")
    with pytest.raises(SessionError) as exc:
        await open_session.all_image_collections()
    assert exc.value.stage == "lookup"


@pytest.mark.asyncio
async def test_flush_failure(open_session, fake_model):
    fake_model.fail_on["flush_changes"] = RuntimeError("conflict")
    with pytest.raises(SessionError) as exc:
        await open_session.flush()
    assert exc.value.stage == "flush"
    assert open_session.state is SessionState.FAILED


@pytest.mark.asyncio
async def test_export_failure(open_session, fake_model, tmp_path):
    fake_model.fail_on["export_mpk"] = RuntimeError("disk full")
    await open_session.flush()
    with pytest.raises(SessionError) as exc:
        await open_session.export(tmp_path / "out.mpk")
    assert exc.value.stage == "export"
    assert open_session.exported_path is None


# ─── State guards ────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_file_operations_require_open(platform):
    session = ModelSession(platform, "app-1")
    with pytest.raises(SessionError) as exc:
        await session.get_file(THEME_FILE)
    assert exc.value.stage == "state"


@pytest.mark.asyncio
async def test_export_requires_flush(open_session, tmp_path):
    with pytest.raises(SessionError) as exc:
        await open_session.export(tmp_path / "out.mpk")
    assert exc.value.stage == "state"


@pytest.mark.asyncio
async def test_no_file_operations_after_flush(open_session):
    await open_session.flush()
    with pytest.raises(SessionError):
        await open_session.put_file(b"x", "other.scss")


# ─── Cleanup ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_opened_deletes_working_copy_on_exception(platform, fake_model):
    with pytest.raises(ValueError):
        async with ModelSession.opened(platform, "app-1") as session:
            raise ValueError("boom")
    assert fake_model.working_copy_deleted
    assert session.state is SessionState.CLOSED


@pytest.mark.asyncio
async def test_open_failure_after_working_copy_still_cleans_up(fake_model):
    fake_model.fail_on["open_model"] = RuntimeError("model unavailable")
    with pytest.raises(SessionError):
        async with ModelSession.opened(FakePlatform(fake_model), "app-1"):
            pass
    assert fake_model.working_copy_deleted
    assert fake_model.operations()[-1] == "delete_working_copy"


@pytest.mark.asyncio
async def test_open_failure_before_working_copy_skips_cleanup():
    model = FakeModel()
    model.fail_on["get_app"] = RuntimeError("no such app")
    with pytest.raises(SessionError):
        async with ModelSession.opened(FakePlatform(model), "app-x"):
            pass
    assert "delete_working_copy" not in model.operations()


@pytest.mark.asyncio
async def test_cleanup_failure_is_recorded_not_raised(platform, fake_model):
    fake_model.fail_on["delete_working_copy"] = RuntimeError("gone")
    async with ModelSession.opened(platform, "app-1") as session:
        pass
    assert session.cleanup_error is not None
    assert session.cleanup_error.stage == "cleanup"
    assert not session.working_copy_deleted
    assert session.state is SessionState.CLOSED


@pytest.mark.asyncio
async def test_cleanup_failure_does_not_mask_original_error(platform, fake_model):
    fake_model.fail_on["delete_working_copy"] = RuntimeError("gone")
    with pytest.raises(ValueError):
        async with ModelSession.opened(platform, "app-1"):
            raise ValueError("original")


@pytest.mark.asyncio
async def test_delete_working_copy_is_idempotent(open_session, fake_model):
    await open_session.delete_working_copy()
    await open_session.delete_working_copy()
    assert fake_model.operations().count("delete_working_copy") == 1
