"""Constant resolver + binding table tests."""

import asyncio
from pathlib import Path

import pytest

from secretmirror.adapters.memory import MemorySecretClient
from secretmirror.errors import BindingCollision, InvalidContext, RemoteUnavailable
from secretmirror.schemas.secret import LoadContext, SecretRecord, SecretStatus
from secretmirror.services.constant_resolver import BindingTable, ConstantResolver

ENV = "dev"
DEFERRED = LoadContext.DEFERRED_BOOTSTRAP


class PartlyDownClient(MemorySecretClient):
    def __init__(self, secrets, down=()) -> None:
        super().__init__(secrets)
        self.down = set(down)

    async def get(self, name):
        if name in self.down:
            raise RemoteUnavailable(name, "timeout")
        return await super().get(name)


class SlowClient(MemorySecretClient):
    def __init__(self, secrets, slow=()) -> None:
        super().__init__(secrets)
        self.slow = set(slow)

    async def get(self, name):
        if name in self.slow:
            await asyncio.sleep(1)
        return await super().get(name)


def _resolver(store, remote, bindings, **kwargs) -> ConstantResolver:
    return ConstantResolver(store, remote, ENV, bindings, **kwargs)


async def _add(store, name, **kwargs):
    kwargs.setdefault("constant_enabled", True)
    kwargs.setdefault("load_context", DEFERRED)
    record = SecretRecord(name=name, environment=ENV, **kwargs)
    await store.save(record)
    return record


# ── BindingTable ─────────────────────────────────────────────────────


def test_binding_table_insert_or_verify_equal():
    table = BindingTable()
    assert table.define("API_KEY", "a") is True
    assert table.define("API_KEY", "a") is False
    with pytest.raises(BindingCollision) as excinfo:
        table.define("API_KEY", "b")
    assert excinfo.value.identifier == "API_KEY"
    assert dict(table) == {"API_KEY": "a"}


def test_binding_table_exports_new_bindings():
    target: dict[str, str] = {}
    table = BindingTable(export_to=target)
    table.define("TOKEN", "t")
    assert target == {"TOKEN": "t"}


# ── define_constants ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_only_active_enabled_records_in_context_are_bound(store, bindings):
    await _add(store, "BOUND")
    await _add(store, "DISABLED", constant_enabled=False)
    await _add(store, "INACTIVE", status=SecretStatus.INACTIVE)
    await _add(store, "EARLY", load_context=LoadContext.EARLY_BOOTSTRAP)
    await store.save(SecretRecord(name="OTHER_ENV", environment="live", constant_enabled=True,
                                  load_context=DEFERRED))
    remote = MemorySecretClient(
        {n: n.lower() for n in ("BOUND", "DISABLED", "INACTIVE", "EARLY", "OTHER_ENV")}
    )

    result = await _resolver(store, remote, bindings).define_constants("deferred_bootstrap")

    assert dict(bindings) == {"BOUND": "bound"}
    assert result.defined == ["BOUND"]


@pytest.mark.asyncio
async def test_constant_name_used_as_binding_name(store, bindings):
    await _add(store, "DB_PASS", constant_name="WP_DB_PASSWORD")
    remote = MemorySecretClient({"DB_PASS": "pw"})

    await _resolver(store, remote, bindings).define_constants(DEFERRED)

    assert dict(bindings) == {"WP_DB_PASSWORD": "pw"}


@pytest.mark.asyncio
async def test_empty_constant_name_falls_back_to_name(store, bindings):
    await _add(store, "DB_PASS", constant_name="")
    remote = MemorySecretClient({"DB_PASS": "pw"})

    await _resolver(store, remote, bindings).define_constants(DEFERRED)

    assert bindings["DB_PASS"] == "pw"


@pytest.mark.asyncio
async def test_collision_is_fatal_and_keeps_earlier_bindings(store, bindings):
    # Records are iterated in name order: A_FIRST, B_SHARED, C_SHARED, D_LAST.
    await _add(store, "A_FIRST")
    await _add(store, "B_SHARED", constant_name="SHARED")
    await _add(store, "C_SHARED", constant_name="SHARED")
    await _add(store, "D_LAST")
    remote = MemorySecretClient({"A_FIRST": "1", "B_SHARED": "a", "C_SHARED": "b", "D_LAST": "4"})

    with pytest.raises(BindingCollision) as excinfo:
        await _resolver(store, remote, bindings).define_constants(DEFERRED)

    assert excinfo.value.identifier == "SHARED"
    assert dict(bindings) == {"A_FIRST": "1", "SHARED": "a"}


@pytest.mark.asyncio
async def test_redefining_with_same_value_is_a_no_op(store, bindings):
    await _add(store, "API_KEY")
    resolver = _resolver(store, MemorySecretClient({"API_KEY": "k"}), bindings)

    first = await resolver.define_constants(DEFERRED)
    second = await resolver.define_constants(DEFERRED)

    assert first.defined == ["API_KEY"]
    assert second.defined == []
    assert dict(bindings) == {"API_KEY": "k"}


@pytest.mark.asyncio
async def test_missing_or_unreachable_values_are_skipped(store, bindings):
    await _add(store, "ABSENT")
    await _add(store, "DOWN")
    await _add(store, "OK")
    remote = PartlyDownClient({"DOWN": "d", "OK": "ok"}, down={"DOWN"})

    result = await _resolver(store, remote, bindings).define_constants(DEFERRED)

    assert dict(bindings) == {"OK": "ok"}
    assert result.skipped == ["ABSENT", "DOWN"]


@pytest.mark.asyncio
async def test_slow_fetch_is_skipped_after_timeout(store, bindings):
    await _add(store, "FAST")
    await _add(store, "SLOW")
    remote = SlowClient({"FAST": "f", "SLOW": "s"}, slow={"SLOW"})

    result = await _resolver(store, remote, bindings, timeout=0.01).define_constants(DEFERRED)

    assert dict(bindings) == {"FAST": "f"}
    assert result.skipped == ["SLOW"]


@pytest.mark.asyncio
async def test_invalid_context_defines_nothing(store, bindings):
    await _add(store, "API_KEY", load_context=LoadContext.MANUAL)
    resolver = _resolver(store, MemorySecretClient({"API_KEY": "k"}), bindings)

    with pytest.raises(InvalidContext):
        await resolver.define_constants("plugin")

    assert len(bindings) == 0


@pytest.mark.asyncio
async def test_creator_only_mode_defines_nothing(store, bindings):
    await _add(store, "API_KEY")
    resolver = _resolver(store, MemorySecretClient({"API_KEY": "k"}), bindings, creator_only=True)

    result = await resolver.define_constants(DEFERRED)

    assert result.defined == []
    assert len(bindings) == 0


# ── Loader artifact ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_generate_loader_artifact(store, bindings, tmp_path: Path):
    loader = tmp_path / "bootstrap" / "early_secrets.py"
    resolver = _resolver(store, MemorySecretClient(), bindings, loader_path=loader)

    assert resolver.generate_loader_artifact() is True

    content = loader.read_text()
    assert "from secretmirror.bootstrap import define_constants" in content
    assert 'define_constants("early_bootstrap", environment="dev")' in content
    compile(content, str(loader), "exec")


@pytest.mark.asyncio
async def test_generate_loader_artifact_reports_unwritable_path(store, bindings, tmp_path: Path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    resolver = _resolver(store, MemorySecretClient(), bindings, loader_path=blocker / "loader.py")

    assert resolver.generate_loader_artifact() is False


@pytest.mark.asyncio
async def test_generate_loader_artifact_without_path(store, bindings):
    assert _resolver(store, MemorySecretClient(), bindings).generate_loader_artifact() is False
