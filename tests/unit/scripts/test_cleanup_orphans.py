import importlib.util
import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[3]
MODULE_PATH = PROJECT_ROOT / "scripts" / "cleanup_orphans.py"
MODULE_SPEC = importlib.util.spec_from_file_location("cleanup_orphans_module", MODULE_PATH)
cleanup_orphans = importlib.util.module_from_spec(MODULE_SPEC)
assert MODULE_SPEC and MODULE_SPEC.loader
sys.modules["cleanup_orphans_module"] = cleanup_orphans
MODULE_SPEC.loader.exec_module(cleanup_orphans)


class DummyConfig:
    def __init__(self):
        self.session_factory = object()
        self.media_store = object()


class DummyRepo:
    def __init__(self, session_factory):
        assert session_factory is not None

    def list_pending(self, limit=None, *, retryable_only=False):
        assert retryable_only
        return ["orphan-1", "orphan-2", "orphan-3"][:limit]


class DummySweep:
    pending = 3
    removed = 2
    failed = 1


def test_perform_cleanup_dry_run(monkeypatch):
    monkeypatch.setattr(cleanup_orphans, "load_config", lambda: DummyConfig())
    monkeypatch.setattr(cleanup_orphans, "OrphanRepository", DummyRepo)

    summary = cleanup_orphans.perform_cleanup(dry_run=True, limit=2)

    assert summary.dry_run is True
    assert summary.pending == 2
    assert summary.removed == 0


def test_perform_cleanup_retries_deletions(monkeypatch):
    called = {}

    async def fake_retry(orphan_repo, store, *, limit=None):
        called["repo"] = orphan_repo
        called["store"] = store
        called["limit"] = limit
        return DummySweep()

    monkeypatch.setattr(cleanup_orphans, "load_config", lambda: DummyConfig())
    monkeypatch.setattr(cleanup_orphans, "OrphanRepository", DummyRepo)
    monkeypatch.setattr(cleanup_orphans, "ImageKitStore", lambda config: "store")
    monkeypatch.setattr(cleanup_orphans, "retry_orphan_deletions", fake_retry)

    summary = cleanup_orphans.perform_cleanup(dry_run=False)

    assert summary.dry_run is False
    assert (summary.pending, summary.removed, summary.failed) == (3, 2, 1)
    assert called["store"] == "store"
    assert called["limit"] is None


def test_main_reports_failures(monkeypatch, capsys):
    monkeypatch.setattr(cleanup_orphans, "configure_logging", lambda **_: None)
    monkeypatch.setattr(
        cleanup_orphans,
        "perform_cleanup",
        lambda dry_run, limit=None: cleanup_orphans.OrphanCleanupSummary(3, 2, 1, dry_run),
    )

    exit_code = cleanup_orphans.main([])

    assert exit_code == 1
    assert "removed=2" in capsys.readouterr().out
