"""
Tests for the installer — copying modules into the runtime directory.
"""

from pathlib import Path

from skillrouter.core.models.module import CapabilityModule
from skillrouter.core.persistence.registry import RECORD_FILE, CapabilityRegistry
from skillrouter.core.services.installer import TRIGGERS_DOC, install


class TestInstall:
    def test_copies_modules_and_triggers(
        self, tmp_path: Path, registry: CapabilityRegistry, react_module: CapabilityModule
    ):
        registry.insert(react_module)
        (registry.root / TRIGGERS_DOC).write_text("# Triggers\n")
        (registry.root / "scratch").mkdir()

        dest = tmp_path / "runtime" / "skills"
        assert install(registry.root, dest) == 0

        copied = dest / "impl-frontend-react-vite" / RECORD_FILE
        assert copied.read_text() == registry.record_path(react_module.key).read_text()
        assert (dest / TRIGGERS_DOC).is_file()
        assert not (dest / "scratch").exists()

    def test_overwrites_and_keeps_unrelated(
        self, tmp_path: Path, registry: CapabilityRegistry, react_module: CapabilityModule
    ):
        registry.insert(react_module)
        dest = tmp_path / "dest"
        stale = dest / "impl-frontend-react-vite"
        stale.mkdir(parents=True)
        (stale / RECORD_FILE).write_text("old")
        (dest / "other-skill").mkdir()

        assert install(registry.root, dest) == 0
        assert (stale / RECORD_FILE).read_text() != "old"
        assert (dest / "other-skill").is_dir()

    def test_missing_source(self, tmp_path: Path):
        assert install(tmp_path / "missing", tmp_path / "dest") == 1

    def test_empty_source(self, tmp_path: Path):
        src = tmp_path / "src"
        src.mkdir()
        assert install(src, tmp_path / "dest") == 0
        assert (tmp_path / "dest").is_dir()

    def test_destination_is_a_file(
        self, tmp_path: Path, registry: CapabilityRegistry, react_module: CapabilityModule
    ):
        registry.insert(react_module)
        dest = tmp_path / "dest"
        dest.write_text("not a directory")
        assert install(registry.root, dest) == 1
