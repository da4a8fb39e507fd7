"""Tests for the maintenance scripts."""

import importlib.util
from pathlib import Path

import visiondesk
from visiondesk.c1_database_session import DatabaseManager
from visiondesk.c1_user_models.user import User
from visiondesk.c2_auth_service.passwords import verify_password

SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "scripts"


def _load_script(name):
    module_spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


class TestArchitecture:
    """Layer rules hold for the whole package."""

    def test_package_follows_layer_rules(self):
        validator = _load_script("validate_architecture")

        ok, violations = validator.validate_layer_dependencies(Path(visiondesk.__file__).parent)

        assert ok, violations

    def test_layer_names(self):
        validator = _load_script("validate_architecture")

        assert validator.module_layer("visiondesk.c2_task_service.task_service") == "c2"
        assert validator.module_layer("visiondesk.core.errors") == "core"
        assert validator.module_layer("visiondesk.api.server") == "app"

    def test_detects_violation(self, tmp_path):
        validator = _load_script("validate_architecture")
        layer_dir = tmp_path / "c1_bad_models"
        layer_dir.mkdir()
        (layer_dir / "__init__.py").write_text("")
        (layer_dir / "bad.py").write_text("from visiondesk.c2_task_service.task_service import TaskService\n")

        ok, violations = validator.validate_layer_dependencies(tmp_path)

        assert not ok
        assert "c1 cannot import from c2" in violations[0]


class TestCreateAdmin:
    """The admin bootstrap script."""

    def test_creates_then_promotes(self, tmp_path):
        script = _load_script("create_admin")
        url = f"sqlite:///{tmp_path / 'admin.db'}"

        created = script.create_admin(url, "Chief@Example.com", "Chief", "first-password")
        promoted = script.create_admin(url, "chief@example.com", "Ignored", "second-password")

        assert created.id == promoted.id
        manager = DatabaseManager(url)
        with manager.session_scope() as db:
            user = db.query(User).filter_by(email="chief@example.com").one()
            assert user.role == "admin"
            assert user.name == "Chief"
            assert verify_password("second-password", user.password_hash)
        manager.engine.dispose()
