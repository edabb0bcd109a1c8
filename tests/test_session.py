"""Tests for the persisted login session."""

import json

from screening.session import SIGNED_OUT, SessionManager


class TestSessionManager:
    """Test load/save/clear lifecycle."""

    def test_missing_file_is_signed_out(self, tmp_path):
        manager = SessionManager(tmp_path / "session.json")
        assert manager.state == SIGNED_OUT
        assert not manager.is_authenticated

    def test_sign_in_persists(self, tmp_path):
        path = tmp_path / "nested" / "session.json"
        SessionManager(path).sign_in("alice")

        reloaded = SessionManager(path)
        assert reloaded.is_authenticated
        assert reloaded.state.login_name == "alice"
        assert reloaded.state.authenticated_at is not None

    def test_session_file_never_holds_password(self, tmp_path):
        path = tmp_path / "session.json"
        SessionManager(path).sign_in("alice")
        assert set(json.loads(path.read_text())) == {"is_authenticated", "login_name", "authenticated_at"}

    def test_clear(self, tmp_path):
        path = tmp_path / "session.json"
        manager = SessionManager(path)
        manager.sign_in("alice")
        manager.clear()

        assert not path.exists()
        assert not manager.is_authenticated
        assert not SessionManager(path).is_authenticated

    def test_clear_without_file(self, tmp_path):
        manager = SessionManager(tmp_path / "session.json")
        manager.clear()
        assert not manager.is_authenticated

    def test_corrupt_file_is_signed_out(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")
        assert not SessionManager(path).is_authenticated

    def test_flag_must_be_true_literal(self, tmp_path):
        """Verify truthy non-boolean values do not count as signed in."""
        path = tmp_path / "session.json"
        path.write_text(json.dumps({"is_authenticated": "true"}))
        assert not SessionManager(path).is_authenticated
