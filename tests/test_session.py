"""
Tests for SessionCache: restore, student / certificate viewer login and
logout, quick-login student list.
"""
import asyncio

import pytest
from factories import make_services

from portfolio_tracker.database import KEY_ADMIN_TOKEN, KEY_CERT_VIEWER, KEY_STUDENT
from portfolio_tracker.errors import NetworkError, ServerError, ValidationError
from portfolio_tracker.notices import NoticeLevel


def _run(coro):
    return asyncio.run(coro)


class TestRestore:
    def test_fresh_start_is_empty(self, table_services):
        ctx = table_services.session.context
        assert ctx.current_user is None
        assert ctx.current_cert_user is None
        assert not ctx.admin_authed

    def test_saved_identities_restored_silently(self, table_store, db_path):
        first = make_services(table_store, db_path)
        _run(first.session.login_student("Kim"))
        first.session.login_cert_viewer("Lee")
        first.session.set_admin_token("tok")
        requests_before = table_store.request_count

        reloaded = make_services(table_store, db_path)
        ctx = reloaded.session.context
        assert (ctx.current_user, ctx.current_cert_user, ctx.admin_token) == ("Kim", "Lee", "tok")
        assert reloaded.notices.pending == []
        assert table_store.request_count == requests_before

    def test_other_client_does_not_inherit_identities(self, table_store, db_path):
        first = make_services(table_store, db_path, client_id="browser-a")
        _run(first.session.login_student("Kim"))
        first.session.login_cert_viewer("Lee")
        first.session.set_admin_token("tok")

        other = make_services(table_store, db_path, client_id="browser-b")
        ctx = other.session.context
        assert ctx.current_user is None
        assert ctx.current_cert_user is None
        assert not ctx.admin_authed

        again = make_services(table_store, db_path, client_id="browser-a")
        assert again.session.context.current_user == "Kim"
        assert again.session.context.admin_authed

    def test_logout_in_one_client_keeps_the_other(self, table_store, db_path):
        a = make_services(table_store, db_path, client_id="browser-a")
        b = make_services(table_store, db_path, client_id="browser-b")
        _run(a.session.login_student("Kim"))
        _run(b.session.login_student("Lee"))
        a.logout_student()
        assert make_services(table_store, db_path, client_id="browser-b").session.context.current_user == "Lee"
        assert make_services(table_store, db_path, client_id="browser-a").session.context.current_user is None


class TestStudentLogin:
    def test_login_ensures_student_and_persists(self, table_store, table_services):
        _run(table_services.session.login_student("  Kim  "))
        assert table_services.session.context.current_user == "Kim"
        assert table_services.local.get(KEY_STUDENT) == "Kim"
        assert [s["name"] for s in table_store.tables["students"]] == ["Kim"]

    def test_welcome_notice(self, table_services):
        _run(table_services.session.login_student("Kim"))
        notice = table_services.notices.drain()[-1]
        assert notice.level == NoticeLevel.SUCCESS
        assert notice.message == "Welcome, Kim! 🎉"

    def test_second_login_does_not_duplicate(self, table_store, table_services):
        _run(table_services.session.login_student("Kim"))
        _run(table_services.session.login_student("Kim"))
        assert len(table_store.tables["students"]) == 1

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_blocked_without_request(self, table_store, table_services, name):
        with pytest.raises(ValidationError):
            _run(table_services.session.login_student(name))
        assert table_store.request_count == 0
        assert table_services.notices.pending[-1].level == NoticeLevel.ERROR
        assert table_services.session.context.current_user is None

    def test_store_failure_leaves_session_unchanged(self, table_store, table_services):
        table_store.fail_next("server")
        with pytest.raises(ServerError):
            _run(table_services.session.login_student("Kim"))
        assert table_services.session.context.current_user is None
        assert table_services.local.get(KEY_STUDENT) is None
        assert table_services.notices.pending[-1].level == NoticeLevel.ERROR

    def test_network_failure_on_ensure_not_retried(self, table_store, table_services):
        table_store.fail_next("network")
        with pytest.raises(NetworkError):
            _run(table_services.session.login_student("Kim"))
        assert table_store.request_count == 1

    def test_logout_clears_durable_key(self, table_services):
        _run(table_services.session.login_student("Kim"))
        table_services.logout_student()
        assert table_services.session.context.current_user is None
        assert table_services.local.get(KEY_STUDENT) is None


class TestKnownStudents:
    def test_lists_registered_students(self, table_store, table_services):
        table_store.seed("students", name="Kim")
        table_store.seed("students", name="Lee")
        names = [s.name for s in _run(table_services.session.known_students())]
        assert names == ["Kim", "Lee"]

    def test_malformed_rows_skipped(self, table_store, table_services):
        table_store.seed("students", name="Kim")
        table_store.seed("students", nickname="ghost")
        names = [s.name for s in _run(table_services.session.known_students())]
        assert names == ["Kim"]

    def test_rows_without_id_still_listed(self, rpc_store, rpc_services):
        rpc_store.seed("students", name="Kim", id=None)
        rpc_store.seed("students", name="Lee")
        students = _run(rpc_services.session.known_students())
        assert [s.name for s in students] == ["Kim", "Lee"]
        assert students[0].id is None
        assert students[1].id is not None

    def test_unreachable_store_gives_empty_list(self, table_store, table_services):
        table_store.fail_next("network", times=2)
        assert _run(table_services.session.known_students()) == []
        assert table_services.notices.pending == []


class TestCertViewer:
    def test_login_persists_and_notifies(self, table_store, table_services):
        table_services.session.login_cert_viewer("Lee")
        assert table_services.session.context.current_cert_user == "Lee"
        assert table_services.local.get(KEY_CERT_VIEWER) == "Lee"
        notice = table_services.notices.drain()[-1]
        assert notice.level == NoticeLevel.INFO
        assert "Lee" in notice.message
        assert table_store.request_count == 0

    def test_independent_of_student(self, table_services):
        _run(table_services.session.login_student("Kim"))
        table_services.session.login_cert_viewer("Lee")
        table_services.logout_cert_viewer()
        ctx = table_services.session.context
        assert ctx.current_user == "Kim"
        assert ctx.current_cert_user is None

    def test_blank_name_blocked(self, table_services):
        with pytest.raises(ValidationError):
            table_services.session.login_cert_viewer(" ")


class TestAdminToken:
    def test_empty_token_rejected(self, table_services):
        with pytest.raises(ValidationError):
            table_services.session.set_admin_token("")

    def test_logout_admin(self, table_services):
        table_services.session.set_admin_token("tok")
        table_services.session.logout_admin()
        assert not table_services.session.context.admin_authed
        assert table_services.local.get(KEY_ADMIN_TOKEN) is None
