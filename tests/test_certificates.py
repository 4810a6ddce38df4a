"""
Tests for CertificateStatusTracker: record-presence semantics, progress
against the fixed catalog, toggle round trips.
"""
import asyncio
from datetime import date

import pytest

from portfolio_tracker.certificates import CertificateStatusTracker, resolve_statuses
from portfolio_tracker.errors import NetworkError, ValidationError
from portfolio_tracker.models import CERT_NAMES, CertificateRecord
from portfolio_tracker.notices import NoticeLevel

ITQ = "ITQ"
CAD = "전자캐드기능사"


def _run(coro):
    return asyncio.run(coro)


def _tracker(services, today=date(2026, 3, 15)):
    services.session.login_cert_viewer("Lee")
    services.notices.drain()
    return CertificateStatusTracker(
        services.client, services.session, services.notices,
        page_limit=100, today=lambda: today,
    )


def _seed_cert(store, cert_name, student="Lee", obtained_date="2025-11-02", obtained=True):
    return store.seed("certificates", student_name=student, cert_name=cert_name,
                      obtained=obtained, obtained_date=obtained_date)


class TestResolveStatuses:
    def test_one_status_per_catalog_entry(self):
        statuses = resolve_statuses([])
        assert [s.name for s in statuses] == CERT_NAMES
        assert not any(s.obtained for s in statuses)

    def test_first_duplicate_wins(self):
        records = [
            CertificateRecord(id="c-1", student_name="Lee", cert_name=ITQ, obtained_date="2025-01-01"),
            CertificateRecord(id="c-2", student_name="Lee", cert_name=ITQ, obtained_date="2025-06-01"),
        ]
        status = next(s for s in resolve_statuses(records) if s.name == ITQ)
        assert status.record_id == "c-1"


class TestLoad:
    def test_no_viewer_means_nothing_obtained(self, table_store, table_services):
        statuses = _run(table_services.certificates.load())
        assert len(statuses) == 7
        assert table_services.certificates.progress().obtained == 0
        assert table_store.request_count == 0

    def test_record_presence_means_obtained(self, table_store, table_services):
        _seed_cert(table_store, ITQ)
        tracker = _tracker(table_services)
        _run(tracker.load())
        assert tracker.status(ITQ).obtained
        assert tracker.status(ITQ).obtained_date == "2025-11-02"
        assert not tracker.status(CAD).obtained

    def test_record_flagged_false_still_obtained(self, table_store, table_services):
        _seed_cert(table_store, ITQ, obtained=False)
        tracker = _tracker(table_services)
        _run(tracker.load())
        assert tracker.status(ITQ).obtained
        assert tracker.progress().obtained == 1

    def test_other_students_records_ignored(self, rpc_store, rpc_services):
        _seed_cert(rpc_store, ITQ, student="Leeroy")
        _seed_cert(rpc_store, CAD, student="Kim")
        tracker = _tracker(rpc_services)
        _run(tracker.load())
        assert tracker.progress().obtained == 0

    def test_progress_ignores_unknown_and_duplicate_records(self, table_store, table_services):
        _seed_cert(table_store, ITQ)
        _seed_cert(table_store, ITQ)
        _seed_cert(table_store, "AWS Cloud Practitioner")
        tracker = _tracker(table_services)
        _run(tracker.load())
        progress = tracker.progress()
        assert (progress.obtained, progress.total, progress.percent) == (1, 7, 14)

    def test_all_obtained_is_full_progress(self, table_store, table_services):
        for name in CERT_NAMES:
            _seed_cert(table_store, name)
        tracker = _tracker(table_services)
        _run(tracker.load())
        assert tracker.progress().percent == 100
        assert tracker.progress().remaining == 0

    def test_unreachable_store_degrades_to_not_obtained(self, table_store, table_services):
        _seed_cert(table_store, ITQ)
        tracker = _tracker(table_services)
        table_store.fail_next("network", times=2)
        statuses = _run(tracker.load())
        assert len(statuses) == 7
        assert not any(s.obtained for s in statuses)


class TestToggle:
    def test_obtain_creates_record_with_today(self, table_store, table_services):
        tracker = _tracker(table_services)
        _run(tracker.toggle(ITQ, currently_obtained=False))
        row = table_store.tables["certificates"][0]
        assert (row["student_name"], row["cert_name"], row["obtained"]) == ("Lee", ITQ, True)
        assert row["obtained_date"] == "2026-03-15"
        assert tracker.status(ITQ).obtained
        notice = table_services.notices.drain()[-1]
        assert notice.level == NoticeLevel.SUCCESS
        assert ITQ in notice.message

    def test_obtain_with_explicit_date(self, table_store, table_services):
        tracker = _tracker(table_services)
        _run(tracker.toggle(CAD, currently_obtained=False, obtained_date="2025-12-24"))
        assert table_store.tables["certificates"][0]["obtained_date"] == "2025-12-24"

    def test_unobtain_deletes_record(self, table_store, table_services):
        row = _seed_cert(table_store, ITQ)
        tracker = _tracker(table_services)
        _run(tracker.load())
        _run(tracker.toggle(ITQ, currently_obtained=True, record_id=row["id"]))
        assert table_store.tables["certificates"] == []
        assert not tracker.status(ITQ).obtained

    def test_flagged_false_record_toggles_off_without_duplicate(self, table_store, table_services):
        _seed_cert(table_store, ITQ, obtained=False)
        tracker = _tracker(table_services)
        _run(tracker.load())
        status = tracker.status(ITQ)
        _run(tracker.toggle(ITQ, currently_obtained=status.obtained, record_id=status.record_id))
        assert table_store.tables["certificates"] == []
        assert [r.method for r in table_store.requests].count("POST") == 0

    def test_toggle_twice_returns_to_start(self, rpc_store, rpc_services):
        tracker = _tracker(rpc_services)
        _run(tracker.toggle(ITQ, currently_obtained=False))
        status = tracker.status(ITQ)
        _run(tracker.toggle(ITQ, currently_obtained=True, record_id=status.record_id))
        assert tracker.progress().obtained == 0
        assert rpc_store.tables["certificates"] == []

    def test_unknown_certificate_blocked(self, table_store, table_services):
        tracker = _tracker(table_services)
        with pytest.raises(ValidationError):
            _run(tracker.toggle("AWS Cloud Practitioner", currently_obtained=False))
        assert table_store.request_count == 0

    def test_bad_date_blocked(self, table_store, table_services):
        tracker = _tracker(table_services)
        with pytest.raises(ValidationError):
            _run(tracker.toggle(ITQ, currently_obtained=False, obtained_date="15.03.2026"))
        assert table_store.request_count == 0

    def test_requires_viewer(self, table_store, table_services):
        with pytest.raises(ValidationError):
            _run(table_services.certificates.toggle(ITQ, currently_obtained=False))
        assert table_services.notices.pending[-1].level == NoticeLevel.ERROR

    def test_failed_toggle_not_applied_locally(self, table_store, table_services):
        tracker = _tracker(table_services)
        _run(tracker.load())
        table_store.fail_next("network")
        with pytest.raises(NetworkError):
            _run(tracker.toggle(ITQ, currently_obtained=False))
        assert not tracker.status(ITQ).obtained
        assert table_store.tables["certificates"] == []
        assert table_services.notices.pending[-1].level == NoticeLevel.ERROR


class TestViewerLogout:
    def test_logout_resets_statuses(self, table_store, table_services):
        _seed_cert(table_store, ITQ)
        table_services.session.login_cert_viewer("Lee")
        _run(table_services.certificates.load())
        assert table_services.certificates.progress().obtained == 1
        table_services.logout_cert_viewer()
        assert table_services.certificates.progress().obtained == 0
