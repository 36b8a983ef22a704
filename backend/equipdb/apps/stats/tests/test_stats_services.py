from __future__ import annotations

from datetime import date, datetime

import pytest
from fastapi import HTTPException

from equipdb.apps.clients import models as client_models
from equipdb.apps.clients.models import ServiceStatus
from equipdb.apps.stats import router as stats_router
from equipdb.apps.stats import services as stats_services

TODAY = date(2025, 6, 15)


def _create_client(db_session, manager, *equipment, **fields) -> client_models.Client:
    client = client_models.Client(
        manager_id=manager.id,
        client_contact_person=fields.pop("client_contact_person", "Pat Smith"),
        contact_email=fields.pop("contact_email", "pat@example.com"),
        **fields,
    )
    for item in equipment:
        client.add_equipment(item)
    db_session.add(client)
    db_session.commit()
    db_session.refresh(client)
    return client


def _equipment(**kwargs) -> client_models.Equipment:
    kwargs.setdefault("service_status", ServiceStatus.NONE)
    return client_models.Equipment(**kwargs)


def test_total_clients_counts_inactive_too(db_session, manager):
    _create_client(db_session, manager)
    _create_client(db_session, manager, is_active=False)

    assert stats_services.total_clients(db_session).total == 2


def test_total_managers(db_session, supervisor, manager, other_manager, admin):
    assert stats_services.total_managers(db_session).total_managers == 2


def test_expiring_counts_this_month(db_session, manager):
    # Due this month, not completed.
    _create_client(db_session, manager, _equipment(service_due_date=date(2025, 6, 1)))
    # Due this month and notified: counts in both; two items still count once.
    _create_client(
        db_session,
        manager,
        _equipment(service_due_date=date(2025, 6, 30), service_status=ServiceStatus.NOTIFIED),
        _equipment(service_due_date=date(2025, 6, 20), service_status=ServiceStatus.NOTIFIED),
    )
    # Completed this month: ignored.
    _create_client(
        db_session, manager, _equipment(service_due_date=date(2025, 6, 10), service_status=ServiceStatus.COMPLETED)
    )
    # Outside the month.
    _create_client(db_session, manager, _equipment(service_due_date=date(2025, 7, 1)))

    out = stats_services.expiring_counts(db_session, today=TODAY)

    assert out.expiring_this_month == 2
    assert out.notified_this_month == 1


def test_clients_summary_per_manager(db_session, manager, other_manager):
    _create_client(
        db_session,
        manager,
        _equipment(service_status=ServiceStatus.NOTIFIED, last_service_notified=datetime(2025, 5, 3, 10, 0)),
        _equipment(service_status=ServiceStatus.COMPLETED, last_service_notified=datetime(2025, 5, 31, 23, 0)),
        # Notified two months ago: not last month.
        _equipment(service_status=ServiceStatus.NOTIFIED, last_service_notified=datetime(2025, 4, 30, 12, 0)),
        _equipment(service_due_date=date(2025, 7, 31)),
    )
    _create_client(db_session, manager, _equipment(service_due_date=date(2025, 7, 1)))

    summary = {row.manager_id: row for row in stats_services.clients_summary_per_manager(db_session, today=TODAY)}

    mine = summary[manager.id]
    assert mine.total_clients == 2
    assert mine.notifications_sent_last_month == 1
    assert mine.services_done_last_month == 1
    assert mine.expected_due_next_month == 2
    assert mine.email == manager.email

    theirs = summary[other_manager.id]
    assert theirs.total_clients == 0
    assert theirs.expected_due_next_month == 0


def test_summary_serialises_with_camel_case(db_session, manager):
    rows = stats_services.clients_summary_per_manager(db_session, today=TODAY)
    body = rows[0].model_dump(by_alias=True)
    assert set(body) == {
        "managerId",
        "name",
        "email",
        "totalClients",
        "notificationsSentLastMonth",
        "servicesDoneLastMonth",
        "expectedDueNextMonth",
    }


def test_manager_details_window_is_inclusive(db_session, manager):
    start = datetime(2025, 6, 1, 0, 0)
    end = datetime(2025, 6, 30, 0, 0)
    client = _create_client(
        db_session,
        manager,
        _equipment(model="edge", service_status=ServiceStatus.NOTIFIED, last_service_notified=start),
        _equipment(model="done", service_status=ServiceStatus.COMPLETED, last_service_notified=datetime(2025, 6, 10)),
        _equipment(model="due", service_due_date=date(2025, 6, 30)),
        _equipment(model="outside", service_due_date=date(2025, 7, 1)),
    )
    _create_client(db_session, manager, _equipment(model="nothing", service_due_date=date(2026, 1, 1)))

    out = stats_services.manager_details(db_session, manager.id, date_from=start, date_to=end)

    assert out.manager_id == manager.id
    assert out.notifications_sent == 1
    assert out.services_completed == 1
    assert out.expected_due == 1
    assert [c.client_id for c in out.clients] == [client.id]
    assert [e.model for e in out.clients[0].equipment] == ["edge", "done", "due"]

    body = out.model_dump(mode="json", by_alias=True)
    assert set(body["period"]) == {"from", "to"}
    assert set(body["clients"][0]) == {"clientId", "contactPerson", "company", "equipment"}


def test_manager_details_default_window(db_session, manager):
    now = datetime(2025, 6, 15, 12, 0)
    _create_client(db_session, manager, _equipment(service_due_date=date(2025, 7, 10)))

    out = stats_services.manager_details(db_session, manager.id, now=now)

    assert out.period.from_ == datetime(2025, 5, 16, 12, 0)
    assert out.period.to == datetime(2025, 7, 15, 12, 0)
    assert out.expected_due == 1


def test_manager_details_due_dates_count_from_midnight(db_session, manager):
    start = datetime(2025, 6, 10, 12, 0)
    _create_client(
        db_session,
        manager,
        _equipment(model="same day", service_due_date=date(2025, 6, 10)),
        _equipment(model="next day", service_due_date=date(2025, 6, 11)),
    )

    out = stats_services.manager_details(
        db_session, manager.id, date_from=start, date_to=datetime(2025, 6, 20)
    )

    assert out.expected_due == 1
    assert [e.model for e in out.clients[0].equipment] == ["next day"]


def test_manager_details_unknown_or_not_manager(db_session, supervisor):
    assert stats_services.manager_details(db_session, supervisor.id) is None

    with pytest.raises(HTTPException) as exc:
        stats_router.manager_details(
            "USR-MISSING0", date_from=None, date_to=None, db=db_session, current_user=supervisor
        )
    assert exc.value.status_code == 404
    assert exc.value.detail == "Manager not found"


def test_soon_expiring_respects_month_window(db_session, manager):
    _create_client(
        db_session,
        manager,
        _equipment(model="in", service_due_date=date(2025, 8, 15)),
        _equipment(model="out", service_due_date=date(2025, 8, 16)),
        _equipment(model="today", service_due_date=TODAY),
    )

    out = stats_services.soon_expiring(db_session, manager, months=2, today=TODAY)

    assert [e.model for e in out[0].equipment] == ["today", "in"]
    body = out[0].model_dump(by_alias=True)
    assert set(body) == {"id", "companyName", "managerId", "equipment"}


@pytest.mark.parametrize("months", [10**6, -(10**6)])
def test_soon_expiring_clamps_out_of_range_months(db_session, manager, months):
    _create_client(db_session, manager, _equipment(model="far", service_due_date=date(2040, 1, 1)))

    out = stats_services.soon_expiring(db_session, manager, months=months, today=TODAY)

    if months > 0:
        assert [e.model for e in out[0].equipment] == ["far"]
    else:
        assert out == []
