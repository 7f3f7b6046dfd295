"""
Tests for order reports.

Tests: file_report, list_reports, count_reports, report_to_dict.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest

from domain.errors import NotFoundError, PermissionDeniedError
from services import order_service, report_service


class TestReports:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_file_report(self, db_session, make_order, client_user):
        order = await make_order()
        report = await report_service.file_report(
            db_session, order_id=order.id, actor=client_user, reason="  Missing a sock  "
        )
        await db_session.commit()

        data = report_service.report_to_dict(report)
        assert data["order_id"] == order.id
        assert data["client_id"] == client_user.id
        assert data["reason"] == "Missing a sock"
        assert data["created_at"] is not None

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_report_leaves_order_untouched(self, db_session, make_order, client_user):
        order = await make_order()
        await report_service.file_report(
            db_session, order_id=order.id, actor=client_user, reason="Stain on shirt"
        )
        await db_session.commit()
        reloaded = await order_service.get_order(db_session, order.id)
        assert reloaded.status == "placed"
        assert reloaded.notes is None

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_other_client_cannot_report(self, db_session, make_order, other_client):
        order = await make_order()
        with pytest.raises(PermissionDeniedError):
            await report_service.file_report(
                db_session, order_id=order.id, actor=other_client, reason="Not mine"
            )

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_report_on_missing_order(self, db_session, client_user):
        with pytest.raises(NotFoundError):
            await report_service.file_report(
                db_session, order_id=404, actor=client_user, reason="Where is it"
            )

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_list_reports_by_order(self, db_session, make_order, client_user):
        first = await make_order()
        second = await make_order()
        for order, reason in ((first, "Late"), (second, "Torn"), (first, "Wrong pant")):
            await report_service.file_report(
                db_session, order_id=order.id, actor=client_user, reason=reason
            )
        await db_session.commit()

        assert len(await report_service.list_reports(db_session)) == 3
        reports = await report_service.list_reports(db_session, order_id=first.id)
        assert sorted(r.reason for r in reports) == ["Late", "Wrong pant"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_count_reports_ignores_paging(self, db_session, make_order, client_user):
        first = await make_order()
        second = await make_order()
        for order, reason in ((first, "Late"), (second, "Torn"), (first, "Wrong pant")):
            await report_service.file_report(
                db_session, order_id=order.id, actor=client_user, reason=reason
            )
        await db_session.commit()

        assert len(await report_service.list_reports(db_session, limit=1)) == 1
        assert await report_service.count_reports(db_session) == 3
        assert await report_service.count_reports(db_session, order_id=first.id) == 2
        assert await report_service.count_reports(db_session, order_id=999) == 0
