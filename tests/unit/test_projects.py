"""Tests for project intake, editing and the client annual budget."""

from decimal import Decimal
import uuid

import pytest

from portal_api.engagement import (
    Actor,
    Forbidden,
    InvalidInput,
    NotFound,
    PersistenceUnavailable,
    Role,
    SchemaCapabilities,
    create_project,
    get_project,
    project_view,
    set_client_annual_budget,
    update_project,
)
from portal_shared.contracts.dto import DisplayStatus
from portal_shared.models import NotificationType


class TestClientIntake:
    @pytest.mark.asyncio
    async def test_request_with_budget_starts_negotiation(self, ctx, sink, client_actor):
        project = await create_project(
            ctx,
            client_actor,
            {"title": " Gala ", "location": "Hall B", "requested_budget": "12500"},
        )

        assert project["title"] == "Gala"
        assert project["client_id"] == "client-1"
        assert project["status"] == "REQUEST_RECEIVED"
        assert project["requested_budget"] == Decimal("12500")
        assert project["budget_status"] == "PENDING"

        [event] = sink.events
        assert event.notification_type is NotificationType.PROJECT_BUDGET_PENDING
        assert event.message == (
            'New project "Gala" submitted with a budget request of $12,500.'
        )

    @pytest.mark.asyncio
    async def test_request_without_budget(self, ctx, sink, client_actor):
        project = await create_project(ctx, client_actor, {"title": "Shoot"})

        assert "budget_status" not in project
        assert sink.events == []

    @pytest.mark.asyncio
    async def test_client_cannot_choose_status(self, ctx, client_actor):
        project = await create_project(
            ctx, client_actor, {"title": "Shoot", "status": "CONFIRMED"}
        )
        assert project["status"] == "REQUEST_RECEIVED"

    @pytest.mark.asyncio
    async def test_client_cannot_create_for_another_client(self, ctx, client_actor):
        with pytest.raises(Forbidden):
            await create_project(ctx, client_actor, {"title": "x", "client_id": "client-2"})

    @pytest.mark.asyncio
    async def test_client_cannot_assign_account_managers(self, ctx, client_actor):
        with pytest.raises(Forbidden):
            await create_project(
                ctx, client_actor, {"title": "x", "account_manager_names": ["Sam"]}
            )

    @pytest.mark.asyncio
    async def test_client_account_must_be_linked(self, ctx):
        with pytest.raises(Forbidden):
            await create_project(ctx, Actor("u", Role.CLIENT), {"title": "x"})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, "-5", "lots"])
    async def test_invalid_requested_budget(self, ctx, store, client_actor, amount):
        with pytest.raises(InvalidInput):
            await create_project(ctx, client_actor, {"title": "x", "requested_budget": amount})
        assert store.rows("projects") == []

    @pytest.mark.asyncio
    async def test_title_required(self, ctx, client_actor):
        with pytest.raises(InvalidInput, match="title"):
            await create_project(ctx, client_actor, {"title": "   "})

    @pytest.mark.asyncio
    async def test_schema_without_budget_columns(self, ctx, store, sink, client_actor):
        store.drop_columns("projects", "requested_budget", "budget_status", "proposed_budget")

        project = await create_project(
            ctx, client_actor, {"title": "Gala", "requested_budget": 100}
        )

        assert project["status"] == "REQUEST_RECEIVED"
        assert "requested_budget" not in project
        assert sink.events == []

    @pytest.mark.asyncio
    async def test_known_missing_budget_columns_skip_them(self, ctx, store, client_actor):
        ctx.capabilities = SchemaCapabilities(has_budget_columns=False)

        project = await create_project(
            ctx, client_actor, {"title": "Gala", "requested_budget": 100}
        )

        assert "budget_status" not in project


class TestAdminCreate:
    @pytest.mark.asyncio
    async def test_admin_creates_with_status_label(self, ctx, sink, admin):
        project = await create_project(
            ctx,
            admin,
            {
                "title": "Conference",
                "client_id": "client-7",
                "status": "In Production",
                "account_manager_names": ["Sam"],
            },
        )

        assert project["status"] == "IN_PRODUCTION"
        assert project["client_id"] == "client-7"
        assert project["account_manager_names"] == ["Sam"]
        assert sink.events == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["client_id", "status"])
    async def test_admin_required_fields(self, ctx, admin, missing):
        fields = {"title": "x", "client_id": "client-7", "status": "CONFIRMED"}
        del fields[missing]
        with pytest.raises(InvalidInput, match=missing):
            await create_project(ctx, admin, fields)

    @pytest.mark.asyncio
    async def test_admin_cannot_set_requested_budget(self, ctx, admin):
        with pytest.raises(Forbidden):
            await create_project(
                ctx,
                admin,
                {"title": "x", "client_id": "c", "status": "CONFIRMED", "requested_budget": 5},
            )

    @pytest.mark.asyncio
    async def test_team_cannot_create(self, ctx):
        with pytest.raises(Forbidden):
            await create_project(ctx, Actor("t", Role.TEAM), {"title": "x"})


class TestUpdateProject:
    @pytest.mark.asyncio
    async def test_client_edits_details(self, ctx, client_actor, make_project):
        project = make_project()

        updated = await update_project(
            ctx, project["id"], client_actor, {"location": "Pier 4", "client_id": "client-1"}
        )

        assert updated["location"] == "Pier 4"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "changes",
        [
            {"status": "CONFIRMED"},
            {"client_id": "client-2"},
            {"account_manager_emails": ["a@b.c"]},
            {"budget_status": "APPROVED"},
            {"requested_budget": 1},
        ],
    )
    async def test_client_restricted_fields(self, ctx, store, client_actor, make_project, changes):
        project = make_project()
        with pytest.raises(Forbidden):
            await update_project(ctx, project["id"], client_actor, changes)
        assert store.updates == []

    @pytest.mark.asyncio
    async def test_other_client(self, ctx, other_client, make_project):
        with pytest.raises(Forbidden):
            await update_project(ctx, make_project()["id"], other_client, {"notes": "hi"})

    @pytest.mark.asyncio
    async def test_admin_moves_status_freely(self, ctx, admin, make_project):
        project = make_project(status="COMPLETED")

        updated = await update_project(ctx, project["id"], admin, {"status": "final review"})

        assert updated["status"] == "FINAL_REVIEW"

    @pytest.mark.asyncio
    async def test_admin_cannot_touch_negotiated_budget(self, ctx, admin, make_project):
        with pytest.raises(Forbidden):
            await update_project(ctx, make_project()["id"], admin, {"proposed_budget": 10})

    @pytest.mark.asyncio
    async def test_invalid_values(self, ctx, admin, make_project):
        project = make_project()
        with pytest.raises(InvalidInput):
            await update_project(ctx, project["id"], admin, {"status": "ARCHIVED"})
        with pytest.raises(InvalidInput):
            await update_project(ctx, project["id"], admin, {"title": " "})

    @pytest.mark.asyncio
    async def test_empty_update_returns_project(self, ctx, store, admin, make_project):
        project = make_project()
        assert await update_project(ctx, project["id"], admin, {}) == project
        assert store.updates == []

    @pytest.mark.asyncio
    async def test_rejected_by_check_constraint(self, ctx, store, admin, make_project):
        store.restrict("projects", "status", {"REQUEST_RECEIVED", "CONFIRMED"})
        with pytest.raises(InvalidInput):
            await update_project(ctx, make_project()["id"], admin, {"status": "CANCELLED"})


class TestGetProject:
    @pytest.mark.asyncio
    async def test_visibility(self, ctx, admin, client_actor, other_client, make_project):
        project = make_project()

        assert (await get_project(ctx, project["id"], admin))["id"] == project["id"]
        assert (await get_project(ctx, project["id"], client_actor))["id"] == project["id"]
        with pytest.raises(Forbidden):
            await get_project(ctx, project["id"], other_client)
        with pytest.raises(NotFound):
            await get_project(ctx, "nope", admin)

    def test_view_carries_display_status(self, make_project):
        project = make_project(status="POST_PRODUCTION", requested_budget=Decimal("99.5"))

        view = project_view(project)

        assert view.display_status is DisplayStatus.IN_PROGRESS
        assert view.model_dump(mode="json")["requested_budget"] == 99.5

    def test_view_accepts_uuid_keys(self, make_project):
        project_id, client_id, user_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        project = make_project(id=project_id, client_id=client_id, cancelled_by=user_id)

        view = project_view(project)

        assert (view.id, view.client_id) == (str(project_id), str(client_id))
        assert view.cancelled_by == str(user_id)


class TestAnnualBudget:
    @pytest.fixture
    def client_row(self, store):
        store.tables.setdefault("clients", {})["client-1"] = {"id": "client-1", "name": "Acme"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount,expected", [("25000", Decimal("25000")), (0, Decimal("0"))])
    async def test_client_sets_own_budget(self, ctx, client_actor, client_row, amount, expected):
        client = await set_client_annual_budget(ctx, client_actor, "client-1", amount)
        assert client["annual_budget"] == expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [None, "-1", "n/a"])
    async def test_invalid_amount(self, ctx, client_actor, client_row, amount):
        with pytest.raises(InvalidInput):
            await set_client_annual_budget(ctx, client_actor, "client-1", amount)

    @pytest.mark.asyncio
    async def test_only_own_budget(self, ctx, client_actor, admin, client_row):
        with pytest.raises(Forbidden, match="your own budget"):
            await set_client_annual_budget(ctx, client_actor, "client-2", 10)
        with pytest.raises(Forbidden):
            await set_client_annual_budget(ctx, admin, "client-1", 10)

    @pytest.mark.asyncio
    async def test_unmigrated_column(self, ctx, store, client_actor, client_row):
        store.drop_columns("clients", "annual_budget")
        with pytest.raises(PersistenceUnavailable, match="annual_budget"):
            await set_client_annual_budget(ctx, client_actor, "client-1", 10)

    @pytest.mark.asyncio
    async def test_missing_client_row(self, ctx, client_actor):
        with pytest.raises(NotFound):
            await set_client_annual_budget(ctx, client_actor, "client-1", 10)
