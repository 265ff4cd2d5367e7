"""
Public exhibitor directory used by the registration screen.
"""

import pytest
from sqlalchemy import select

from conftest import make_company, make_user
from expolink.models import Base, User
from expolink.services.company_service import CompanyService


@pytest.mark.asyncio
async def test_directory_lists_active_featured_first(client, db):
    await make_company(db, "Beta Systems", booth_number="B-1")
    await make_company(db, "Alpha Media", booth_number="A-9")
    await make_company(db, "Zulu Motors", booth_number="Z-1", is_featured=True)
    await make_company(db, "Hidden Corp", is_active=False)

    resp = await client.get("/api/v1/companies")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 3
    assert [c["name"] for c in body["data"]] == ["Zulu Motors", "Alpha Media", "Beta Systems"]

    searched = await client.get("/api/v1/companies", params={"search": "a-9"})
    assert [c["name"] for c in searched.json()["data"]] == ["Alpha Media"]


@pytest.mark.asyncio
async def test_inactive_company_is_hidden(client, db):
    visible = await make_company(db, "Open Booth")
    hidden = await make_company(db, "Closed Booth", is_active=False)

    resp = await client.get(f"/api/v1/companies/{visible.id}")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Open Booth"

    resp = await client.get(f"/api/v1/companies/{hidden.id}")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "COMPANY_NOT_FOUND"


@pytest.mark.asyncio
async def test_deleting_company_detaches_its_team(db):
    company = await make_company(db, "Short Lived")
    member = await make_user(db, role="exhibitor", company=company)

    await CompanyService(db).delete(company.id)
    await db.commit()

    company_id = (await db.execute(select(User.company_id).where(User.id == member.id))).scalar_one()
    assert company_id is None


def test_relationships_use_supported_loaders():
    for mapper in Base.registry.mappers:
        for rel in mapper.relationships:
            assert rel.lazy in ("select", "selectin", "raise"), f"{mapper.class_.__name__}.{rel.key}"
