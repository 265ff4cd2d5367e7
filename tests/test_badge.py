"""
Badge PDF tests.
"""

import io

import pytest
from pypdf import PdfReader
from reportlab.lib.pagesizes import A4, A5
from reportlab.pdfgen import canvas

from conftest import auth_headers, make_company, make_user
from expolink.services.badge_service import BadgeService, badge_filename, slugify


def blank_template(path, pagesize=A5) -> None:
    pdf = canvas.Canvas(str(path), pagesize=pagesize)
    pdf.setFillColorRGB(0.05, 0.1, 0.25)
    pdf.rect(0, 0, pagesize[0], pagesize[1], stroke=0, fill=1)
    pdf.showPage()
    pdf.save()


def test_slugify():
    assert slugify("Ada Lovelace") == "ada-lovelace"
    assert slugify("  Zoë  O'Neil ") == "zo-o-neil"
    assert slugify("!!!") == "attendee"


@pytest.mark.asyncio
async def test_render_on_template(db, tmp_path):
    company = await make_company(db, "Analytical Engines")
    user = await make_user(db, role="exhibitor", company=company)
    template = tmp_path / "bg.pdf"
    blank_template(template)

    pdf = BadgeService(template_path=template).render(user)

    reader = PdfReader(io.BytesIO(pdf))
    assert len(reader.pages) == 1
    page = reader.pages[0]
    # Template page is scaled to A4
    assert round(float(page.mediabox.width)) == round(A4[0])
    assert round(float(page.mediabox.height)) == round(A4[1])
    text = page.extract_text()
    assert "ADA LOVELACE" in text
    assert "Analytical Engines" in text


@pytest.mark.asyncio
async def test_render_without_template(db, tmp_path):
    user = await make_user(db)
    pdf = BadgeService(template_path=tmp_path / "nope.pdf").render(user)
    assert pdf.startswith(b"%PDF")
    assert len(PdfReader(io.BytesIO(pdf)).pages) == 1


@pytest.mark.asyncio
async def test_badge_endpoint(client, db):
    user = await make_user(db, name="Grace", last_name="Hopper")
    resp = await client.get("/api/v1/badge", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.headers["content-disposition"] == 'inline; filename="badge_grace-hopper.pdf"'
    assert resp.content.startswith(b"%PDF")
    assert badge_filename(user) == "badge_grace-hopper.pdf"


@pytest.mark.asyncio
async def test_badge_requires_auth(client):
    resp = await client.get("/api/v1/badge")
    assert resp.status_code == 401
