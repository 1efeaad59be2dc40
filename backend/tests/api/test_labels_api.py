"""Тесты API генерации этикеток."""

from labelkit.api.dependencies import get_quote_policy
from labelkit.main import app
from labelkit.services.tspl import QuotePolicy

CARD = {
    "title": "2023 Topps Chrome Ohtani",
    "sku": "TC-1",
    "price": "5",
    "lot": "L7",
    "condition": "NM",
    "barcode": "TC-1",
}


def test_tspl_default_layout(client):
    response = client.post("/api/v1/labels/tspl", json={"data": CARD})

    assert response.status_code == 200
    body = response.json()
    assert body["lang"] == "TSPL"
    lines = body["program"].split("\n")
    assert lines[0] == "SIZE 2,1"
    assert 'TEXT 15,45,"0",0,1,1,"SKU: TC-1"' in lines
    assert 'TEXT 280,15,"0",0,3,3,"$5"' in lines
    assert lines[-1] == "PRINT 1"


def test_tspl_custom_layout_and_settings(client):
    response = client.post(
        "/api/v1/labels/tspl",
        json={
            "data": CARD,
            "layout": {"price": {"visible": False, "x": 280, "y": 15}, "barcode": {"mode": "qr"}},
            "settings": {"density": 12, "gapInches": 0.12},
        },
    )

    program = response.json()["program"]
    assert "$5" not in program
    assert "DENSITY 12" in program
    assert "GAP 0.12,0" in program
    assert "QRCODE " in program


def test_tspl_font_size_out_of_range(client):
    response = client.post(
        "/api/v1/labels/tspl",
        json={"data": CARD, "layout": {"title": {"x": 10, "y": 10, "fontSize": 9}}},
    )
    assert response.status_code == 422


def test_tspl_reject_quotes(client):
    app.dependency_overrides[get_quote_policy] = lambda: QuotePolicy.REJECT

    response = client.post("/api/v1/labels/tspl", json={"data": {**CARD, "title": 'Ohtani "Rookie"'}})

    assert response.status_code == 422
    assert "message" in response.json()["detail"]


def test_tspl_boxed(client):
    response = client.post("/api/v1/labels/tspl/legacy", json={"data": CARD, "boxed": True})

    assert response.status_code == 200
    assert "BAR 0,50,406,2" in response.json()["program"]


def test_scene_tspl(client):
    response = client.post(
        "/api/v1/labels/scene/tspl",
        json={
            "objects": [
                {"type": "rect", "name": "border", "left": 0, "top": 0, "width": 406, "height": 203},
                {"type": "textbox", "left": 10, "top": 20, "text": "Hi", "fontSize": 12},
            ]
        },
    )

    program = response.json()["program"]
    assert 'TEXT 10,20,"0",0,1,1,"Hi"' in program
    assert "BAR" not in program


def test_preview_png(client):
    response = client.post(
        "/api/v1/labels/preview.png", json={"data": CARD, "dpi": 96, "show_guides": True}
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG")


def test_pdf(client):
    response = client.post(
        "/api/v1/labels/pdf", json={"data": CARD, "field_config": {"barcode_mode": "none"}}
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_dpi_validation(client):
    response = client.post("/api/v1/labels/pdf", json={"data": CARD, "dpi": 5})
    assert response.status_code == 422


def test_render_card_defaults_to_tspl(client):
    response = client.post(
        "/api/v1/labels/render",
        json={"title": 'Ohtani "RC"', "lot_number": "L7", "price": "$5", "id": "42", "sku": "TC-1"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["lang"] == "TSPL"
    assert body["correlationId"].endswith("-42-TC-1")
    assert 'TEXT 10,8,"FONT001",0,1,1,"Ohtani  RC "' in body["program"]
    assert 'BARCODE 10,70,"128",90,1,0,2,2,"TC-1"' in body["program"]


def test_render_card_zpl(client):
    response = client.post(
        "/api/v1/labels/render",
        json={"title": "x" * 80, "printerLang": "ZPL"},
    )

    body = response.json()
    assert body["lang"] == "ZPL"
    assert f"^FD{'x' * 50}^FS" in body["program"]
    assert "^FDNO-SKU^FS" in body["program"]


def test_render_card_unknown_lang(client):
    response = client.post("/api/v1/labels/render", json={"printerLang": "EPL"})
    assert response.status_code == 422
