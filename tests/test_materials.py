from core import schema


def test_seeded_catalog_is_paginated(client, admin_headers):
    response = client.get("/api/materiales", params={"pagina": "2", "limite": "10"}, headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert len(body["materiales"]) == 10
    assert body["paginacion"] == {
        "page": 2,
        "pageSize": 10,
        "total": len(schema.SEED_MATERIALS),
        "totalPages": 7,
    }


def test_pages_do_not_overlap(client, admin_headers):
    seen = []
    for page in range(1, 8):
        body = client.get("/api/materiales", params={"pagina": page, "limite": 10}, headers=admin_headers).json()
        seen.extend(row["id"] for row in body["materiales"])
    assert len(seen) == len(set(seen)) == len(schema.SEED_MATERIALS)


def test_filters(client, admin_headers):
    body = client.get("/api/materiales", params={"categoria": "Vidrios"}, headers=admin_headers).json()
    assert [row["nombre"] for row in body["materiales"]] == ["Clausen", "Vidrio"]

    body = client.get("/api/materiales", params={"buscar": "cobre"}, headers=admin_headers).json()
    assert {row["nombre"] for row in body["materiales"]} == {"Cobre #1", "Cobre #2", "Radiador de Cobre"}

    response = client.get("/api/materiales", params={"limite": "abc"}, headers=admin_headers)
    assert response.status_code == 400
    assert "error" in response.json()


def test_duplicate_name_is_a_conflict(client, admin_headers, material):
    response = client.post(
        "/api/materiales",
        json={"nombre": "cobre prueba", "categoria": "Otra"},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "Ya existe un material con ese nombre"


def test_partial_update_keeps_other_fields(client, admin_headers, material):
    response = client.put(
        f"/api/materiales/{material['id']}",
        json={"precio_noche": 23000.5},
        headers=admin_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["precio_noche"] == 23000.5
    assert body["precio_ordinario"] == 20000
    assert body["nombre"] == "Cobre Prueba"

    clash = client.put(f"/api/materiales/{material['id']}", json={"nombre": "PET"}, headers=admin_headers)
    assert clash.status_code == 409


def test_unreferenced_material_is_hard_deleted(client, admin_headers, material):
    response = client.delete(f"/api/materiales/{material['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["accion"] == "eliminado"
    assert client.get(f"/api/materiales/{material['id']}", headers=admin_headers).status_code == 404


def test_referenced_material_is_soft_deleted(client, admin_headers, material):
    sale = client.post(
        "/api/ventas",
        json={"material_id": material["id"], "fecha": "2024-03-01", "kilos": 10, "precio_kilo": 25000},
        headers=admin_headers,
    )
    assert sale.status_code == 201

    response = client.delete(f"/api/materiales/{material['id']}", headers=admin_headers)
    assert response.json()["accion"] == "desactivado"

    stored = client.get(f"/api/materiales/{material['id']}", headers=admin_headers)
    assert stored.status_code == 200
    assert stored.json()["activo"] is False

    purchase = client.post(
        "/api/compras/materiales",
        json={
            "material_id": material["id"],
            "fecha": "2024-03-02",
            "kilos": 5,
            "precio_kilo": 100,
            "tipo_precio": "ordinario",
        },
        headers=admin_headers,
    )
    assert purchase.status_code == 404
    assert purchase.json()["error"] == "Material no encontrado o inactivo"


def test_categories_and_search(client, admin_headers):
    categories = client.get("/api/materiales/categorias/lista", headers=admin_headers).json()
    assert categories == sorted(categories)
    assert "Vidrios" in categories

    results = client.get("/api/materiales/buscar/lista", params={"buscar": "ta"}, headers=admin_headers).json()
    names = [row["nombre"] for row in results]
    assert len(names) <= 10
    assert names[0].lower().startswith("ta")

    too_short = client.get("/api/materiales/buscar/lista", params={"buscar": "t"}, headers=admin_headers)
    assert too_short.status_code == 400


def test_bulk_price_update(client, admin_headers, material):
    response = client.put(
        "/api/materiales/categoria/Pruebas/precios",
        json={"precio_ordinario_incremento": 10, "tipo_incremento": "porcentaje"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["materialesActualizados"] == 1

    updated = client.get(f"/api/materiales/{material['id']}", headers=admin_headers).json()
    assert updated["precio_ordinario"] == 22000
    assert updated["precio_camion"] == 21000

    empty = client.put("/api/materiales/categoria/Pruebas/precios", json={}, headers=admin_headers)
    assert empty.status_code == 400
