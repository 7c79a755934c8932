import pytest


@pytest.fixture
def copper_purchase(client, admin_headers, material):
    response = client.post(
        "/api/compras/materiales",
        json={
            "material_id": material["id"],
            "fecha": "2024-01-15",
            "kilos": 1000,
            "precio_kilo": 21,
            "tipo_precio": "camion",
            "cliente": "  Chatarrería Norte ",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_material_purchase_total_is_kilos_times_price(copper_purchase, material):
    assert copper_purchase["total_pesos"] == 21000.0
    assert copper_purchase["material_nombre"] == "Cobre Prueba"
    assert copper_purchase["material_categoria"] == "Pruebas"
    assert copper_purchase["cliente"] == "Chatarrería Norte"


def test_updating_kilos_recomputes_total(client, admin_headers, copper_purchase):
    response = client.put(
        f"/api/compras/materiales/{copper_purchase['id']}",
        json={"kilos": 500},
        headers=admin_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["kilos"] == 500
    assert body["precio_kilo"] == 21
    assert body["total_pesos"] == 10500.0
    assert body["tipo_precio"] == "camion"


def test_material_purchase_filters(client, admin_headers, copper_purchase):
    response = client.get(
        "/api/compras/materiales",
        params={"tipo_precio": "camion", "cliente": "norte", "fecha_inicio": "2024-01-01", "fecha_fin": "2024-01-31"},
        headers=admin_headers,
    )
    body = response.json()
    assert [row["id"] for row in body["compras"]] == [copper_purchase["id"]]
    assert body["paginacion"]["total"] == 1

    other_tariff = client.get("/api/compras/materiales", params={"tipo_precio": "noche"}, headers=admin_headers)
    assert other_tariff.json()["compras"] == []

    bad_tariff = client.get("/api/compras/materiales", params={"tipo_precio": "madrugada"}, headers=admin_headers)
    assert bad_tariff.status_code == 400


def test_general_purchase_crud(client, admin_headers):
    created = client.post(
        "/api/compras/generales",
        json={"fecha": "2024-02-01", "total_pesos": 150000, "tipo_precio": "ordinario"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    purchase_id = created.json()["id"]

    updated = client.put(
        f"/api/compras/generales/{purchase_id}",
        json={"observaciones": "pago en efectivo"},
        headers=admin_headers,
    ).json()
    assert updated["total_pesos"] == 150000
    assert updated["observaciones"] == "pago en efectivo"

    invalid = client.post(
        "/api/compras/generales",
        json={"fecha": "2024-02-01", "total_pesos": 0, "tipo_precio": "ordinario"},
        headers=admin_headers,
    )
    assert invalid.status_code == 400

    deleted = client.delete(f"/api/compras/generales/{purchase_id}", headers=admin_headers)
    assert deleted.json()["accion"] == "eliminado"
    assert client.get(f"/api/compras/generales/{purchase_id}", headers=admin_headers).status_code == 404
    assert client.delete(f"/api/compras/generales/{purchase_id}", headers=admin_headers).status_code == 404


def test_purchase_clients_and_summary(client, admin_headers, copper_purchase):
    client.post(
        "/api/compras/generales",
        json={"fecha": "2024-01-20", "total_pesos": 5000, "tipo_precio": "noche", "cliente": "Chatarrería Sur"},
        headers=admin_headers,
    )

    clients = client.get("/api/compras/clientes/lista", params={"buscar": "chat"}, headers=admin_headers).json()
    assert clients == ["Chatarrería Norte", "Chatarrería Sur"]

    only_general = client.get(
        "/api/compras/clientes/lista",
        params={"buscar": "chat", "tipo": "general"},
        headers=admin_headers,
    ).json()
    assert only_general == ["Chatarrería Sur"]

    summary = client.get(
        "/api/compras/estadisticas/resumen",
        params={"fecha_inicio": "2024-01-01", "fecha_fin": "2024-01-31"},
        headers=admin_headers,
    ).json()
    assert summary["total_compras"] == 26000
    assert summary["top_materiales"][0]["nombre"] == "Cobre Prueba"


def test_sales_flow(client, admin_headers, material):
    created = client.post(
        "/api/ventas",
        json={
            "material_id": material["id"],
            "fecha": "2024-01-16",
            "kilos": 800,
            "precio_kilo": 26.5,
            "cliente": "Fundición Andes",
        },
        headers=admin_headers,
    )
    assert created.status_code == 201
    sale = created.json()
    assert sale["total_pesos"] == 21200.0

    listed = client.get("/api/ventas", params={"material_id": material["id"]}, headers=admin_headers).json()
    assert [row["id"] for row in listed["ventas"]] == [sale["id"]]

    clients = client.get("/api/ventas/clientes/lista", params={"buscar": "fun"}, headers=admin_headers).json()
    assert clients == ["Fundición Andes"]

    summary = client.get("/api/ventas/estadisticas/resumen", headers=admin_headers).json()
    assert summary["top_clientes"][0]["cliente"] == "Fundición Andes"

    missing_material = client.post(
        "/api/ventas",
        json={"material_id": 999999, "fecha": "2024-01-16", "kilos": 1, "precio_kilo": 1},
        headers=admin_headers,
    )
    assert missing_material.status_code == 404

    assert client.delete(f"/api/ventas/{sale['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/ventas/{sale['id']}", headers=admin_headers).status_code == 404


def test_expense_categories_route_is_not_an_expense_id(client, admin_headers):
    response = client.get("/api/gastos/categorias", headers=admin_headers)
    assert response.status_code == 200
    names = [row["nombre"] for row in response.json()["categorias"]]
    assert names == sorted(names)
    assert "Sueldos" in names


def test_expense_flow(client, admin_headers):
    category = client.post(
        "/api/gastos/categorias",
        json={"nombre": "Peajes", "descripcion": "Peajes de ruta"},
        headers=admin_headers,
    )
    assert category.status_code == 201
    category_id = category.json()["id"]

    duplicate = client.post("/api/gastos/categorias", json={"nombre": "Peajes"}, headers=admin_headers)
    assert duplicate.status_code == 409

    expense = client.post(
        "/api/gastos",
        json={"categoria_id": category_id, "fecha": "2024-01-10", "concepto": "Peaje norte", "valor": 12500},
        headers=admin_headers,
    )
    assert expense.status_code == 201
    assert expense.json()["categoria_nombre"] == "Peajes"

    found = client.get("/api/gastos", params={"buscar": "norte"}, headers=admin_headers).json()
    assert found["paginacion"]["total"] == 1

    removed = client.delete(f"/api/gastos/categorias/{category_id}", headers=admin_headers)
    assert removed.json()["accion"] == "desactivado"

    inactive = client.post(
        "/api/gastos",
        json={"categoria_id": category_id, "fecha": "2024-01-11", "concepto": "Peaje sur", "valor": 12500},
        headers=admin_headers,
    )
    assert inactive.status_code == 404
    assert inactive.json()["error"] == "Categoría no encontrada o inactiva"

    summary = client.get("/api/gastos/estadisticas/resumen", headers=admin_headers).json()
    assert summary["estadisticas_generales"]["total_gastos"] == 12500
    assert summary["gastos_por_categoria"][0]["categoria"] == "Peajes"


def test_fractional_kilos_total(client, admin_headers, material):
    response = client.post(
        "/api/compras/materiales",
        json={
            "material_id": material["id"],
            "fecha": "2024-01-01",
            "kilos": 10.5,
            "precio_kilo": 2000,
            "tipo_precio": "ordinario",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["total_pesos"] == 21000.0

    deleted = client.delete(f"/api/materiales/{material['id']}", headers=admin_headers).json()
    assert deleted["accion"] == "desactivado"
    assert client.get(f"/api/materiales/{material['id']}", headers=admin_headers).json()["activo"] is False
