import pytest

TOO_BIG = "99999999999999999999"


def _buy(client, headers, material_id, cliente, *, fecha="2024-03-01"):
    response = client.post(
        "/api/compras/materiales",
        json={
            "material_id": material_id,
            "fecha": fecha,
            "kilos": 1,
            "precio_kilo": 100,
            "tipo_precio": "ordinario",
            "cliente": cliente,
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_wildcards_in_client_filter_match_literally(client, admin_headers, material):
    _buy(client, admin_headers, material["id"], "Juan")
    _buy(client, admin_headers, material["id"], "A_B")

    listed = client.get("/api/compras/materiales", params={"cliente": "_"}, headers=admin_headers).json()
    assert [row["cliente"] for row in listed["compras"]] == ["A_B"]

    percent = client.get("/api/compras/materiales", params={"cliente": "%"}, headers=admin_headers).json()
    assert percent["compras"] == []

    lookup = client.get("/api/compras/clientes/lista", params={"buscar": "%%"}, headers=admin_headers)
    assert lookup.status_code == 200
    assert lookup.json() == []

    assert client.get("/api/compras/clientes/lista", params={"buscar": "a_"}, headers=admin_headers).json() == ["A_B"]


def test_wildcards_in_material_search_match_literally(client, admin_headers):
    response = client.get("/api/materiales/buscar/lista", params={"buscar": "__"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.parametrize(
    ("path", "params"),
    [
        ("/api/materiales", {"pagina": TOO_BIG}),
        ("/api/materiales", {"pagina": "9223372036854775807", "limite": "100"}),
        (f"/api/materiales/{TOO_BIG}", {}),
        ("/api/compras/materiales", {"material_id": TOO_BIG}),
        (f"/api/ventas/{TOO_BIG}", {}),
        (f"/api/gastos/categorias/{TOO_BIG}", {}),
    ],
)
def test_out_of_range_integers_are_bad_requests(client, admin_headers, path, params):
    response = client.get(path, params=params, headers=admin_headers)
    assert response.status_code == 400
    assert "error" in response.json()


def test_out_of_range_body_id_is_a_bad_request(client, admin_headers):
    response = client.post(
        "/api/ventas",
        json={"material_id": 2**63, "fecha": "2024-01-16", "kilos": 1, "precio_kilo": 1},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_summary_totals_are_rounded_to_cents(client, admin_headers, material):
    for price in (0.1, 0.2):
        response = client.post(
            "/api/ventas",
            json={"material_id": material["id"], "fecha": "2024-01-16", "kilos": 1, "precio_kilo": price, "cliente": "Ana"},
            headers=admin_headers,
        )
        assert response.status_code == 201

    summary = client.get("/api/ventas/estadisticas/resumen", headers=admin_headers).json()
    assert summary["estadisticas_generales"]["total_pesos"] == 0.3
    assert summary["estadisticas_generales"]["promedio_venta"] == 0.15
    assert summary["top_clientes"][0]["total_pesos"] == 0.3
    assert summary["top_materiales"][0]["total_pesos"] == 0.3


def test_expense_summary_totals_are_rounded_to_cents(client, admin_headers):
    categories = client.get("/api/gastos/categorias", headers=admin_headers).json()["categorias"]
    for valor in (0.1, 0.2):
        client.post(
            "/api/gastos",
            json={"categoria_id": categories[0]["id"], "fecha": "2024-01-10", "concepto": "Cafe", "valor": valor},
            headers=admin_headers,
        )

    summary = client.get("/api/gastos/estadisticas/resumen", headers=admin_headers).json()
    assert summary["estadisticas_generales"]["total_gastos"] == 0.3
    assert summary["gastos_por_categoria"][0]["total_gastos"] == 0.3


def test_same_day_purchases_page_without_gaps(client, admin_headers, material):
    created = [_buy(client, admin_headers, material["id"], f"Cliente {n}")["id"] for n in range(7)]

    seen = []
    page = 1
    while True:
        body = client.get(
            "/api/compras/materiales",
            params={"pagina": page, "limite": 3},
            headers=admin_headers,
        ).json()
        assert body["paginacion"]["total"] == 7
        assert body["paginacion"]["totalPages"] == 3
        if not body["compras"]:
            break
        seen.extend(row["id"] for row in body["compras"])
        page += 1

    assert page == 4
    assert len(seen) == len(set(seen)) == 7
    assert set(seen) == set(created)
    assert seen == sorted(created, reverse=True)


def test_expense_category_by_id(client, admin_headers):
    created = client.post("/api/gastos/categorias", json={"nombre": "Fletes"}, headers=admin_headers).json()

    response = client.get(f"/api/gastos/categorias/{created['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["nombre"] == "Fletes"
    assert response.json()["activo"] is True

    missing = client.get("/api/gastos/categorias/999999", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "Categoría no encontrada"
