import io
import zipfile


def _seed_cortes(store):
    store.tables["CortesMexico"] = [
        {"fecha": "2024-03-02 09:00:00", "hora": "2024-03-02 09:00:00", "corte": 2, "totentreg": "100.005"},
        {"fecha": "2024-03-01 09:00:00", "hora": "2024-03-01 09:00:00", "corte": 1, "totentreg": 50},
    ]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_sucursales_lists_general_first(client):
    body = client.get("/sucursales").json()
    assert body["sucursales"][0]["value"] == "General"
    assert len(body["sucursales"]) == 8
    assert "VENTA DE CAJA" in body["movimientos_kardex"]


def test_rango_fechas(client):
    body = client.get("/rango-fechas").json()
    assert body["estado"] == "ready"
    assert body["inicio"] == "2024-03-01 00:00:00"


def test_reporte_cortes(client, store):
    _seed_cortes(store)
    response = client.get("/reportes/cortes", params={"sucursal": "Mexico"})
    assert response.status_code == 200
    body = response.json()
    assert body["estado"] == "ready"
    assert body["total_registros"] == 2
    assert body["filas"][0]["totentreg"] == 100.01
    assert body["totales_por_fecha"][0]["fecha"] == "2024-03-02"


def test_reporte_search(client, store):
    _seed_cortes(store)
    body = client.get("/reportes/cortes", params={"sucursal": "Mexico", "buscar": "2024-03-01"}).json()
    assert [r["corte"] for r in body["filas"]] == [1]


def test_reporte_general_is_degraded_when_a_branch_fails(client, store):
    _seed_cortes(store)
    store.failing.add("CortesBaja")
    body = client.get("/reportes/cortes", params={"sucursal": "General"}).json()
    assert body["status"] == "degraded"
    assert body["total_registros"] is None
    assert [r["sucursal_nombre"] for r in body["filas"]] == ["Mexico", "Mexico"]


def test_unknown_report_and_branch(client):
    assert client.get("/reportes/ventas").status_code == 404
    assert client.get("/reportes/cortes", params={"sucursal": "Narnia"}).status_code == 400
    assert client.get("/reportes/cortes", params={"pagina": 0}).status_code == 422


def test_resumen_ventas(client, store):
    store.tables["KardexMexico"] = [
        {"fecha": "2024-03-02", "hora": "", "movto": "1", "cantidad": 3, "costo": 1.005, "ppub": 2},
        {"fecha": "2024-03-03", "hora": "", "movto": "1", "cantidad": 1, "costo": 1.005, "ppub": 2},
        {"fecha": "2024-03-03", "hora": "", "movto": "4", "cantidad": 50, "costo": 9, "ppub": 9},
    ]
    body = client.get("/reportes/ventas/resumen", params={"sucursal": "Mexico"}).json()
    assert body["registros"] == 2
    assert body["totales"]["cost_sum"] == 4.02
    assert body["totales"]["margin_sum"] == 3.98


def test_pass_download(client, passkit_dir):
    response = client.get("/api/passkit/v1/passes/pass.com.example.lealtad/C-00027")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/vnd.apple.pkpass"
    assert response.headers["content-disposition"] == "attachment; filename=tarjeta-C-00027.pkpass"
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert "signature" in archive.namelist()


def test_pass_query_string_form(client, passkit_dir):
    response = client.get("/api/passkit/v1/passes", params={
        "passTypeIdentifier": "pass.com.example.lealtad",
        "serialNumber": "C-1",
    })
    assert response.status_code == 200


def test_pass_failure_returns_json_error(client):
    response = client.get("/api/passkit/v1/passes/pass.com.example.lealtad/C-00027")
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Error generando pase"
    assert "model.pass" in body["detail"]


def test_pass_without_serial_number_is_a_json_error(client, passkit_dir):
    response = client.get("/api/passkit/v1/passes", params={"passTypeIdentifier": "pass.x"})
    assert response.status_code == 500
    assert response.json() == {"error": "Error generando pase", "detail": "serialNumber es obligatorio"}
