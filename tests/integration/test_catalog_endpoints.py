"""Test procedure, customer and financial entry endpoints."""


class TestProcedures:

    def test_crud(self, client, auth_headers):
        created = client.post(
            "/api/v1/procedures",
            json={"name": "Epilação de Buço", "duration": 10, "price": 10.0},
            headers=auth_headers
        )
        assert created.status_code == 201
        procedure_id = created.json()["id"]

        updated = client.put(
            f"/api/v1/procedures/{procedure_id}",
            json={"is_promo": True, "promo_price": 8.0},
            headers=auth_headers
        )
        assert updated.status_code == 200
        assert updated.json()["promo_price"] == 8.0
        assert updated.json()["name"] == "Epilação de Buço"

        listed = client.get("/api/v1/procedures", headers=auth_headers).json()
        assert [p["id"] for p in listed] == [procedure_id]

        assert client.delete(f"/api/v1/procedures/{procedure_id}", headers=auth_headers).status_code == 204
        missing = client.get(f"/api/v1/procedures/{procedure_id}", headers=auth_headers)
        assert missing.status_code == 404
        assert missing.json()["code"] == "NOT_FOUND"

    def test_rejects_invalid_duration(self, client, auth_headers):
        response = client.post(
            "/api/v1/procedures",
            json={"name": "Nada", "duration": 0, "price": 10.0},
            headers=auth_headers
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestCustomers:

    def test_create_with_tags_and_list_unique_tags(self, client, auth_headers):
        client.post(
            "/api/v1/customers",
            json={"name": "Ana", "tags": ["VIP", "Noiva"]},
            headers=auth_headers
        )
        created = client.post(
            "/api/v1/customers",
            json={"name": "Bia", "phone": "11 98888-0000", "tags": ["vip"]},
            headers=auth_headers
        )
        assert created.status_code == 201
        assert created.json()["tags"] == [{"id": "vip", "name": "vip"}]

        tags = client.get("/api/v1/customers/tags", headers=auth_headers).json()
        assert [t["id"] for t in tags] == ["noiva", "vip"]

    def test_update_and_delete(self, client, auth_headers):
        customer_id = client.post("/api/v1/customers", json={"name": "Ana"}, headers=auth_headers).json()["id"]

        updated = client.put(
            f"/api/v1/customers/{customer_id}",
            json={"notes": "Alergia a henna", "tags": ["Pele Sensível"]},
            headers=auth_headers
        ).json()
        assert updated["notes"] == "Alergia a henna"
        assert updated["tags"] == [{"id": "pele-sensível", "name": "Pele Sensível"}]

        assert client.delete(f"/api/v1/customers/{customer_id}", headers=auth_headers).status_code == 204
        assert client.delete(f"/api/v1/customers/{customer_id}", headers=auth_headers).status_code == 404


class TestFinancialEntries:

    def test_create_list_delete(self, client, auth_headers):
        created = client.post(
            "/api/v1/financial-entries",
            json={"type": "expense", "description": "Material", "amount": 45.5, "date": "2024-05-03"},
            headers=auth_headers
        )
        assert created.status_code == 201
        entry_id = created.json()["id"]

        listed = client.get("/api/v1/financial-entries?year=2024&month=5", headers=auth_headers).json()
        assert [e["id"] for e in listed] == [entry_id]

        assert client.delete(f"/api/v1/financial-entries/{entry_id}", headers=auth_headers).status_code == 204
        assert client.get("/api/v1/financial-entries?year=2024&month=5", headers=auth_headers).json() == []

    def test_rejects_non_positive_amount(self, client, auth_headers):
        response = client.post(
            "/api/v1/financial-entries",
            json={"type": "income", "amount": 0, "date": "2024-05-03"},
            headers=auth_headers
        )

        assert response.status_code == 422
