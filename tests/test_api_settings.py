"""API tests for business settings, templates, service bays, documents and the dashboard."""

from config import TestingConfig
from wrenchd import create_app


class TestBusinessSettings:
    def test_defaults_created_on_first_read(self, client):
        first = client.get("/api/settings/business").get_json()
        second = client.get("/api/settings/business").get_json()
        assert first["businessName"] == "WRENCH'D Auto Repairs"
        assert first["currency"] == "GBP"
        assert first["id"] == second["id"]

    def test_update(self, client):
        resp = client.put("/api/settings/business", json={"businessPhone": "0161 000 0000", "currency": "eur"})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["businessPhone"] == "0161 000 0000"
        assert body["currency"] == "EUR"
        assert body["businessName"] == "WRENCH'D Auto Repairs"

    def test_invalid_layout(self, client):
        assert client.put("/api/settings/business", json={"logoPosition": "top"}).status_code == 400


class TestTemplates:
    def _create(self, client, name, active=False):
        resp = client.post(
            "/api/templates",
            json={"name": name, "templateType": "quote", "content": {"footer": name}, "isActive": active},
        )
        assert resp.status_code == 201
        return resp.get_json()

    def test_only_one_active_per_type(self, client):
        first = self._create(client, "Classic", active=True)
        second = self._create(client, "Modern")

        assert client.get("/api/templates/active/quote").get_json()["id"] == first["id"]

        resp = client.post(f"/api/templates/{second['id']}/activate")
        assert resp.status_code == 200

        templates = {t["id"]: t for t in client.get("/api/templates?type=quote").get_json()}
        assert templates[second["id"]]["isActive"] is True
        assert templates[first["id"]]["isActive"] is False
        assert client.get("/api/templates/active/quote").get_json()["id"] == second["id"]

    def test_no_active_template(self, client):
        assert client.get("/api/templates/active/receipt").status_code == 404
        assert client.get("/api/templates/active/invoice").status_code == 400

    def test_update_and_delete(self, client):
        template = self._create(client, "Classic")
        resp = client.put(f"/api/templates/{template['id']}", json={"name": "Classic v2"})
        assert resp.get_json()["name"] == "Classic v2"
        assert resp.get_json()["content"] == {"footer": "Classic"}
        assert client.delete(f"/api/templates/{template['id']}").status_code == 204


class TestServiceBays:
    def test_crud(self, client):
        resp = client.post("/api/service-bays", json={"name": "Bay 1"})
        assert resp.status_code == 201
        bay = resp.get_json()
        assert bay["color"] == "#3B82F6"
        assert bay["isActive"] is True

        assert client.post("/api/service-bays", json={"name": "Bay 1"}).status_code == 400
        assert client.post("/api/service-bays", json={"name": "Bay 2", "color": "blue"}).status_code == 400

        resp = client.put(f"/api/service-bays/{bay['id']}", json={"isActive": False})
        assert resp.get_json()["isActive"] is False
        assert client.get("/api/service-bays?active=true").get_json() == []

        assert client.delete(f"/api/service-bays/{bay['id']}").status_code == 204

    def test_deleting_bay_unassigns_jobs(self, client, customer, vehicle):
        bay = client.post("/api/service-bays", json={"name": "Lift A"}).get_json()
        job = client.post(
            "/api/jobs",
            json={"customerId": customer["id"], "vehicleId": vehicle["id"], "title": "Tyres", "serviceBayId": bay["id"]},
        ).get_json()
        assert job["serviceBayId"] == bay["id"]

        client.delete(f"/api/service-bays/{bay['id']}")
        assert client.get(f"/api/jobs/{job['id']}").get_json()["serviceBayId"] is None


class TestGeneratePdf:
    def test_receipt_for_job_reuses_number(self, client, customer, vehicle):
        job = client.post(
            "/api/jobs",
            json={
                "customerId": customer["id"],
                "vehicleId": vehicle["id"],
                "title": "Oil Change",
                "laborHours": "1",
                "laborRate": "50",
                "jobParts": [{"partName": "Oil Filter", "quantity": 2, "unitPrice": "8.00"}],
            },
        ).get_json()

        resp = client.post("/api/generate-pdf", json={"type": "receipt", "id": job["id"]})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["data"]["total"] == "66.00"
        assert body["data"]["customer"]["name"] == "Alice"
        assert body["data"]["business"]["businessName"] == "WRENCH'D Auto Repairs"

        again = client.post("/api/generate-pdf", json={"type": "receipt", "id": job["id"]}).get_json()
        assert again["data"]["receiptNumber"] == body["data"]["receiptNumber"]
        assert len(client.get("/api/receipts").get_json()) == 1

    def test_purchase_order_document(self, client, supplier, oil_filter):
        order = client.post(
            "/api/purchase-orders",
            json={
                "supplierId": supplier["id"],
                "items": [{"inventoryItemId": oil_filter["id"], "itemName": "Oil Filter", "quantity": 2, "unitPrice": "4.50"}],
            },
        ).get_json()

        data = client.post("/api/generate-pdf", json={"type": "purchase-order", "id": order["id"]}).get_json()["data"]
        assert data["supplier"]["name"] == "Parts Direct Ltd"
        assert (data["subtotal"], data["tax"], data["total"]) == ("9.00", "1.80", "10.80")

    def test_errors(self, client):
        assert client.post("/api/generate-pdf", json={"type": "invoice", "id": "x"}).status_code == 400
        assert client.post("/api/generate-pdf", json={"type": "quote", "id": "missing"}).status_code == 404
        assert client.post("/api/generate-pdf", json={"type": "quote"}).status_code == 400


class TestReceipts:
    def test_archive(self, client, customer, vehicle):
        job = client.post(
            "/api/jobs",
            json={"customerId": customer["id"], "vehicleId": vehicle["id"], "title": "Diagnostics"},
        ).get_json()
        client.post("/api/generate-pdf", json={"type": "receipt", "id": job["id"]})
        receipt = client.get("/api/receipts").get_json()[0]

        resp = client.post(f"/api/receipts/{receipt['id']}/archive")
        assert resp.get_json()["archived"] is True
        assert resp.get_json()["archivedAt"] is not None
        assert client.get("/api/receipts").get_json() == []
        assert len(client.get("/api/receipts?archived=true").get_json()) == 1


class TestDashboard:
    def test_stats(self, client, customer, vehicle, oil_filter):
        job = client.post(
            "/api/jobs",
            json={
                "customerId": customer["id"],
                "vehicleId": vehicle["id"],
                "title": "Oil Change",
                "laborHours": "1",
                "laborRate": "50",
                "jobParts": [{"partName": "Oil Filter", "quantity": 2, "unitPrice": "8.00"}],
            },
        ).get_json()
        client.put(f"/api/jobs/{job['id']}", json={"status": "completed"})
        client.put(f"/api/inventory/{oil_filter['id']}", json={"quantity": 2})

        stats = client.get("/api/dashboard/stats").get_json()
        assert stats["customersCount"] == 1
        assert stats["vehiclesCount"] == 1
        assert stats["jobsCount"] == 1
        assert stats["completedJobsCount"] == 1
        assert stats["activeJobsCount"] == 0
        assert stats["totalRevenue"] == "66.00"
        assert stats["lowStockCount"] == 1
        assert stats["lowStockItems"][0]["name"] == "Oil Filter"
        assert stats["recentJobs"][0]["id"] == job["id"]


class TestCsrf:
    def test_token_endpoint_and_enforcement(self):
        class CsrfConfig(TestingConfig):
            WTF_CSRF_ENABLED = True

        app = create_app(CsrfConfig)
        from wrenchd.extensions import db

        with app.app_context():
            db.create_all()
            client = app.test_client()

            assert client.post("/api/customers", json={"name": "Alice"}).status_code == 400

            token = client.get("/api/csrf-token").get_json()["csrfToken"]
            resp = client.post("/api/customers", json={"name": "Alice"}, headers={"X-CSRFToken": token})
            assert resp.status_code == 201
            db.drop_all()


def test_health(client):
    assert client.get("/").get_json() == {"name": "WRENCH'D Auto Repairs", "status": "ok"}


def test_seed_command_is_idempotent(app, client):
    runner = app.test_cli_runner()
    assert "seeded" in runner.invoke(args=["seed"]).output
    runner.invoke(args=["seed"])

    bays = client.get("/api/service-bays").get_json()
    assert [b["name"] for b in bays] == ["Bay 1", "Bay 2", "MOT Bay"]
