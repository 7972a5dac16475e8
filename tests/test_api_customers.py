"""API tests for customers, vehicles and suppliers."""


class TestCustomers:
    def test_create_and_get(self, client):
        resp = client.post("/api/customers", json={"name": "  Bob Jones ", "phone": "01234 567890", "email": ""})
        assert resp.status_code == 201
        created = resp.get_json()
        assert created["name"] == "Bob Jones"
        assert created["email"] is None

        resp = client.get(f"/api/customers/{created['id']}")
        assert resp.status_code == 200
        assert resp.get_json()["phone"] == "01234 567890"

    def test_name_required(self, client):
        resp = client.post("/api/customers", json={"email": "x@example.com"})
        assert resp.status_code == 400
        assert resp.get_json()["errors"] == {"name": "field required"}

    def test_body_must_be_object(self, client):
        resp = client.post("/api/customers", json=["Alice"])
        assert resp.status_code == 400

    def test_missing_customer_is_404(self, client):
        resp = client.get("/api/customers/does-not-exist")
        assert resp.status_code == 404
        assert resp.get_json()["message"] == "Customer not found"

    def test_partial_update(self, client, customer):
        resp = client.put(f"/api/customers/{customer['id']}", json={"phone": "07700 900123"})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["phone"] == "07700 900123"
        assert body["name"] == "Alice"
        assert body["email"] == "alice@example.com"

    def test_update_cannot_clear_name(self, client, customer):
        resp = client.put(f"/api/customers/{customer['id']}", json={"name": ""})
        assert resp.status_code == 400

    def test_search(self, client, customer):
        client.post("/api/customers", json={"name": "Bob"})
        resp = client.get("/api/customers?search=ali")
        assert [c["name"] for c in resp.get_json()] == ["Alice"]

    def test_delete_cascades_vehicles(self, client, customer, vehicle):
        resp = client.delete(f"/api/customers/{customer['id']}")
        assert resp.status_code == 204
        assert client.get(f"/api/vehicles/{vehicle['id']}").status_code == 404

    def test_delete_refused_while_jobs_exist(self, client, customer, vehicle):
        client.post(
            "/api/jobs",
            json={"customerId": customer["id"], "vehicleId": vehicle["id"], "title": "MOT"},
        )
        resp = client.delete(f"/api/customers/{customer['id']}")
        assert resp.status_code == 400
        assert client.get(f"/api/customers/{customer['id']}").status_code == 200


class TestVehicles:
    def test_customer_vehicles(self, client, customer, vehicle):
        resp = client.get(f"/api/customers/{customer['id']}/vehicles")
        assert resp.status_code == 200
        assert [v["id"] for v in resp.get_json()] == [vehicle["id"]]

    def test_vehicle_requires_existing_customer(self, client):
        resp = client.post("/api/vehicles", json={"customerId": "nope", "make": "Ford", "model": "Ka", "year": 2010})
        assert resp.status_code == 400
        assert "customerId" in resp.get_json()["errors"]

    def test_year_is_validated(self, client, customer):
        resp = client.post(
            "/api/vehicles",
            json={"customerId": customer["id"], "make": "Ford", "model": "Ka", "year": "soon"},
        )
        assert resp.status_code == 400

    def test_list_includes_customer(self, client, vehicle):
        listed = client.get("/api/vehicles").get_json()
        assert listed[0]["customer"]["name"] == "Alice"


class TestSuppliers:
    def test_crud(self, client):
        resp = client.post("/api/suppliers", json={"name": "Motor Factors", "contactName": "Dev"})
        assert resp.status_code == 201
        supplier_id = resp.get_json()["id"]

        resp = client.put(f"/api/suppliers/{supplier_id}", json={"website": "https://motorfactors.example"})
        assert resp.get_json()["contactName"] == "Dev"
        assert resp.get_json()["website"] == "https://motorfactors.example"

        assert client.delete(f"/api/suppliers/{supplier_id}").status_code == 204
        assert client.get(f"/api/suppliers/{supplier_id}").status_code == 404

    def test_delete_refused_with_purchase_orders(self, client, supplier):
        client.post("/api/purchase-orders", json={"supplierId": supplier["id"], "items": []})
        resp = client.delete(f"/api/suppliers/{supplier['id']}")
        assert resp.status_code == 400
