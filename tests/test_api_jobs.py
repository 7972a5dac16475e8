"""API tests for jobs, job parts and quotes."""

from decimal import Decimal

from wrenchd.extensions import db
from wrenchd.models import AuditLog, JobPart


def _oil_change(client, customer, vehicle, **extra):
    payload = {
        "customerId": customer["id"],
        "vehicleId": vehicle["id"],
        "title": "Oil Change",
        "laborHours": "1",
        "laborRate": "50",
        "jobParts": [{"partName": "Oil Filter", "partNumber": "OF-100", "quantity": 2, "unitPrice": "8.00"}],
    }
    payload.update(extra)
    return client.post("/api/jobs", json=payload)


class TestJobPricing:
    def test_oil_change_scenario(self, client, customer, vehicle):
        resp = _oil_change(client, customer, vehicle)
        assert resp.status_code == 201
        job = resp.get_json()

        assert job["partsTotal"] == "16.00"
        assert job["laborTotal"] == "50.00"
        assert job["totalAmount"] == "66.00"
        assert job["status"] == "scheduled"
        assert job["jobNumber"].startswith("JOB-")
        assert [p["totalPrice"] for p in job["parts"]] == ["16.00"]

    def test_matching_client_totals_accepted(self, client, customer, vehicle):
        resp = _oil_change(client, customer, vehicle, partsTotal="16.00", laborTotal="50.00", totalAmount="66.00")
        assert resp.status_code == 201

    def test_mismatched_client_totals_rejected(self, client, customer, vehicle):
        resp = _oil_change(client, customer, vehicle, totalAmount="60.00")
        assert resp.status_code == 400
        assert "totalAmount" in resp.get_json()["errors"]
        assert client.get("/api/jobs").get_json() == []

    def test_numbers_accepted_for_money(self, client, customer, vehicle):
        resp = _oil_change(client, customer, vehicle, laborHours=1.5, laborRate=33.33)
        assert resp.get_json()["laborTotal"] == "50.00"

    def test_bad_part_quantity_rejected(self, client, customer, vehicle):
        resp = _oil_change(
            client, customer, vehicle,
            jobParts=[{"partName": "Oil Filter", "quantity": 0, "unitPrice": "8.00"}],
        )
        assert resp.status_code == 400
        assert "jobParts.0.quantity" in resp.get_json()["errors"]

    def test_negative_unit_price_rejected(self, client, customer, vehicle):
        resp = _oil_change(
            client, customer, vehicle,
            jobParts=[{"partName": "Oil Filter", "quantity": 1, "unitPrice": "-1"}],
        )
        assert resp.status_code == 400

    def test_sub_cent_unit_price_keeps_line_total_consistent(self, client, customer, vehicle):
        resp = _oil_change(
            client, customer, vehicle,
            jobParts=[{"partName": "Split Pin", "quantity": 3, "unitPrice": "0.335"}],
        )
        assert resp.status_code == 201
        part = resp.get_json()["parts"][0]
        assert (part["unitPrice"], part["totalPrice"]) == ("0.34", "1.02")
        assert resp.get_json()["partsTotal"] == "1.02"

    def test_labour_total_matches_stored_hours_and_rate(self, client, customer, vehicle):
        job = _oil_change(client, customer, vehicle, laborHours="1.555", laborRate="10.00").get_json()

        stored = client.get(f"/api/jobs/{job['id']}").get_json()
        assert (stored["laborHours"], stored["laborRate"]) == ("1.56", "10.00")
        assert stored["laborTotal"] == "15.60"
        assert Decimal(stored["laborTotal"]) == Decimal(stored["laborHours"]) * Decimal(stored["laborRate"])

    def test_values_beyond_column_range_rejected(self, client, customer, vehicle):
        resp = _oil_change(client, customer, vehicle, laborHours="100000")
        assert resp.status_code == 400
        assert "laborHours" in resp.get_json()["errors"]

        resp = _oil_change(
            client, customer, vehicle,
            jobParts=[{"partName": "Oil Filter", "quantity": 1, "unitPrice": "1e40"}],
        )
        assert resp.status_code == 400
        assert "jobParts.0.unitPrice" in resp.get_json()["errors"]

        resp = _oil_change(
            client, customer, vehicle,
            jobParts=[{"partName": "Oil Filter", "quantity": 2, "unitPrice": "99999999.99"}],
        )
        assert resp.status_code == 400
        assert client.get("/api/jobs").get_json() == []

    def test_vehicle_must_belong_to_customer(self, client, customer, vehicle):
        other = client.post("/api/customers", json={"name": "Bob"}).get_json()
        resp = client.post(
            "/api/jobs",
            json={"customerId": other["id"], "vehicleId": vehicle["id"], "title": "Tyres"},
        )
        assert resp.status_code == 400


class TestJobUpdates:
    def test_replacing_parts_recomputes_totals(self, client, customer, vehicle):
        job = _oil_change(client, customer, vehicle).get_json()
        resp = client.put(
            f"/api/jobs/{job['id']}",
            json={
                "jobParts": [
                    {"partName": "Oil Filter", "quantity": 1, "unitPrice": "8.00"},
                    {"partName": "5W-30 Oil 5L", "quantity": 1, "unitPrice": "32.99"},
                ]
            },
        )
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["partsTotal"] == "40.99"
        assert body["totalAmount"] == "90.99"
        assert len(body["parts"]) == 2

    def test_labour_change_recomputes_totals(self, client, customer, vehicle):
        job = _oil_change(client, customer, vehicle).get_json()
        body = client.put(f"/api/jobs/{job['id']}", json={"laborHours": "2"}).get_json()
        assert body["laborTotal"] == "100.00"
        assert body["totalAmount"] == "116.00"
        assert body["partsTotal"] == "16.00"

    def test_completing_sets_completed_date(self, client, customer, vehicle):
        job = _oil_change(client, customer, vehicle).get_json()
        body = client.put(f"/api/jobs/{job['id']}", json={"status": "completed"}).get_json()
        assert body["status"] == "completed"
        assert body["completedDate"] is not None

    def test_invalid_status(self, client, customer, vehicle):
        job = _oil_change(client, customer, vehicle).get_json()
        assert client.put(f"/api/jobs/{job['id']}", json={"status": "finished"}).status_code == 400

    def test_jobs_by_status(self, client, customer, vehicle):
        _oil_change(client, customer, vehicle)
        assert len(client.get("/api/jobs/status/scheduled").get_json()) == 1
        assert client.get("/api/jobs/status/in_progress").get_json() == []
        assert client.get("/api/jobs/status/bogus").status_code == 400


class TestJobParts:
    def test_add_update_delete_part_keeps_totals_in_sync(self, client, customer, vehicle):
        job = _oil_change(client, customer, vehicle).get_json()

        resp = client.post(
            f"/api/jobs/{job['id']}/parts",
            json={"partName": "Sump Washer", "quantity": 1, "unitPrice": "0.75"},
        )
        assert resp.status_code == 201
        part = resp.get_json()
        assert client.get(f"/api/jobs/{job['id']}").get_json()["partsTotal"] == "16.75"

        resp = client.put(f"/api/job-parts/{part['id']}", json={"quantity": 4})
        assert resp.status_code == 200
        assert resp.get_json()["totalPrice"] == "3.00"
        assert resp.get_json()["partName"] == "Sump Washer"
        assert client.get(f"/api/jobs/{job['id']}").get_json()["totalAmount"] == "69.00"

        assert client.delete(f"/api/job-parts/{part['id']}").status_code == 204
        refreshed = client.get(f"/api/jobs/{job['id']}").get_json()
        assert refreshed["partsTotal"] == "16.00"
        assert len(client.get(f"/api/jobs/{job['id']}/parts").get_json()) == 1

    def test_delete_job_removes_parts(self, client, customer, vehicle):
        job = _oil_change(client, customer, vehicle).get_json()
        assert db.session.query(JobPart).filter_by(job_id=job["id"]).count() == 1

        assert client.delete(f"/api/jobs/{job['id']}").status_code == 204

        assert client.get(f"/api/jobs/{job['id']}").status_code == 404
        assert db.session.query(JobPart).filter_by(job_id=job["id"]).count() == 0

    def test_mutations_are_audited(self, client, customer, vehicle):
        job = _oil_change(client, customer, vehicle).get_json()
        client.delete(f"/api/jobs/{job['id']}")

        actions = [
            row.action
            for row in AuditLog.query.filter_by(entity_type="Job", entity_id=job["id"]).order_by(AuditLog.id).all()
        ]
        assert actions == ["CREATE", "DELETE"]


class TestQuotes:
    def test_quote_pricing_and_update(self, client, customer, vehicle):
        resp = client.post(
            "/api/quotes",
            json={
                "customerId": customer["id"],
                "vehicleId": vehicle["id"],
                "title": "Front brakes",
                "laborHours": "1.5",
                "laborRate": "60",
                "quoteParts": [{"partName": "Brake Pads", "quantity": 1, "unitPrice": "42.50"}],
            },
        )
        assert resp.status_code == 201
        quote = resp.get_json()
        assert quote["status"] == "pending"
        assert quote["totalAmount"] == "132.50"

        resp = client.put(f"/api/quotes/{quote['id']}", json={"status": "accepted"})
        assert resp.get_json()["status"] == "accepted"
        assert resp.get_json()["totalAmount"] == "132.50"

        assert client.delete(f"/api/quotes/{quote['id']}").status_code == 204
        assert client.get(f"/api/quotes/{quote['id']}").status_code == 404
