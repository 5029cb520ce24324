"""
HTTP-level tests: enrollments in, ranked network out.
"""


def _seed(client):
    root = client.post("/enrollments/recruiters", json={"name": "Rodrigo", "code": "1"})
    assert root.status_code == 200
    lead = client.post("/enrollments/", json={"name": "Ana", "city": "Recife", "traffic_source": "01"})
    assert lead.status_code == 200
    return root.json(), lead.json()


class TestMeta:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["ok"] is True

    def test_version(self, client):
        assert client.get("/version").json()["version"]


class TestEnrollments:
    def test_create_fills_payload(self, client):
        r = client.post("/enrollments/", json={"name": "Ana", "phone": "555", "traffic_source": "7"})
        assert r.status_code == 200
        body = r.json()
        assert body["id"] > 0
        assert body["payload"]["nome"] == "Ana"
        assert body["payload"]["telefone"] == "555"
        assert body["payload"]["traffic_source"] == "7"

    def test_explicit_payload_keys_are_kept(self, client):
        r = client.post("/enrollments/", json={"name": "Ana", "payload": {"nome": "Ana Maria"}})
        assert r.json()["payload"]["nome"] == "Ana Maria"

    def test_list_newest_first(self, client):
        _seed(client)
        ids = [e["id"] for e in client.get("/enrollments/").json()]
        assert ids == sorted(ids, reverse=True)
        assert len(client.get("/enrollments/", params={"limit": 1}).json()) == 1

    def test_get_missing(self, client):
        assert client.get("/enrollments/999").status_code == 404

    def test_record_view(self, client):
        _, lead = _seed(client)
        record = client.get(f"/enrollments/{lead['id']}/record").json()
        assert record["kind"] == "lead"
        assert record["parent_code"] == "01"
        assert record["referrer_name"] == "Rodrigo"
        assert record["city"] == "Recife"


class TestRecruiterEnrollment:
    def test_create(self, client):
        r = client.post(
            "/enrollments/recruiters",
            json={"name": "Jane", "code": "3", "parent_code": "01", "level": 1},
        )
        assert r.status_code == 200
        payload = r.json()["payload"]
        assert payload["codigoRecrutador"] == "03"
        assert payload["codigo"] == "03"
        assert payload["isRecruiter"] is True
        assert payload["traffic_source"] == "01"
        assert payload["nivel"] == 1

    def test_duplicate_code_conflicts(self, client):
        assert client.post("/enrollments/recruiters", json={"name": "Jane", "code": "03"}).status_code == 200
        r = client.post("/enrollments/recruiters", json={"name": "Other", "code": "3"})
        assert r.status_code == 409

    def test_bad_code(self, client):
        r = client.post("/enrollments/recruiters", json={"name": "Jane", "code": "abc"})
        assert r.status_code == 400
        assert r.json()["detail"] == "Invalid recruiter code"

    def test_blank_name(self, client):
        assert client.post("/enrollments/recruiters", json={"name": "  ", "code": "5"}).status_code == 400

    def test_negative_level_rejected(self, client):
        assert client.post("/enrollments/recruiters", json={"name": "Jane", "code": "5", "level": -1}).status_code == 422


class TestConfiguredRecruiters:
    def test_list(self, client):
        body = client.get("/recruiters/").json()
        assert len(body) == 34
        assert body[0] == {
            "code": "01",
            "name": "Rodrigo",
            "url": "https://instituto-up-formulario.vercel.app/?source=01",
        }

    def test_lookup_normalizes(self, client):
        assert client.get("/recruiters/7").json()["name"] == "Cely"

    def test_unknown(self, client):
        assert client.get("/recruiters/99").status_code == 404


class TestNetwork:
    def test_tree(self, client):
        root, lead = _seed(client)
        body = client.get("/network").json()

        assert [n["id"] for n in body["roots"]] == [root["id"]]
        top = body["roots"][0]
        assert top["code"] == "01"
        assert lead["id"] in [c["id"] for c in top["children"]]
        assert body["orphans"] == []
        assert body["stats"] == {
            "total": 35,
            "leads": 1,
            "recruiters": 34,
            "virtual_recruiters": 33,
            "orphans": 0,
        }
        assert body["focus"] is None

    def test_recruiters_rank_before_leads_on_ties(self, client):
        root, lead = _seed(client)
        top = client.get("/network").json()["roots"][0]
        # No child has referrals yet, so kind decides.
        assert top["children"][-1]["id"] == lead["id"]
        assert top["direct_lead_count"] == 1
        assert top["direct_recruiter_count"] == 33

    def test_focus(self, client):
        root, lead = _seed(client)
        body = client.get("/network", params={"focus": str(lead["id"])}).json()
        assert body["focus"]["node_id"] == lead["id"]
        assert body["focus"]["path"] == [root["id"], lead["id"]]

    def test_unknown_focus_is_null(self, client):
        _seed(client)
        body = client.get("/network", params={"focus": "-99999"}).json()
        assert body["focus"] is None
        assert len(body["roots"]) == 1

    def test_orphan_lead(self, client):
        client.post("/enrollments/", json={"name": "Lost", "traffic_source": "instagram"})
        body = client.get("/network").json()
        assert [n["display_name"] for n in body["orphans"]] == ["Lost"]
        assert body["stats"]["orphans"] == 1

    def test_network_recruiters(self, client):
        root, _ = _seed(client)
        entries = client.get("/network/recruiters").json()
        assert len(entries) == 34
        assert entries[0]["code"] == "01"
        assert entries[0]["enrollment_id"] == root["id"]
        assert not entries[0]["is_virtual"]
        assert entries[2]["code"] == "03"
        assert entries[2]["is_virtual"]
        assert entries[2]["name"] == "Jane (Cluster 03)"

    def test_recruiter_subtree(self, client):
        root, lead = _seed(client)
        body = client.get("/network/recruiters/01").json()
        assert body["focus"]["node_id"] == root["id"]
        assert body["node"]["total_descendants"] == 34
        assert body["stats"]["total"] == 35

    def test_virtual_recruiter_subtree(self, client):
        root, _ = _seed(client)
        body = client.get("/network/recruiters/03").json()
        assert body["node"]["id"] == -1003
        assert body["node"]["is_virtual"]
        assert body["focus"]["path"] == [root["id"], -1003]

    def test_unknown_recruiter(self, client):
        _seed(client)
        assert client.get("/network/recruiters/999").status_code == 404


class TestDemoSeed:
    def test_seed_is_idempotent(self, client):
        from enrollment_dashboard.database import session_scope
        from enrollment_dashboard.scripts.seed_demo_network import seed_demo_network

        with session_scope() as session:
            assert seed_demo_network(session) == (4, 5)
        with session_scope() as session:
            assert seed_demo_network(session) == (0, 0)

        body = client.get("/network").json()
        assert body["stats"]["total"] == 34 + 5
        assert body["stats"]["virtual_recruiters"] == 30
        assert body["orphans"] == []

        entries = {e["code"]: e for e in client.get("/network/recruiters").json()}
        jane = client.get(f"/network/recruiters/{entries['03']['enrollment_id']}").json()
        assert jane["node"]["display_name"] == "Jane"
        assert jane["node"]["direct_lead_count"] == 2
        assert jane["node"]["direct_recruiter_count"] == 1


class TestMalformedRows:
    def test_oversized_referral_code_does_not_break_network(self, client):
        _seed(client)
        r = client.post("/enrollments/", json={"name": "Spam", "traffic_source": "7" * 5000})
        assert r.status_code == 200

        body = client.get("/network").json()
        assert body["stats"]["orphans"] == 1
        assert client.get("/network", params={"focus": "9" * 5000}).json()["focus"] is None
        assert client.get("/network/recruiters").status_code == 200


class TestOwnCodeIndex:
    def test_imported_code_blocks_recruiter_create(self, client):
        r = client.post("/enrollments/", json={"name": "Imported", "payload": {"codigo_recrutador": "5"}})
        assert r.json()["own_code"] == "05"
        assert client.post("/enrollments/recruiters", json={"name": "Other", "code": "05"}).status_code == 409

    def test_recruiter_create_stores_own_code(self, client):
        r = client.post("/enrollments/recruiters", json={"name": "Jane", "code": "3"})
        assert r.json()["own_code"] == "03"

    def test_backfill_for_rows_without_own_code(self, client):
        from enrollment_dashboard.database import session_scope
        from enrollment_dashboard.models.enrollment import Enrollment
        from enrollment_dashboard.scripts.migrate_enrollment_own_code import (
            backfill_own_codes,
            ensure_own_code_column,
        )
        from enrollment_dashboard.services.enrollment_records import find_enrollment_id_by_own_code

        with session_scope() as session:
            session.add(Enrollment(name="Legacy", payload={"codigo": "08"}))
            session.add(Enrollment(name="Lead", payload={"traffic_source": "08"}))

        with session_scope() as session:
            assert find_enrollment_id_by_own_code(session, "8") is None
            assert ensure_own_code_column(session) is False
            assert backfill_own_codes(session) == 1

        with session_scope() as session:
            assert find_enrollment_id_by_own_code(session, "8") is not None
            assert backfill_own_codes(session) == 0


class TestHealthSettings:
    def test_api_base_from_settings(self, client, monkeypatch):
        from enrollment_dashboard.config import settings

        monkeypatch.setattr(settings, "public_api_base", "https://api.example.test")
        assert client.get("/health").json()["api_base"] == "https://api.example.test"
