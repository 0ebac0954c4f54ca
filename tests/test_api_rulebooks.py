"""Tests for rulebook endpoints and content negotiation."""

import pytest
import yaml
from fastapi.testclient import TestClient

DSL = {"Content-Type": "application/rules-engine"}


@pytest.fixture
def stored_rules(client: TestClient, rules_payloads: list[dict]) -> list[str]:
    for payload in rules_payloads:
        assert client.post("/rules", json=payload).status_code == 200
    return [payload["id"] for payload in rules_payloads]


def _member_ids(client: TestClient, rulebook_id: str) -> list[str]:
    response = client.get(f"/rulebooks/{rulebook_id}/rules")
    assert response.status_code == 200
    return [rule["id"] for rule in response.json()["values"]]


class TestCreateRulebook:
    def test_create_from_json(self, client: TestClient, stored_rules: list[str]):
        response = client.post("/rulebooks", json={"id": "book", "rules": ["night", "foreign"]})

        assert response.status_code == 200
        assert response.json() == {
            "status": 200,
            "message": "Successfully created rulebook 'book'.",
            "count": 1,
            "values": ["book"],
        }
        assert _member_ids(client, "book") == ["night", "foreign"]

    def test_create_from_dsl(self, client: TestClient, dsl_rulebook: str, rules_payloads: list[dict]):
        client.post("/rules", json=rules_payloads[1])  # "foreign" is referenced, not defined inline

        response = client.post("/rulebooks", content=dsl_rulebook, headers=DSL)

        assert response.status_code == 200
        assert response.json()["values"] == ["fraud-checks"]
        assert _member_ids(client, "fraud-checks") == ["large-amount", "foreign"]
        created = client.get("/rules/large-amount").json()["values"][0]
        assert created["when"] == "amount > 10000"

    def test_dsl_content_type_with_charset(self, client: TestClient):
        response = client.post(
            "/rulebooks",
            content="rulebook: empty\n",
            headers={"Content-Type": "Application/Rules-Engine; charset=utf-8"},
        )
        assert response.status_code == 200

    def test_dsl_and_json_produce_same_membership(
        self, client: TestClient, stored_rules: list[str], rules_payloads: list[dict]
    ):
        dsl = "rulebook: from-dsl\nrules:\n  - night\n  - large-amount\n  - foreign\n"
        assert client.post("/rulebooks", content=dsl, headers=DSL).status_code == 200
        assert client.post(
            "/rulebooks", json={"id": "from-json", "rules": ["night", "large-amount", "foreign"]}
        ).status_code == 200

        assert _member_ids(client, "from-dsl") == _member_ids(client, "from-json")

    def test_unsupported_content_type(self, client: TestClient):
        response = client.post(
            "/rulebooks",
            content='{"id": "book"}',
            headers={"Content-Type": "text/csv"},
        )

        assert response.status_code == 400
        assert response.json() == {"status": 400, "message": "Unsupported content type text/csv."}
        assert client.get("/rulebooks/book/rules").status_code == 404

    def test_dsl_parse_failure(self, client: TestClient):
        response = client.post("/rulebooks", content="rulebook: [broken", headers=DSL)

        assert response.status_code == 400
        assert client.get("/rulebooks").json()["count"] == 0

    def test_duplicate_rulebook_is_conflict(self, client: TestClient, stored_rules: list[str]):
        client.post("/rulebooks", json={"id": "book"})
        response = client.post("/rulebooks", json={"id": "book", "rules": ["night"]})

        assert response.status_code == 409
        assert _member_ids(client, "book") == []

    def test_missing_referenced_rule(self, client: TestClient):
        response = client.post("/rulebooks", json={"id": "book", "rules": ["ghost"]})

        assert response.status_code == 404
        assert client.get("/rulebooks").json()["count"] == 0

    def test_conflicting_inline_rule_rolls_back(self, client: TestClient, stored_rules: list[str]):
        dsl = (
            "rulebook: conflicted\n"
            "rules:\n"
            "  - rule: fresh\n    when: y > 1\n    do: flag\n"
            "  - rule: night\n    when: hour == 3\n    do: notify\n"
        )
        response = client.post("/rulebooks", content=dsl, headers=DSL)

        assert response.status_code == 409
        assert client.get("/rules/fresh").status_code == 404
        assert client.get("/rulebooks").json()["count"] == 0

    def test_identical_inline_rule_is_reused(self, client: TestClient, stored_rules: list[str]):
        dsl = "rulebook: reuse\nrules:\n  - rule: foreign\n    when: country != 'US'\n    do: review\n"
        response = client.post("/rulebooks", content=dsl, headers=DSL)

        assert response.status_code == 200
        assert client.get("/rules").json()["count"] == 3


class TestRulebookQueries:
    @pytest.fixture(autouse=True)
    def book(self, client: TestClient, stored_rules: list[str]):
        payload = {
            "id": "book",
            "version": 4,
            "description": "Night shift",
            "owner": "ops",
            "rules": ["night", "large-amount"],
        }
        assert client.post("/rulebooks", json=payload).status_code == 200

    def test_list_rulebooks(self, client: TestClient):
        body = client.get("/rulebooks").json()
        assert body["count"] == 1
        book = body["values"][0]
        assert book["id"] == "book"
        assert book["version"] == 4
        assert book["rules"] == ["night", "large-amount"]

    def test_generate_rulebook_text(self, client: TestClient):
        response = client.get("/rulebooks/book")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Successfully generated rulebook 'book'."
        document = yaml.safe_load(body["values"][0])
        assert document["rulebook"] == "book"
        assert document["version"] == 4
        assert document["meta"]["owner"] == "ops"
        assert [entry["rule"] for entry in document["rules"]] == ["night", "large-amount"]

    def test_generated_text_compiles_back(self, client: TestClient):
        text = client.get("/rulebooks/book").json()["values"][0]
        client.delete("/rulebooks/book")

        assert client.post("/rulebooks", content=text, headers=DSL).status_code == 200
        assert _member_ids(client, "book") == ["night", "large-amount"]

    def test_generate_missing_rulebook(self, client: TestClient):
        assert client.get("/rulebooks/ghost").status_code == 404

    def test_rules_of_missing_rulebook(self, client: TestClient):
        response = client.get("/rulebooks/ghost/rules")
        assert response.status_code == 404
        assert response.json() == {"status": 404, "message": "Rulebook 'ghost' not found."}

    def test_update_rulebook(self, client: TestClient):
        response = client.put("/rulebooks/book", json={"description": "Day shift", "rules": ["foreign", "night"]})

        assert response.status_code == 200
        assert response.json()["values"] == ["book"]
        assert _member_ids(client, "book") == ["foreign", "night"]
        assert client.get("/rulebooks").json()["values"][0]["description"] == "Day shift"

    def test_update_missing_rulebook(self, client: TestClient):
        response = client.put("/rulebooks/ghost", json={"rules": []})
        assert response.status_code == 404

    def test_update_with_missing_rule_changes_nothing(self, client: TestClient):
        response = client.put("/rulebooks/book", json={"rules": ["night", "ghost"]})

        assert response.status_code == 404
        assert _member_ids(client, "book") == ["night", "large-amount"]

    def test_delete_rulebook(self, client: TestClient):
        response = client.delete("/rulebooks/book")

        assert response.status_code == 200
        assert client.get("/rulebooks/book").status_code == 404
        assert client.get("/rules").json()["count"] == 3

    def test_delete_missing_rulebook(self, client: TestClient):
        assert client.delete("/rulebooks/ghost").status_code == 404

    def test_rule_in_use_cannot_be_deleted(self, client: TestClient):
        response = client.delete("/rules/night")

        assert response.status_code == 400
        assert client.get("/rules/night").status_code == 200


class TestMembership:
    @pytest.fixture(autouse=True)
    def book(self, client: TestClient, stored_rules: list[str]):
        assert client.post("/rulebooks", json={"id": "book", "rules": ["night"]}).status_code == 200

    def test_add_rule(self, client: TestClient):
        response = client.put("/rulebooks/book/rules/foreign")

        assert response.status_code == 200
        assert response.json()["message"] == "Successfully added rule 'foreign' to rulebook 'book'."
        assert _member_ids(client, "book") == ["night", "foreign"]

    def test_add_then_remove_restores_membership(self, client: TestClient):
        before = _member_ids(client, "book")

        assert client.put("/rulebooks/book/rules/large-amount").status_code == 200
        assert client.delete("/rulebooks/book/rules/large-amount").status_code == 200

        assert _member_ids(client, "book") == before

    @pytest.mark.parametrize("path", [
        "/rulebooks/ghost/rules/night",
        "/rulebooks/book/rules/ghost",
    ])
    def test_missing_ids(self, client: TestClient, path: str):
        assert client.put(path).status_code == 404
        assert client.delete(path).status_code == 404

    def test_add_existing_member_is_conflict(self, client: TestClient):
        assert client.put("/rulebooks/book/rules/night").status_code == 409

    def test_remove_non_member(self, client: TestClient):
        response = client.delete("/rulebooks/book/rules/foreign")
        assert response.status_code == 404
