"""
API Smoke Tests

Tests for the FastAPI endpoints:
1. GET /health reports whether results are loaded
2. GET /root returns the tree metadata
3. GET /proofs/{address} returns circuit inputs, 404 with nothing to claim
4. POST /verify accepts good proofs and rejects tampered ones
5. Missing results return a structured 503
6. Hash backend setup happens at startup, off the event loop
"""

import inspect

import pytest
from fastapi.testclient import TestClient

from fixtures import make_address, make_config, make_entries

from api import deps
from api.app import app
from api.routes.proofs import format_token_amount, get_claim_inputs, get_root
from api.routes.verify import verify_proof_endpoint
from orchestrator.artifacts.io import write_results
from orchestrator.dataset import DatasetEntry
from orchestrator.pipeline import ClaimTreePipeline


# Create test client
client = TestClient(app)

ZERO_ADDRESS = make_address(9)


@pytest.fixture
def built(tmp_path, monkeypatch, clean_env, field_hash):
    """Build a small dense tree, write it, and point the API at it."""
    entries = make_entries(4, amount=10 ** 18)
    entries.append(DatasetEntry(identity=ZERO_ADDRESS, key=int(ZERO_ADDRESS, 16), value=0, row_index=5))
    result = ClaimTreePipeline(make_config(depth=3), field_hash=field_hash).run(entries)
    results_path, _ = write_results(result, out_dir=tmp_path)

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("AIRDROP_RESULTS_PATH", str(results_path))
    monkeypatch.setenv("AIRDROP_HASH_BACKEND", "sha256")
    deps.clear_caches()
    yield result
    deps.clear_caches()


@pytest.fixture
def no_results(tmp_path, monkeypatch, clean_env):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("AIRDROP_RESULTS_PATH", str(tmp_path / "missing.json"))
    monkeypatch.setenv("AIRDROP_HASH_BACKEND", "sha256")
    deps.clear_caches()
    yield
    deps.clear_caches()


class TestHealth:
    """Tests for GET /health."""

    def test_health_with_results(self, built):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["service"] == "airdrop-tree-api"
        assert data["results_loaded"] is True

    def test_health_without_results(self, no_results):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["results_loaded"] is False


class TestRoot:
    """Tests for GET /root."""

    def test_root(self, built):
        response = client.get("/root")
        assert response.status_code == 200
        data = response.json()
        assert data["root"] == built.root
        assert data["tree_levels"] == 3
        assert data["tree_shape"] == "dense"
        assert data["hash_function"] == "sha256"
        assert data["leaf_count"] == 5
        assert data["total_amount"] == str(10 ** 18 * (1 + 2 + 3 + 4))

    def test_results_unavailable(self, no_results):
        response = client.get("/root")
        assert response.status_code == 503
        data = response.json()
        assert data["ok"] is False
        assert data["error"]["code"] == "RESULTS_UNAVAILABLE"


class TestProofs:
    """Tests for GET /proofs/{address}."""

    def test_claim_inputs(self, built):
        response = client.get(f"/proofs/{make_address(1)}")
        assert response.status_code == 200
        data = response.json()
        expected = built.circuit_inputs[1]
        assert data["merkleRoot"] == built.root
        assert data["userAddress"] == expected.user_address
        assert data["amount"] == str(2 * 10 ** 18)
        assert data["amountInTokens"] == "2"
        assert data["pathElements"] == expected.path_elements
        assert data["pathIndices"] == "1"

    def test_uppercase_address(self, built):
        address = "0x" + make_address(0)[2:].upper()
        assert client.get(f"/proofs/{address}").status_code == 200

    def test_unknown_address(self, built):
        response = client.get("/proofs/0xdeadbeef")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOTHING_TO_CLAIM"

    def test_zero_amount(self, built):
        response = client.get(f"/proofs/{ZERO_ADDRESS}")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOTHING_TO_CLAIM"

    def test_non_hex_address(self, built):
        response = client.get("/proofs/not-hex")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"


class TestFormatTokenAmount:
    """Tests for the display amount."""

    @pytest.mark.parametrize("amount,expected", [
        (0, "0"),
        (10 ** 18, "1"),
        (1500000000000000000, "1.5"),
        (1, "0.000000000000000001"),
        (123 * 10 ** 18 + 450000000000000000, "123.45"),
    ])
    def test_format(self, amount, expected):
        assert format_token_amount(amount) == expected


class TestVerify:
    """Tests for POST /verify."""

    def _leaf_payload(self, built, position):
        leaf = built.results.leaves[position]
        return {
            "leaf": leaf.leaf,
            "pathElements": leaf.path_elements,
            "pathIndices": leaf.path_indices,
        }

    def test_valid_leaf_proof(self, built):
        response = client.post("/verify", json=self._leaf_payload(built, 2))
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["expected_root"] == built.root
        assert data["computed_root"] == built.root

    def test_valid_entry_proof(self, built):
        leaf = built.results.leaves[0]
        response = client.post("/verify", json={
            "key": leaf.key,
            "value": leaf.value,
            "pathElements": leaf.path_elements,
            "pathIndices": [0, 0, 0],
        })
        assert response.json()["ok"] is True

    def test_explicit_root(self, built):
        payload = self._leaf_payload(built, 1)
        payload["root"] = "12345"
        data = client.post("/verify", json=payload).json()
        assert data["ok"] is False
        assert data["expected_root"] == "12345"

    def test_tampered_sibling(self, built):
        payload = self._leaf_payload(built, 1)
        payload["pathElements"][0] = str(int(payload["pathElements"][0]) + 1)
        data = client.post("/verify", json=payload).json()
        assert data["ok"] is False
        assert data["computed_root"] != built.root

    def test_path_length_mismatch(self, built):
        payload = self._leaf_payload(built, 1)
        payload["pathIndices"] = [1, 0]
        data = client.post("/verify", json=payload).json()
        assert data["ok"] is False
        assert data["errors"]

    def test_malformed_element(self, built):
        payload = self._leaf_payload(built, 1)
        payload["leaf"] = "abc"
        response = client.post("/verify", json=payload)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_missing_leaf_and_key(self, built):
        response = client.post("/verify", json={"pathElements": ["1"], "pathIndices": 0})
        assert response.status_code == 422


class TestHashSetup:
    """Hash backend setup never runs on the event loop."""

    @pytest.mark.parametrize("endpoint", [get_root, get_claim_inputs, verify_proof_endpoint])
    def test_blocking_routes_run_in_threadpool(self, endpoint):
        assert not inspect.iscoroutinefunction(endpoint)

    def test_startup_builds_hash_once(self, built, monkeypatch):
        calls = []
        real_build = deps.build_field_hash

        def counting_build(*args, **kwargs):
            calls.append(kwargs.get("backend"))
            return real_build(*args, **kwargs)

        monkeypatch.setattr(deps, "build_field_hash", counting_build)
        with TestClient(app) as started:
            assert calls == ["sha256"]
            leaf = built.results.leaves[0]
            response = started.post("/verify", json={
                "leaf": leaf.leaf,
                "pathElements": leaf.path_elements,
                "pathIndices": leaf.path_indices,
            })
            assert response.json()["ok"] is True
            assert started.get("/health").status_code == 200
        assert calls == ["sha256"]
