"""
Integration tests for API endpoints.
"""
import pytest
from app.core.config import Settings


@pytest.fixture
def small_limits(client):
    """Temporarily cap datasets at two rows."""
    app = client.app
    original = app.state.settings
    app.state.settings = Settings(max_dataset_rows=2, rate_limit_per_minute=1000)
    yield
    app.state.settings = original


@pytest.mark.integration
def test_health_check(client):
    """Test the health check endpoint."""
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.integration
def test_root_endpoint(client):
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert "message" in response.json()


@pytest.mark.integration
def test_profile_endpoint(client, sales_rows):
    """Profiles list every field with its kind."""
    response = client.post("/api/profile", json={"dataset": sales_rows})

    assert response.status_code == 200
    data = response.json()
    assert data["row_count"] == 4
    kinds = {field["name"]: field["kind"] for field in data["fields"]}
    assert kinds == {
        'product_name': 'categorical',
        'region': 'categorical',
        'revenue': 'numeric',
        'quantity': 'numeric',
        'date': 'date',
    }


@pytest.mark.integration
def test_recommend_endpoint(client, sales_rows):
    response = client.post("/api/recommend", json={
        "dataset": sales_rows,
        "query": "Show revenue trend over time",
        "suggestedType": "bar",
    })

    assert response.status_code == 200
    assert response.json() == {"chart_type": "line"}


@pytest.mark.integration
def test_aggregate_endpoint(client, sales_rows):
    response = client.post("/api/aggregate", json={
        "dataset": sales_rows,
        "config": {
            "groupBy": "region",
            "metrics": [{"field": "revenue", "operation": "sum", "alias": "total_revenue"}],
            "sortBy": "total_revenue",
        },
    })

    assert response.status_code == 200
    rows = response.json()["rows"]
    assert rows == [
        {"_group": "North", "_count": 2, "total_revenue": 1500.0},
        {"_group": "South", "_count": 2, "total_revenue": 1400.0},
    ]


@pytest.mark.integration
def test_aggregate_requires_metrics(client, sales_rows):
    response = client.post("/api/aggregate", json={
        "dataset": sales_rows,
        "config": {"groupBy": "region", "metrics": []},
    })

    assert response.status_code == 422


@pytest.mark.integration
def test_visualize_repairs_proposal(client, sales_rows):
    """Dangling proposal keys are repaired and the narrative passes through."""
    response = client.post("/api/visualize", json={
        "dataset": sales_rows,
        "query": "Show revenue by product",
        "proposal": {
            "type": "bar",
            "xKey": "product",
            "yKey": "total_revenue",
            "sql": "SELECT product, SUM(revenue) FROM sales GROUP BY product",
            "insights": ["Widget leads"],
            "confidence": 0.8,
            "nextSteps": ["Compare regions"],
        },
    })

    assert response.status_code == 200
    data = response.json()
    assert data["is_valid"] is True
    assert data["corrected_spec"]["x_key"] == "product_name"
    assert data["corrected_spec"]["y_key"] == "revenue"
    assert data["chart"]["type"] == "bar"
    assert data["chart"]["data"][0]["product_name"] == "Widget"
    assert data["chart"]["data"][0]["revenue"] == 1800
    assert len(data["warnings"]) == 2
    assert data["sql"].startswith("SELECT")
    assert data["insights"] == ["Widget leads"]
    assert data["confidence"] == 0.8
    assert data["next_steps"] == ["Compare regions"]


@pytest.mark.integration
def test_visualize_without_proposal(client, sales_rows):
    response = client.post("/api/visualize", json={
        "dataset": sales_rows,
        "query": "revenue breakdown",
    })

    assert response.status_code == 200
    data = response.json()
    assert data["chart"]["type"] == "pie"
    assert data["chart"]["name_key"] == "name"
    assert data["chart"]["data"][0] == {"name": "Widget", "value": 1800.0}
    assert data["sql"] is None


@pytest.mark.integration
def test_visualize_empty_dataset(client):
    """An empty dataset is a 400 with the NO_DATA body."""
    response = client.post("/api/visualize", json={"dataset": [], "query": "anything"})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["code"] == "NO_DATA"
    assert detail["message"] == "No data available for visualization"
    assert "correlation_id" in detail


@pytest.mark.integration
def test_visualize_malformed_body(client):
    response = client.post("/api/visualize", json={"dataset": "not a list"})

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "INVALID_REQUEST"
    assert "dataset" in body["detail"]
    assert body["errors"]


@pytest.mark.integration
def test_dataset_too_large(client, sales_rows, small_limits):
    response = client.post("/api/visualize", json={"dataset": sales_rows, "query": "x"})

    assert response.status_code == 413
    assert response.json()["detail"]["code"] == "DATASET_TOO_LARGE"

    response = client.post("/api/profile", json={"dataset": sales_rows})
    assert response.status_code == 413


@pytest.mark.integration
def test_metrics_endpoint(client, sales_rows):
    client.post("/api/visualize", json={"dataset": sales_rows, "query": "revenue by region"})

    response = client.get("/api/metrics")

    assert response.status_code == 200
    performance = response.json()["performance"]
    assert "visualization_pipeline" in performance
    assert "request_duration" in performance
