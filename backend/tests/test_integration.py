"""
Comprehensive integration tests for full request flow.
"""
import pytest
import uuid


@pytest.fixture
def daily_sales():
    """30 days of sales over three regions."""
    regions = ['North', 'South', 'East']
    return [
        {
            'date': f'2024-01-{day:02d}',
            'region': regions[day % 3],
            'revenue': 100 + day * 10,
            'units': day,
        }
        for day in range(30, 0, -1)
    ]


@pytest.mark.integration
def test_full_visualize_flow(client, daily_sales):
    """Profile, recommend and visualize the same dataset end to end."""
    correlation_id = str(uuid.uuid4())

    profile = client.post("/api/profile", json={"dataset": daily_sales})
    assert profile.status_code == 200
    assert {f["name"]: f["kind"] for f in profile.json()["fields"]}["date"] == "date"

    recommend = client.post("/api/recommend", json={"dataset": daily_sales, "query": "show revenue"})
    assert recommend.json()["chart_type"] == "line"

    response = client.post(
        "/api/visualize",
        json={
            "dataset": daily_sales,
            "query": "show revenue",
            "proposal": {"type": "line", "xKey": "day", "yKey": "total_revenue"},
        },
        headers={"X-Correlation-ID": correlation_id},
    )

    assert response.status_code == 200
    assert response.headers["X-Correlation-ID"] == correlation_id
    assert "X-Response-Time" in response.headers

    data = response.json()
    assert data["recommended_type"] == "line"
    assert data["corrected_spec"]["x_key"] == "date"
    assert data["corrected_spec"]["y_key"] == "revenue"

    points = data["chart"]["data"]
    assert len(points) == 30
    assert points[0] == {"date": "2024-01-01", "revenue": 110.0}
    assert [p["date"] for p in points] == sorted(p["date"] for p in points)


@pytest.mark.integration
def test_correlation_id_generated_when_missing(client):
    response = client.get("/api/health")

    correlation_id = response.headers["X-Correlation-ID"]
    assert uuid.UUID(correlation_id)


@pytest.mark.integration
def test_correlation_id_in_error_body(client):
    correlation_id = str(uuid.uuid4())
    response = client.post(
        "/api/visualize",
        json={"dataset": [], "query": "anything"},
        headers={"X-Correlation-ID": correlation_id},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["correlation_id"] == correlation_id
    assert response.headers["X-Correlation-ID"] == correlation_id


@pytest.mark.integration
def test_bar_output_is_bounded(client):
    """Fifteen categories come back as the top ten."""
    dataset = [{'store': f'Store {i}', 'sales': i} for i in range(15)]
    response = client.post("/api/visualize", json={
        "dataset": dataset,
        "query": "sales by store",
        "proposal": {"type": "bar", "xKey": "store", "yKey": "sales"},
    })

    data = response.json()["chart"]["data"]
    assert len(data) == 10
    assert data[0]["store"] == "Store 14"


@pytest.mark.integration
def test_pie_output_is_bounded(client):
    dataset = [{'store': f'Store {i}', 'sales': i} for i in range(15)]
    response = client.post("/api/visualize", json={
        "dataset": dataset,
        "query": "sales by store",
        "proposal": {"type": "pie", "nameKey": "store", "valueKey": "sales"},
    })

    data = response.json()["chart"]["data"]
    assert len(data) == 8
    assert data[0] == {"name": "Store 14", "value": 14.0}


@pytest.mark.integration
def test_table_proposal_passes_rows_through(client, daily_sales):
    response = client.post("/api/visualize", json={
        "dataset": daily_sales,
        "query": "list the raw rows",
        "proposal": {"type": "table"},
    })

    chart = response.json()["chart"]
    assert chart["type"] == "table"
    assert chart["columns"] == ["date", "region", "revenue", "units"]
    assert len(chart["data"]) == 30
    assert chart["data"][0] == daily_sales[0]
