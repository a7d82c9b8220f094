from fastapi import status

def test_shorten_without_store(demo_client):
    response = demo_client.post(
        "/api/shorten",
        json={"url": "example.com/demo", "customAlias": "demo-link"}
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["persisted"] is False
    assert data["shortCode"] == "demo-link"
    assert data["originalUrl"] == "https://example.com/demo"
    assert data["message"]

    # Validation still applies
    response = demo_client.post("/api/shorten", json={"url": "not a url"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST

def test_bulk_shorten_without_store(demo_client):
    urls = [f"https://example.com/{i}" for i in range(8)]

    response = demo_client.post("/api/bulk-shorten", json={"urls": urls})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [r["originalUrl"] for r in data["results"]] == urls[:5]
    assert all(r["message"] for r in data["results"])
    assert "5" in data["message"]

def test_analytics_without_store(demo_client):
    response = demo_client.get("/api/analytics/anything")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["totalClicks"] == 42
    assert data["recentClicks"] == 15
    assert len(data["dailyClicks"]) == 7
    assert data["shortCode"] == "anything"
    assert data["message"]

def test_redirect_without_store(demo_client):
    response = demo_client.get("/abc123", follow_redirects=False)

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

def test_export_without_store(demo_client):
    response = demo_client.post(
        "/api/export-urls",
        json={"results": [{"originalUrl": "https://a.com", "shortUrl": "http://testserver/abc123", "shortCode": "abc123"}]}
    )
    assert response.status_code == status.HTTP_200_OK
    assert "https://a.com" in response.text

    response = demo_client.post("/api/export-urls", json={"shortCodes": ["abc123"]})
    assert response.status_code == status.HTTP_400_BAD_REQUEST

def test_ready_reports_demo_mode(demo_client):
    data = demo_client.get("/ready").json()

    assert data["ready"] is False
    assert data["demo_mode"] is True
    assert data["details"]["db"] == "unavailable"
