from fastapi import status
from datetime import datetime, timedelta, timezone
from shortly.models import Link
from unittest.mock import patch

def test_redirect_to_url(client, db):
    response = client.post(
        "/api/shorten",
        json={"url": "https://example.com/redirect-test"}
    )

    short_code = response.json()["shortCode"]

    response = client.get(f"/{short_code}", follow_redirects=False)

    assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT
    assert response.headers["location"] == "https://example.com/redirect-test"

    link = db.query(Link).filter(Link.short_code == short_code).first()
    db.refresh(link)
    assert link.click_count == 1
    assert len(link.analytics) == 1

def test_every_redirect_is_recorded(client, db):
    response = client.post(
        "/api/shorten",
        json={"url": "https://example.com/counted", "customAlias": "counted"}
    )
    assert response.status_code == status.HTTP_201_CREATED

    for _ in range(5):
        response = client.get(
            "/counted",
            headers={"referer": "https://search.example", "x-forwarded-for": "203.0.113.7, 10.0.0.1"},
            follow_redirects=False
        )
        assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT

    link = db.query(Link).filter(Link.short_code == "counted").first()
    db.refresh(link)
    assert link.click_count == 5
    assert len(link.analytics) == 5
    assert all(event["ip"] == "203.0.113.7" for event in link.analytics)
    assert all(event["referrer"] == "https://search.example" for event in link.analytics)

def test_redirect_expired_link(client, db):
    expiry_time = datetime.now(timezone.utc) + timedelta(hours=1)
    response = client.post(
        "/api/shorten",
        json={
            "url": "https://example.com/expiring",
            "expiresAt": expiry_time.isoformat()
        }
    )
    short_code = response.json()["shortCode"]

    response = client.get(f"/{short_code}", follow_redirects=False)
    assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT

    # Move the clock past the expiry instead of sleeping
    later = expiry_time + timedelta(seconds=1)
    with patch("shortly.utils.datetime") as mock_datetime:
        mock_datetime.now.return_value = later
        response = client.get(f"/{short_code}", follow_redirects=False)

    assert response.status_code == status.HTTP_410_GONE

    link = db.query(Link).filter(Link.short_code == short_code).first()
    db.refresh(link)
    assert link.click_count == 1
    assert len(link.analytics) == 1

def test_redirect_past_expiry(client, db):
    db.add(Link(
        short_code="old123",
        original_url="https://example.com/old",
        expires_at=datetime.now(timezone.utc) - timedelta(days=1)
    ))
    db.commit()

    response = client.get("/old123", follow_redirects=False)

    assert response.status_code == status.HTTP_410_GONE

    # Expired links still report analytics
    response = client.get("/api/analytics/old123")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["totalClicks"] == 0

def test_redirect_unknown_code(client):
    response = client.get("/nonexistent", follow_redirects=False)

    assert response.status_code == status.HTTP_404_NOT_FOUND
