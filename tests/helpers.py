from datetime import date, datetime, timedelta

from agenda.core import day_of_week


def upcoming(dow: int) -> date:
    """First day from tomorrow on whose index (0 = Sunday) is dow."""
    day = date.today() + timedelta(days=1)
    while day_of_week(day) != dow:
        day += timedelta(days=1)
    return day


def next_christmas() -> date:
    today = date.today()
    christmas = date(today.year, 12, 25)
    return christmas if christmas > today else date(today.year + 1, 12, 25)


def at(day: date, hhmm: str) -> datetime:
    hour, minute = (int(p) for p in hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hour, minute)


def register(client, email="owner@example.com", password="password123", name="Owner"):
    response = client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
    assert response.status_code == 201, f"Registration failed: {response.text}"
    return response.json()["user"]


def setup_provider(client, email="owner@example.com", slug="studio-ana", business_name="Studio Ana"):
    register(client, email=email)
    response = client.post("/api/provider", json={"businessName": business_name, "slug": slug})
    assert response.status_code == 201, f"Provider setup failed: {response.text}"
    return response.json()


def add_service(client, name="Haircut", price="80.00", duration=60):
    response = client.post("/api/services", json={"name": name, "price": price, "duration": duration})
    assert response.status_code == 201, f"Service creation failed: {response.text}"
    return response.json()


def add_availability(client, day_of_week, start_time="09:00", end_time="18:00"):
    response = client.post(
        "/api/availability",
        json={"dayOfWeek": day_of_week, "startTime": start_time, "endTime": end_time},
    )
    assert response.status_code == 201, f"Availability creation failed: {response.text}"
    return response.json()
