from datetime import datetime, timedelta, timezone

DAY = datetime(2030, 3, 4, tzinfo=timezone.utc)


def at(hour, minute=0):
    return DAY.replace(hour=hour, minute=minute).isoformat()


def booking_payload(booking_id, start, end, resource_id="room-1"):
    return {
        "id": booking_id,
        "resourceId": resource_id,
        "userId": "u-42",
        "userName": "Grace",
        "userRole": "faculty",
        "startTime": start,
        "endTime": end,
        "purpose": "Thesis defense",
    }


def create_room(client):
    response = client.post("/resources", json={"id": "room-1", "name": "Room 1", "type": "room", "capacity": 10})
    assert response.status_code == 201


def test_booking_flow(client):
    create_room(client)

    b1 = client.post("/bookings", json=booking_payload("b1", at(10), at(11)))
    assert b1.status_code == 201
    assert b1.json()["status"] == "confirmed"
    assert b1.json()["resourceId"] == "room-1"

    clash = client.post("/bookings", json=booking_payload("b2", at(10, 30), at(11, 30)))
    assert clash.status_code == 409
    body = clash.json()
    assert body["detail"] == "Booking conflict detected"
    assert [c["id"] for c in body["conflicts"]] == ["b1"]

    touching = client.post("/bookings", json=booking_payload("b3", at(11), at(12)))
    assert touching.status_code == 201

    cancel = client.delete("/bookings/b1")
    assert cancel.status_code == 200
    assert cancel.json()["status"] == "cancelled"
    assert cancel.json()["createdAt"] == b1.json()["createdAt"]

    retry = client.post("/bookings", json=booking_payload("b2", at(10, 30), at(11, 30)))
    assert retry.status_code == 409
    assert [c["id"] for c in retry.json()["conflicts"]] == ["b3"]

    retry = client.post("/bookings", json=booking_payload("b2", at(10, 30), at(11)))
    assert retry.status_code == 201

    listed = client.get("/bookings").json()
    assert {b["id"] for b in listed} == {"b1", "b2", "b3"}
    confirmed = client.get("/bookings", params={"status": "confirmed"}).json()
    assert {b["id"] for b in confirmed} == {"b2", "b3"}


def test_cancel_twice_succeeds(client):
    create_room(client)
    client.post("/bookings", json=booking_payload("b1", at(10), at(11)))

    first = client.delete("/bookings/b1")
    second = client.delete("/bookings/b1")

    assert second.status_code == 200
    assert second.json() == first.json()


def test_booking_validation(client):
    create_room(client)

    missing = client.post("/bookings", json={"id": "b1", "resourceId": "room-1"})
    assert missing.status_code == 400

    inverted = client.post("/bookings", json=booking_payload("b1", at(11), at(10)))
    assert inverted.status_code == 400
    assert "startTime must be before endTime" in inverted.json()["detail"]

    unknown = client.post("/bookings", json=booking_payload("b1", at(10), at(11), resource_id="ghost"))
    assert unknown.status_code == 404

    listed = client.post("/bookings", json=[booking_payload("b1", at(10), at(11))])
    assert listed.status_code == 400
    assert isinstance(listed.json()["detail"], str)
    assert client.get("/bookings").json() == []


def test_missing_booking(client):
    assert client.get("/bookings/nope").status_code == 404
    assert client.delete("/bookings/nope").status_code == 404


def test_availability(client):
    create_room(client)
    client.post("/bookings", json=booking_payload("b1", at(10), at(11)))

    busy = client.get(
        "/bookings/availability",
        params={"resourceId": "room-1", "startTime": at(10, 30), "endTime": at(12)},
    )
    assert busy.status_code == 200
    assert busy.json()["available"] is False
    assert [c["id"] for c in busy.json()["conflicts"]] == ["b1"]

    free = client.get(
        "/bookings/availability",
        params={"resourceId": "room-1", "startTime": at(11), "endTime": at(12)},
    )
    assert free.json()["available"] is True


def test_deleting_resource_cascades_bookings(client):
    create_room(client)
    client.post("/bookings", json=booking_payload("b3", at(11), at(12)))

    response = client.delete("/resources/room-1")

    assert response.json()["deletedBookings"] == 1
    assert client.get("/bookings/b3").status_code == 404
    assert client.get("/bookings").json() == []


def test_naive_times_are_returned_as_utc(client):
    create_room(client)
    start = datetime(2030, 3, 4, 10, 0)

    response = client.post(
        "/bookings",
        json=booking_payload("b1", start.isoformat(), (start + timedelta(hours=1)).isoformat()),
    )

    assert response.status_code == 201
    returned = datetime.fromisoformat(response.json()["startTime"].replace("Z", "+00:00"))
    assert returned == start.replace(tzinfo=timezone.utc)
