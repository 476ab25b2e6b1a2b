import threading
import pytest
from decimal import Decimal
from fastapi import status

from studio_booking.exceptions import (
    AlreadyCancelled,
    BookingNotFound,
    Forbidden,
    InvalidStatus,
    InvalidTransition,
    PackageNotFound,
    SlotNotFound,
    SlotUnavailable,
)
from studio_booking.models.booking import Booking
from studio_booking.models.package import Package
from studio_booking.models.slot import Slot
from studio_booking.models.studio import Studio
from studio_booking.services import bookings as booking_service
from studio_booking.services.bookings import (
    cancel_booking,
    create_booking,
    get_booking,
    list_user_bookings,
    update_booking_status,
)

from tests.conf_tests import (
    ADMIN_ID,
    OTHER_USER_ID,
    TEST_DATE,
    USER_ID,
    TestingSessionLocal,
    admin_headers,
    auth_headers,
    clear_db,
    client,
    fetch,
    fetch_all,
    other_user_headers,
    test_booking,
    test_db,
    test_package,
    test_slots,
    test_studio,
)


# Booking transaction
# pylint: disable-next=redefined-outer-name
def test_create_booking_success(test_db, test_package, test_slots):
    slot = test_slots[0]
    booking = create_booking(test_db, USER_ID, test_package.id, slot.id, notes="Bring a white backdrop")

    assert booking.id is not None
    assert booking.status == "pending"
    assert booking.user_id == USER_ID
    assert booking.studio_id == slot.studio_id
    assert booking.total_price == Decimal("150.00")
    assert booking.notes == "Bring a white backdrop"
    test_db.refresh(slot)
    assert slot.held is True


# pylint: disable-next=redefined-outer-name
def test_create_booking_snapshots_price(test_db, test_package, test_slots):
    booking = create_booking(test_db, USER_ID, test_package.id, test_slots[0].id)

    test_package.price = Decimal("200.00")
    test_db.commit()
    test_db.refresh(booking)

    assert booking.total_price == Decimal("150.00")


# pylint: disable-next=redefined-outer-name
def test_create_booking_slot_held(test_db, test_booking, test_package):
    with pytest.raises(SlotUnavailable):
        create_booking(test_db, OTHER_USER_ID, test_package.id, test_booking.slot_id)
    assert test_db.query(Booking).count() == 1


# pylint: disable-next=redefined-outer-name
def test_create_booking_slot_not_found(test_db, test_package):
    with pytest.raises(SlotNotFound):
        create_booking(test_db, USER_ID, test_package.id, 9999)
    assert test_db.query(Booking).count() == 0


# pylint: disable-next=redefined-outer-name
def test_create_booking_package_not_found(test_db, test_slots):
    with pytest.raises(PackageNotFound):
        create_booking(test_db, USER_ID, 9999, test_slots[0].id)

    assert test_db.query(Booking).count() == 0
    assert test_db.get(Slot, test_slots[0].id).held is False


# pylint: disable-next=redefined-outer-name
def test_create_booking_package_of_other_studio(test_db, test_slots):
    other = Studio(name="Other Studio")
    test_db.add(other)
    test_db.commit()
    foreign_package = Package(studio_id=other.id, name="Wedding", price=Decimal("900.00"))
    test_db.add(foreign_package)
    test_db.commit()

    with pytest.raises(PackageNotFound):
        create_booking(test_db, USER_ID, foreign_package.id, test_slots[0].id)


# pylint: disable-next=redefined-outer-name
def test_create_booking_rolls_back_on_failure(test_db, test_package, test_slots, monkeypatch):
    def broken_update(*args, **kwargs):
        raise RuntimeError("connection dropped")

    # fails after the booking row has been flushed
    monkeypatch.setattr(booking_service, "update", broken_update)

    with pytest.raises(RuntimeError):
        create_booking(test_db, USER_ID, test_package.id, test_slots[0].id)

    assert test_db.query(Booking).count() == 0
    assert test_db.get(Slot, test_slots[0].id).held is False


# pylint: disable-next=redefined-outer-name
def test_second_user_cannot_take_booked_slot(test_db, test_package, test_slots):
    slot_id = test_slots[1].id
    first = create_booking(test_db, USER_ID, test_package.id, slot_id)
    with pytest.raises(SlotUnavailable):
        create_booking(test_db, OTHER_USER_ID, test_package.id, slot_id)

    bookings = test_db.query(Booking).filter(Booking.slot_id == slot_id).all()
    assert [booking.id for booking in bookings] == [first.id]


# pylint: disable-next=redefined-outer-name
def test_concurrent_bookings_single_winner(test_package, test_slots):
    slot_id = test_slots[0].id
    package_id = test_package.id
    attempts = 8
    barrier = threading.Barrier(attempts)
    results = []
    lock = threading.Lock()

    def attempt(user_id):
        db = TestingSessionLocal()
        try:
            barrier.wait()
            booking = create_booking(db, user_id, package_id, slot_id)
            outcome = ("booked", booking.id)
        except SlotUnavailable:
            outcome = ("unavailable", None)
        finally:
            db.close()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(user_id,)) for user_id in range(1, attempts + 1)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    outcomes = [kind for kind, _ in results]
    assert outcomes.count("booked") == 1
    assert outcomes.count("unavailable") == attempts - 1

    bookings = fetch_all(Booking, Booking.slot_id == slot_id)
    assert len(bookings) == 1
    assert bookings[0].status == "pending"
    assert fetch(Slot, slot_id).held is True


# Cancellation
# pylint: disable-next=redefined-outer-name
def test_cancel_booking_releases_slot(test_db, test_booking):
    cancelled = cancel_booking(test_db, test_booking.id, USER_ID)

    assert cancelled.status == "cancelled"
    assert test_db.get(Slot, test_booking.slot_id).held is False


# pylint: disable-next=redefined-outer-name
def test_cancel_twice_fails(test_db, test_booking):
    cancel_booking(test_db, test_booking.id, USER_ID)
    with pytest.raises(AlreadyCancelled):
        cancel_booking(test_db, test_booking.id, USER_ID)

    booking = test_db.get(Booking, test_booking.id)
    assert booking.status == "cancelled"
    assert test_db.get(Slot, test_booking.slot_id).held is False


# pylint: disable-next=redefined-outer-name
def test_cancel_other_users_booking(test_db, test_booking):
    with pytest.raises(Forbidden):
        cancel_booking(test_db, test_booking.id, OTHER_USER_ID)
    assert test_db.get(Booking, test_booking.id).status == "pending"
    assert test_db.get(Slot, test_booking.slot_id).held is True

    cancelled = cancel_booking(test_db, test_booking.id, ADMIN_ID, is_admin=True)
    assert cancelled.status == "cancelled"


# pylint: disable-next=redefined-outer-name
def test_cancel_unknown_booking(test_db):
    with pytest.raises(BookingNotFound):
        cancel_booking(test_db, 9999, USER_ID)


# pylint: disable-next=redefined-outer-name
def test_cancelled_slot_can_be_booked_again(test_db, test_booking, test_package):
    cancel_booking(test_db, test_booking.id, USER_ID)

    rebooked = create_booking(test_db, OTHER_USER_ID, test_package.id, test_booking.slot_id)

    assert rebooked.status == "pending"
    assert test_db.get(Slot, test_booking.slot_id).held is True
    assert test_db.query(Booking).filter(Booking.slot_id == test_booking.slot_id).count() == 2


# Status updates
# pylint: disable-next=redefined-outer-name
def test_update_status_invalid_value(test_db, test_booking):
    with pytest.raises(InvalidStatus):
        update_booking_status(test_db, test_booking.id, "archived")


# pylint: disable-next=redefined-outer-name
def test_update_status_confirm_keeps_slot_held(test_db, test_booking):
    booking = update_booking_status(test_db, test_booking.id, "confirmed")
    assert booking.status == "confirmed"
    assert test_db.get(Slot, test_booking.slot_id).held is True

    booking = update_booking_status(test_db, test_booking.id, "completed")
    assert booking.status == "completed"
    assert test_db.get(Slot, test_booking.slot_id).held is True


# pylint: disable-next=redefined-outer-name
def test_update_status_to_cancelled_releases_slot(test_db, test_booking):
    booking = update_booking_status(test_db, test_booking.id, "cancelled")
    assert booking.status == "cancelled"
    assert test_db.get(Slot, test_booking.slot_id).held is False

    with pytest.raises(AlreadyCancelled):
        update_booking_status(test_db, test_booking.id, "cancelled")


# pylint: disable-next=redefined-outer-name
def test_terminal_statuses_are_final(test_db, test_booking):
    update_booking_status(test_db, test_booking.id, "completed")

    with pytest.raises(InvalidTransition):
        update_booking_status(test_db, test_booking.id, "pending")
    with pytest.raises(InvalidTransition):
        cancel_booking(test_db, test_booking.id, USER_ID)
    assert test_db.get(Booking, test_booking.id).status == "completed"


# pylint: disable-next=redefined-outer-name
def test_cancelled_booking_cannot_be_revived(test_db, test_booking):
    cancel_booking(test_db, test_booking.id, USER_ID)
    with pytest.raises(InvalidTransition):
        update_booking_status(test_db, test_booking.id, "pending")


# pylint: disable-next=redefined-outer-name
def test_update_status_unknown_booking(test_db):
    with pytest.raises(BookingNotFound):
        update_booking_status(test_db, 9999, "confirmed")


# Reads
# pylint: disable-next=redefined-outer-name
def test_get_booking_ownership(test_db, test_booking):
    assert get_booking(test_db, test_booking.id, USER_ID).id == test_booking.id
    assert get_booking(test_db, test_booking.id, ADMIN_ID, is_admin=True).id == test_booking.id
    with pytest.raises(Forbidden):
        get_booking(test_db, test_booking.id, OTHER_USER_ID)
    with pytest.raises(BookingNotFound):
        get_booking(test_db, 9999, USER_ID)


# pylint: disable-next=redefined-outer-name
def test_list_user_bookings_only_own(test_db, test_booking, test_package, test_slots):
    create_booking(test_db, OTHER_USER_ID, test_package.id, test_slots[1].id)
    assert [booking.id for booking in list_user_bookings(test_db, USER_ID)] == [test_booking.id]


# HTTP boundary
# pylint: disable-next=redefined-outer-name
def test_create_booking_endpoint(auth_headers, test_package, test_slots):
    payload = {"package_id": test_package.id, "slot_id": test_slots[0].id, "notes": "Family portrait"}
    response = client.post("/api/bookings/", json=payload, headers=auth_headers)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "pending"
    assert data["user_id"] == USER_ID
    assert data["slot_id"] == test_slots[0].id
    assert Decimal(str(data["total_price"])) == Decimal("150.00")
    assert fetch(Slot, test_slots[0].id).held is True


# pylint: disable-next=redefined-outer-name
def test_create_booking_unauthorized(test_package, test_slots):
    payload = {"package_id": test_package.id, "slot_id": test_slots[0].id}
    response = client.post("/api/bookings/", json=payload)
    assert response.status_code in [
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
    ]


# pylint: disable-next=redefined-outer-name
def test_create_booking_invalid_token(test_package, test_slots):
    payload = {"package_id": test_package.id, "slot_id": test_slots[0].id}
    response = client.post("/api/bookings/", json=payload, headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


# pylint: disable-next=redefined-outer-name
def test_create_booking_taken_slot(other_user_headers, test_booking, test_package):
    payload = {"package_id": test_package.id, "slot_id": test_booking.slot_id}
    response = client.post("/api/bookings/", json=payload, headers=other_user_headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["detail"] == "The selected time slot is no longer available"


# pylint: disable-next=redefined-outer-name
def test_create_booking_unknown_slot(auth_headers, test_package):
    response = client.post(
        "/api/bookings/", json={"package_id": test_package.id, "slot_id": 9999}, headers=auth_headers
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Slot not found"


# pylint: disable-next=redefined-outer-name
def test_get_my_bookings(auth_headers, other_user_headers, test_booking):
    response = client.get("/api/bookings/", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert [booking["id"] for booking in response.json()] == [test_booking.id]

    response = client.get("/api/bookings/", headers=other_user_headers)
    assert response.json() == []


# pylint: disable-next=redefined-outer-name
def test_get_booking_endpoint(auth_headers, other_user_headers, test_booking):
    response = client.get(f"/api/bookings/{test_booking.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == test_booking.id

    response = client.get(f"/api/bookings/{test_booking.id}", headers=other_user_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.get("/api/bookings/9999", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


# pylint: disable-next=redefined-outer-name
def test_cancel_booking_endpoint(auth_headers, test_booking):
    response = client.put(f"/api/bookings/{test_booking.id}/cancel", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "cancelled"
    assert fetch(Slot, test_booking.slot_id).held is False

    response = client.put(f"/api/bookings/{test_booking.id}/cancel", headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Booking is already cancelled"


# pylint: disable-next=redefined-outer-name
def test_cancel_booking_endpoint_other_user(other_user_headers, test_booking):
    response = client.put(f"/api/bookings/{test_booking.id}/cancel", headers=other_user_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert fetch(Booking, test_booking.id).status == "pending"


# pylint: disable-next=redefined-outer-name
def test_update_status_endpoint(auth_headers, admin_headers, test_booking):
    url = f"/api/bookings/{test_booking.id}/status"
    response = client.put(url, json={"status": "confirmed"}, headers=auth_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.put(url, json={"status": "archived"}, headers=admin_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Invalid status" in response.json()["detail"]

    response = client.put(url, json={"status": "confirmed"}, headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "confirmed"

    response = client.put(url, json={"status": "pending"}, headers=admin_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


# pylint: disable-next=redefined-outer-name
def test_list_all_bookings_admin_only(auth_headers, admin_headers, test_booking):
    response = client.get("/api/bookings/admin/all", headers=auth_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.get("/api/bookings/admin/all", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert [booking["id"] for booking in response.json()] == [test_booking.id]
