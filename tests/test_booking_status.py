import datetime

import pytest

from db.models import BookingStatus
from tests.test_main import client, test_db_with_timeslots, UtilTest, ADMIN, MANAGER, OTHER_MANAGER, STUDENT, \
    FUTURE_DATE

BOOKING_DATE = FUTURE_DATE + datetime.timedelta(days=1)


@pytest.fixture()
def pending_bookings(test_db_with_timeslots):
    """
    10 09:00-10:00 and its overlaps: 11 09:30-10:30 pending, 12 10:00-11:00 only touching,
    13 same time on another infrastructure, 14 same time on another day, 15 approved overlap.
    """
    UtilTest.insert_timeslot(10, 1, BOOKING_DATE, '09:00', '10:00', status=BookingStatus.PENDING,
                             user_email='student@example.com')
    UtilTest.insert_timeslot(11, 1, BOOKING_DATE, '09:30', '10:30', status=BookingStatus.PENDING,
                             user_email='faculty@example.com')
    UtilTest.insert_timeslot(12, 1, BOOKING_DATE, '10:00', '11:00', status=BookingStatus.PENDING,
                             user_email='faculty@example.com')
    UtilTest.insert_timeslot(13, 2, BOOKING_DATE, '09:00', '10:00', status=BookingStatus.PENDING,
                             user_email='faculty@example.com')
    UtilTest.insert_timeslot(14, 1, FUTURE_DATE + datetime.timedelta(days=2), '09:00', '10:00',
                             status=BookingStatus.PENDING, user_email='faculty@example.com')
    UtilTest.insert_timeslot(15, 1, BOOKING_DATE, '08:30', '09:15', status=BookingStatus.APPROVED,
                             user_email='faculty@example.com')
    yield


class TestUpdateBookingStatusRoute:
    def test_approve_should_reject_only_overlapping_pending_bookings(self, pending_bookings):
        response = client.put("/api/bookings/10/status", headers=MANAGER, json={"status": "approved"})

        assert response.status_code == 200, response.text
        assert response.json() == {"message": "Booking approved successfully", "status": "approved",
                                   "rejected_count": 1}

        assert UtilTest.get_booking(10).status == 'approved'
        assert UtilTest.get_booking(11).status == 'rejected'
        assert UtilTest.get_booking(12).status == 'pending'
        assert UtilTest.get_booking(13).status == 'pending'
        assert UtilTest.get_booking(14).status == 'pending'
        assert UtilTest.get_booking(15).status == 'approved'

    def test_approve_should_return_400_when_not_pending(self, pending_bookings):
        response = client.put("/api/bookings/15/status", headers=ADMIN, json={"status": "approved"})

        assert response.status_code == 400, response.text
        assert response.json() == {"detail": "Only pending bookings can be approved"}

    def test_reject(self, pending_bookings):
        response = client.put("/api/bookings/11/status", headers=ADMIN, json={"status": "rejected"})

        assert response.status_code == 200, response.text
        assert response.json() == {"message": "Booking rejected successfully", "status": "rejected",
                                   "rejected_count": 0}
        assert UtilTest.get_booking(10).status == 'pending'

    def test_cancel_approved_booking(self, pending_bookings):
        response = client.put("/api/bookings/15/status", headers=MANAGER, json={"status": "canceled"})

        assert response.status_code == 200, response.text
        assert UtilTest.get_booking(15).status == 'canceled'

    def test_cancel_should_return_400_when_rejected(self, pending_bookings):
        client.put("/api/bookings/11/status", headers=ADMIN, json={"status": "rejected"})

        response = client.put("/api/bookings/11/status", headers=ADMIN, json={"status": "canceled"})

        assert response.status_code == 400, response.text
        assert response.json() == {"detail": "Only pending or approved bookings can be canceled"}

    def test_update_status_should_return_400_when_status_unknown(self, pending_bookings):
        response = client.put("/api/bookings/10/status", headers=ADMIN, json={"status": "completed"})

        assert response.status_code == 400, response.text
        assert response.json() == {"detail": "Status must be one of approved, rejected or canceled"}
        assert UtilTest.get_booking(10).status == 'pending'

    def test_update_status_should_return_400_when_timeslot(self, pending_bookings):
        response = client.put("/api/bookings/1/status", headers=ADMIN, json={"status": "approved"})

        assert response.status_code == 400, response.text
        assert response.json() == {"detail": "Timeslots cannot change status"}

    def test_update_status_should_return_404_when_booking_unknown(self, pending_bookings):
        response = client.put("/api/bookings/99/status", headers=ADMIN, json={"status": "approved"})

        assert response.status_code == 404, response.text
        assert response.json() == {"detail": "Booking not found"}

    def test_update_status_should_return_403_when_manager_not_assigned(self, pending_bookings):
        response = client.put("/api/bookings/13/status", headers=MANAGER, json={"status": "approved"})
        assert response.status_code == 403, response.text

        response = client.put("/api/bookings/10/status", headers=OTHER_MANAGER, json={"status": "approved"})
        assert response.status_code == 403, response.text

        assert UtilTest.get_booking(10).status == 'pending'
        assert UtilTest.get_booking(13).status == 'pending'

    def test_update_status_should_return_403_when_student(self, pending_bookings):
        response = client.put("/api/bookings/10/status", headers=STUDENT, json={"status": "canceled"})

        assert response.status_code == 403, response.text
