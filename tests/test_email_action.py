from db.models import BookingStatus, EmailActionToken
from repository.email_action_token_repository import EmailActionTokenRepository
from tests.test_main import client, test_db_with_timeslots, UtilTest, TestingSessionLocal, ADMIN, \
    FUTURE_DATE


def _issue_token(booking_id, metadata=None, expires_in_hours=72):
    with TestingSessionLocal() as session:
        action_token = EmailActionTokenRepository(session).create(booking_id, expires_in_hours,
                                                                  metadata or {'type': 'booking_action'})
        session.commit()
        return action_token.token


def _is_used(token):
    with TestingSessionLocal() as session:
        return session.query(EmailActionToken).filter_by(token=token).first().used


def _insert_pending_bookings():
    UtilTest.insert_timeslot(10, 1, FUTURE_DATE, '13:00', '14:00', status=BookingStatus.PENDING,
                             user_email='student@example.com')
    UtilTest.insert_timeslot(11, 1, FUTURE_DATE, '13:30', '14:30', status=BookingStatus.PENDING,
                             user_email='faculty@example.com')


class TestEmailActionRoute:
    def test_approve_via_email_link(self, test_db_with_timeslots):
        _insert_pending_bookings()
        token = _issue_token(10)

        response = client.get(f"/api/email-action/approve/{token}")

        assert response.status_code == 200, response.text
        assert response.json() == {
            "message": "Booking approved successfully",
            "action": "approve",
            "status": "success",
            "booking_id": 10,
            "current_status": "approved",
            "rejected_count": 1,
        }
        assert UtilTest.get_booking(10).status == 'approved'
        assert UtilTest.get_booking(11).status == 'rejected'
        assert _is_used(token)

    def test_reject_via_email_link(self, test_db_with_timeslots):
        _insert_pending_bookings()
        token = _issue_token(10)

        response = client.get(f"/api/email-action/reject/{token}")

        assert response.status_code == 200, response.text
        assert response.json()['current_status'] == 'rejected'
        assert UtilTest.get_booking(10).status == 'rejected'
        assert UtilTest.get_booking(11).status == 'pending'

    def test_link_should_work_only_once(self, test_db_with_timeslots):
        _insert_pending_bookings()
        token = _issue_token(10)
        client.get(f"/api/email-action/reject/{token}")

        response = client.get(f"/api/email-action/approve/{token}")

        assert response.status_code == 400, response.text
        assert response.json() == {"detail": "Invalid or expired token"}
        assert UtilTest.get_booking(10).status == 'rejected'

    def test_link_should_report_already_processed_booking(self, test_db_with_timeslots):
        _insert_pending_bookings()
        token = _issue_token(10)
        client.put("/api/bookings/10/status", headers=ADMIN, json={"status": "canceled"})

        response = client.get(f"/api/email-action/approve/{token}")

        assert response.status_code == 200, response.text
        assert response.json() == {
            "message": "This booking has already been processed",
            "action": "approve",
            "status": "already_processed",
            "booking_id": 10,
            "current_status": "canceled",
            "rejected_count": 0,
        }
        assert UtilTest.get_booking(10).status == 'canceled'
        assert _is_used(token)

    def test_should_return_400_when_action_unknown(self, test_db_with_timeslots):
        _insert_pending_bookings()
        token = _issue_token(10)

        response = client.get(f"/api/email-action/cancel/{token}")

        assert response.status_code == 400, response.text
        assert response.json() == {"detail": "Invalid action"}
        assert not _is_used(token)

    def test_should_return_400_when_token_expired(self, test_db_with_timeslots):
        _insert_pending_bookings()
        token = _issue_token(10, expires_in_hours=-1)

        response = client.get(f"/api/email-action/approve/{token}")

        assert response.status_code == 400, response.text
        assert UtilTest.get_booking(10).status == 'pending'

    def test_should_return_400_when_token_is_guest_confirmation(self, test_db_with_timeslots):
        token = _issue_token(1, metadata={'type': 'guest_booking', 'email': 'guest@example.com'})

        response = client.get(f"/api/email-action/approve/{token}")

        assert response.status_code == 400, response.text
        assert response.json() == {"detail": "Invalid token type"}