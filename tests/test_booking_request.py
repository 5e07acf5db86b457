import os

from db.models import BookingStatus, BookingAnswer, EmailActionToken
from tests.test_main import client, test_db_with_timeslots, UtilTest, TestingSessionLocal, STUDENT, ADMIN, FUTURE_DATE

REQUEST_URL = "/api/bookings/user/request"


def _answers_of(booking_id):
    with TestingSessionLocal() as session:
        return session.query(BookingAnswer).filter_by(booking_id=booking_id).order_by(BookingAnswer.question_id).all()


def _action_tokens_of(booking_id):
    with TestingSessionLocal() as session:
        return session.query(EmailActionToken).filter_by(booking_id=booking_id).all()


class TestRequestBookingRoute:
    def test_request_booking_should_claim_timeslot(self, test_db_with_timeslots):
        response = client.post(
            REQUEST_URL,
            headers=STUDENT,
            data={"timeslot_id": "1", "purpose": "Screening", "answer_1": "protein", "answer_2": "none"}
        )

        assert response.status_code == 201, response.text
        assert response.json() == {
            "message": "Booking request submitted successfully",
            "booking_id": 1,
            "infrastructure_id": 1,
            "booking_date": FUTURE_DATE.isoformat(),
            "start_time": "09:00:00",
            "end_time": "10:00:00",
        }

        booking = UtilTest.get_booking(1)
        assert booking.booking_type == 'booking'
        assert booking.status == 'pending'
        assert booking.user_email == 'student@example.com'
        assert booking.purpose == 'Screening'

        assert [(answer.question_id, answer.answer_text) for answer in _answers_of(1)] == [(1, 'protein'),
                                                                                          (2, 'none')]
        assert len(_action_tokens_of(1)) == 1

    def test_request_booking_should_return_404_when_timeslot_already_claimed(self, test_db_with_timeslots):
        response = client.post(REQUEST_URL, headers=STUDENT, data={"timeslot_id": "1", "answer_1": "protein"})
        assert response.status_code == 201, response.text

        response = client.post(REQUEST_URL, headers=ADMIN, data={"timeslot_id": "1", "answer_1": "dna"})

        assert response.status_code == 404, response.text
        assert response.json() == {"detail": "Timeslot not found or not available"}
        assert UtilTest.get_booking(1).user_email == 'student@example.com'
        assert len(_answers_of(1)) == 1

    def test_request_booking_should_not_touch_slot_that_is_not_available(self, test_db_with_timeslots):
        UtilTest.insert_timeslot(10, 1, FUTURE_DATE, '14:00', '15:00', status=BookingStatus.CANCELED)

        response = client.post(REQUEST_URL, headers=STUDENT, data={"timeslot_id": "10", "answer_1": "protein"})

        assert response.status_code == 404, response.text
        booking = UtilTest.get_booking(10)
        assert booking.status == 'canceled'
        assert booking.booking_type == 'timeslot'
        assert booking.user_email is None
        assert _action_tokens_of(10) == []

    def test_request_booking_should_return_404_when_timeslot_unknown(self, test_db_with_timeslots):
        response = client.post(REQUEST_URL, headers=STUDENT, data={"timeslot_id": "99"})

        assert response.status_code == 404, response.text

    def test_request_booking_should_return_400_when_required_answer_missing(self, test_db_with_timeslots):
        response = client.post(REQUEST_URL, headers=STUDENT, data={"timeslot_id": "1", "answer_2": "only optional"})

        assert response.status_code == 400, response.text
        assert response.json() == {"detail": {"message": "Not all required questions were answered",
                                              "missing_answers": [1]}}
        booking = UtilTest.get_booking(1)
        assert booking.status == 'available'
        assert booking.user_email is None
        assert _answers_of(1) == []

    def test_request_booking_should_treat_blank_answer_as_missing(self, test_db_with_timeslots):
        response = client.post(REQUEST_URL, headers=STUDENT, data={"timeslot_id": "1", "answer_1": "   "})

        assert response.status_code == 400, response.text
        assert response.json()['detail']['missing_answers'] == [1]

    def test_request_booking_should_ignore_answers_to_other_questions(self, test_db_with_timeslots):
        UtilTest.insert_question(3, 2, 'NMR question')

        response = client.post(
            REQUEST_URL,
            headers=STUDENT,
            data={"timeslot_id": "1", "answer_1": "protein", "answer_3": "not asked", "answer_99": "unknown"}
        )

        assert response.status_code == 201, response.text
        assert [answer.question_id for answer in _answers_of(1)] == [1]

    def test_request_booking_should_return_400_when_timeslot_id_missing(self, test_db_with_timeslots):
        response = client.post(REQUEST_URL, headers=STUDENT, data={"answer_1": "protein"})

        assert response.status_code == 400, response.text
        assert response.json() == {"detail": "Missing required parameter: timeslot_id"}

    def test_request_booking_should_return_401_when_not_logged_in(self, test_db_with_timeslots):
        response = client.post(REQUEST_URL, data={"timeslot_id": "1", "answer_1": "protein"})

        assert response.status_code == 401, response.text
        assert UtilTest.get_booking(1).status == 'available'


class TestRequestBookingWithDocumentRoute:
    def test_request_booking_should_store_uploaded_document(self, test_db_with_timeslots):
        UtilTest.insert_question(3, 1, 'Safety plan', question_type='document', is_required=True, display_order=3)

        response = client.post(
            REQUEST_URL,
            headers=STUDENT,
            data={"timeslot_id": "2", "answer_1": "protein"},
            files={"file_3": ("plan.pdf", b"%PDF-1.4 safety plan", "application/pdf")}
        )

        assert response.status_code == 201, response.text

        answer = _answers_of(2)[-1]
        assert answer.question_id == 3
        assert answer.answer_text == 'plan.pdf'
        assert os.path.isfile(answer.document_path)
        assert os.path.join('bookings', '2') in answer.document_path

        response = client.get("/api/bookings/2/details", headers=STUDENT)
        assert response.status_code == 200, response.text
        document = response.json()['answers'][-1]
        assert document['document_url'].startswith('/uploads/bookings/2/')

        response = client.get("/api/bookings/download-file/2/3", headers=STUDENT)
        assert response.status_code == 200, response.text
        assert response.content == b"%PDF-1.4 safety plan"
        assert response.headers['content-type'] == 'application/pdf'

    def test_request_booking_should_reject_disallowed_file_type(self, test_db_with_timeslots):
        UtilTest.insert_question(3, 1, 'Safety plan', question_type='document', display_order=3)

        response = client.post(
            REQUEST_URL,
            headers=STUDENT,
            data={"timeslot_id": "2", "answer_1": "protein"},
            files={"file_3": ("tool.exe", b"MZ", "application/x-msdownload")}
        )

        assert response.status_code == 400, response.text
        assert UtilTest.get_booking(2).status == 'available'

    def test_request_booking_should_return_400_when_required_document_missing(self, test_db_with_timeslots):
        UtilTest.insert_question(3, 1, 'Safety plan', question_type='document', is_required=True, display_order=3)

        response = client.post(REQUEST_URL, headers=STUDENT, data={"timeslot_id": "2", "answer_1": "protein"})

        assert response.status_code == 400, response.text
        assert response.json()['detail']['missing_answers'] == [3]
