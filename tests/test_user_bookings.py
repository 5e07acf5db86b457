import datetime

from db.models import BookingStatus
from tests.test_main import client, test_db_with_timeslots, UtilTest, ADMIN, MANAGER, OTHER_MANAGER, STUDENT, \
    FACULTY, FUTURE_DATE, PAST_DATE

TOMORROW = datetime.date.today() + datetime.timedelta(days=1)


def _insert_student_bookings():
    UtilTest.insert_timeslot(10, 1, PAST_DATE, '09:00', '10:00', status=BookingStatus.COMPLETED,
                             user_email='student@example.com')
    UtilTest.insert_timeslot(11, 1, FUTURE_DATE, '13:00', '14:00', status=BookingStatus.PENDING,
                             user_email='student@example.com', purpose='Screening')
    UtilTest.insert_timeslot(12, 2, FUTURE_DATE, '15:00', '16:00', status=BookingStatus.APPROVED,
                             user_email='student@example.com')
    UtilTest.insert_timeslot(13, 1, FUTURE_DATE, '16:00', '17:00', status=BookingStatus.PENDING,
                             user_email='faculty@example.com')


class TestMyBookingsRoute:
    def test_get_all_bookings(self, test_db_with_timeslots):
        _insert_student_bookings()

        response = client.get("/api/bookings/user/all", headers=STUDENT)

        assert response.status_code == 200, response.text
        data = response.json()
        assert [booking['id'] for booking in data] == [12, 11, 10]
        assert data[0]['infrastructure_name'] == 'NMR'
        assert data[1]['infrastructure_location'] == 'Lab 1'
        assert data[1]['purpose'] == 'Screening'

    def test_get_recent_bookings_should_return_at_most_five(self, test_db_with_timeslots):
        for i in range(7):
            UtilTest.insert_timeslot(20 + i, 2, FUTURE_DATE + datetime.timedelta(days=i), '09:00', '10:00',
                                     status=BookingStatus.PENDING, user_email='student@example.com')

        response = client.get("/api/bookings/user/recent", headers=STUDENT)

        assert response.status_code == 200, response.text
        assert [booking['id'] for booking in response.json()] == [26, 25, 24, 23, 22]

    def test_get_all_bookings_when_none(self, test_db_with_timeslots):
        response = client.get("/api/bookings/user/all", headers=FACULTY)

        assert response.status_code == 200, response.text
        assert response.json() == []


class TestCancelMyBookingRoute:
    def test_cancel_booking(self, test_db_with_timeslots):
        _insert_student_bookings()

        response = client.post("/api/bookings/user/11/cancel", headers=STUDENT)

        assert response.status_code == 200, response.text
        assert response.json() == {"message": "Booking canceled successfully"}
        assert UtilTest.get_booking(11).status == 'canceled'

    def test_cancel_booking_should_return_400_within_24_hours(self, test_db_with_timeslots):
        UtilTest.insert_timeslot(10, 1, TOMORROW, '00:00', '01:00', status=BookingStatus.APPROVED,
                                 user_email='student@example.com')

        response = client.post("/api/bookings/user/10/cancel", headers=STUDENT)

        assert response.status_code == 400, response.text
        assert response.json() == {"detail": "Bookings within 24 hours cannot be canceled"}
        assert UtilTest.get_booking(10).status == 'approved'

    def test_cancel_booking_should_return_400_when_completed(self, test_db_with_timeslots):
        _insert_student_bookings()

        response = client.post("/api/bookings/user/10/cancel", headers=STUDENT)

        assert response.status_code == 400, response.text
        assert response.json() == {"detail": "Only pending or approved bookings can be canceled by the user"}

    def test_cancel_booking_should_return_404_when_not_owner(self, test_db_with_timeslots):
        _insert_student_bookings()

        response = client.post("/api/bookings/user/13/cancel", headers=STUDENT)

        assert response.status_code == 404, response.text
        assert UtilTest.get_booking(13).status == 'pending'


class TestBookingDetailsRoute:
    def test_get_details_as_owner(self, test_db_with_timeslots):
        _insert_student_bookings()
        UtilTest.insert_answer(11, 2, answer_text='fragile samples')
        UtilTest.insert_answer(11, 1, answer_text='protein')

        response = client.get("/api/bookings/11/details", headers=STUDENT)

        assert response.status_code == 200, response.text
        data = response.json()
        assert data['booking']['id'] == 11
        assert data['booking']['infrastructure_name'] == 'Cryo-EM'
        assert data['answers'] == [
            {'question_id': 1, 'question_text': 'Sample type?', 'question_type': 'text', 'answer_text': 'protein',
             'document_url': None},
            {'question_id': 2, 'question_text': 'Comments', 'question_type': 'text',
             'answer_text': 'fragile samples', 'document_url': None},
        ]

    def test_get_details_as_admin_and_assigned_manager(self, test_db_with_timeslots):
        _insert_student_bookings()

        assert client.get("/api/bookings/11/details", headers=ADMIN).status_code == 200
        assert client.get("/api/bookings/11/details", headers=MANAGER).status_code == 200

    def test_get_details_should_return_403_when_not_allowed(self, test_db_with_timeslots):
        _insert_student_bookings()

        response = client.get("/api/bookings/11/details", headers=FACULTY)
        assert response.status_code == 403, response.text
        assert response.json() == {"detail": "You do not have permission to view this booking"}

        response = client.get("/api/bookings/11/details", headers=OTHER_MANAGER)
        assert response.status_code == 403, response.text

    def test_get_details_should_return_404_when_unknown(self, test_db_with_timeslots):
        response = client.get("/api/bookings/99/details", headers=ADMIN)

        assert response.status_code == 404, response.text


class TestDownloadFileRoute:
    def test_download_file_should_return_404_when_no_document(self, test_db_with_timeslots):
        _insert_student_bookings()
        UtilTest.insert_answer(11, 1, answer_text='protein')

        response = client.get("/api/bookings/download-file/11/1", headers=STUDENT)

        assert response.status_code == 404, response.text
        assert response.json() == {"detail": "File not found"}

    def test_download_file_should_return_404_when_missing_on_disk(self, test_db_with_timeslots):
        _insert_student_bookings()
        UtilTest.insert_question(3, 1, 'Safety plan', question_type='document')
        UtilTest.insert_answer(11, 3, answer_text='plan.pdf', document_path='/nonexistent/plan.pdf')

        response = client.get("/api/bookings/download-file/11/3", headers=STUDENT)

        assert response.status_code == 404, response.text
        assert response.json() == {"detail": "File not found on server"}

    def test_download_file_should_return_403_when_not_allowed(self, test_db_with_timeslots):
        _insert_student_bookings()
        UtilTest.insert_question(3, 1, 'Safety plan', question_type='document')
        UtilTest.insert_answer(11, 3, answer_text='plan.pdf', document_path='/nonexistent/plan.pdf')

        response = client.get("/api/bookings/download-file/11/3", headers=FACULTY)

        assert response.status_code == 403, response.text
