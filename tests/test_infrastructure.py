from db.models import BookingStatus
from tests.test_main import client, test_db_with_infrastructures, test_db_with_timeslots, UtilTest, ADMIN, MANAGER, \
    OTHER_MANAGER, STUDENT, FUTURE_DATE, PAST_DATE


class TestPublicInfrastructureRoute:
    def test_get_active_should_skip_inactive_infrastructures(self, test_db_with_infrastructures):
        response = client.get("/api/infrastructures/active")

        assert response.status_code == 200, response.text
        assert [infrastructure['name'] for infrastructure in response.json()] == ['Cryo-EM', 'NMR']

    def test_get_available_timeslots(self, test_db_with_timeslots):
        UtilTest.insert_timeslot(4, 1, PAST_DATE, '09:00', '10:00')
        UtilTest.insert_timeslot(5, 1, FUTURE_DATE, '13:00', '14:00', status=BookingStatus.PENDING,
                                 user_email='student@example.com')

        response = client.get("/api/infrastructures/1/available-timeslots")

        assert response.status_code == 200, response.text
        data = response.json()
        assert [timeslot['id'] for timeslot in data] == [1, 2, 3]
        assert data[0]['start_time'] == '09:00:00'
        assert data[0]['booking_type'] == 'timeslot'

    def test_get_available_timeslots_should_filter_by_date(self, test_db_with_timeslots):
        response = client.get(f"/api/infrastructures/1/available-timeslots?date={FUTURE_DATE.isoformat()}")
        assert response.status_code == 200, response.text
        assert len(response.json()) == 3

        response = client.get(f"/api/infrastructures/1/available-timeslots?date={PAST_DATE.isoformat()}")
        assert response.status_code == 200, response.text
        assert response.json() == []

    def test_get_available_timeslots_should_return_404_when_infrastructure_unknown(self, test_db_with_infrastructures):
        response = client.get("/api/infrastructures/99/available-timeslots")

        assert response.status_code == 404, response.text
        assert response.json() == {"detail": "Infrastructure not found"}


class TestAdminInfrastructureRoute:
    def test_get_all_should_include_inactive(self, test_db_with_infrastructures):
        response = client.get("/api/infrastructures/admin/", headers=ADMIN)

        assert response.status_code == 200, response.text
        assert [infrastructure['name'] for infrastructure in response.json()] == ['Cryo-EM', 'NMR', 'Old Microscope']

    def test_get_all_should_return_403_when_not_admin(self, test_db_with_infrastructures):
        response = client.get("/api/infrastructures/admin/", headers=MANAGER)

        assert response.status_code == 403, response.text

    def test_create_infrastructure(self, test_db_with_infrastructures):
        response = client.post(
            "/api/infrastructures/admin/",
            headers=ADMIN,
            json={"name": "Mass Spec", "description": "Mass spectrometer", "location": "Lab 3",
                  "max_booking_duration": 240}
        )

        assert response.status_code == 201, response.text
        assert response.json() == {"message": "Infrastructure created successfully", "id": 4}

    def test_create_infrastructure_should_return_400_when_name_taken(self, test_db_with_infrastructures):
        response = client.post(
            "/api/infrastructures/admin/",
            headers=ADMIN,
            json={"name": "NMR", "description": "Another NMR"}
        )

        assert response.status_code == 400, response.text
        assert response.json() == {"detail": "An infrastructure with this name already exists"}

    def test_create_infrastructure_should_return_422_when_description_missing(self, test_db_with_infrastructures):
        response = client.post(
            "/api/infrastructures/admin/",
            headers=ADMIN,
            json={"name": "Mass Spec"}
        )

        assert response.status_code == 422, response.text

    def test_update_infrastructure(self, test_db_with_infrastructures):
        response = client.put(
            "/api/infrastructures/admin/2",
            headers=ADMIN,
            json={"name": "NMR 600", "description": "600 MHz NMR", "location": "Lab 2", "is_active": True}
        )

        assert response.status_code == 200, response.text
        data = response.json()
        assert data['name'] == 'NMR 600'
        assert data['location'] == 'Lab 2'

    def test_update_infrastructure_should_allow_keeping_own_name(self, test_db_with_infrastructures):
        response = client.put(
            "/api/infrastructures/admin/2",
            headers=ADMIN,
            json={"name": "NMR", "description": "Updated"}
        )

        assert response.status_code == 200, response.text

    def test_update_infrastructure_should_return_400_when_name_taken(self, test_db_with_infrastructures):
        response = client.put(
            "/api/infrastructures/admin/2",
            headers=ADMIN,
            json={"name": "Cryo-EM", "description": "Updated"}
        )

        assert response.status_code == 400, response.text

    def test_update_infrastructure_should_return_404_when_unknown(self, test_db_with_infrastructures):
        response = client.put(
            "/api/infrastructures/admin/99",
            headers=ADMIN,
            json={"name": "Unknown", "description": "Updated"}
        )

        assert response.status_code == 404, response.text

    def test_toggle_status(self, test_db_with_infrastructures):
        response = client.post("/api/infrastructures/admin/2/toggle-status", headers=ADMIN)
        assert response.status_code == 200, response.text
        assert response.json() == {"message": "Infrastructure deactivated successfully"}

        response = client.post("/api/infrastructures/admin/2/toggle-status", headers=ADMIN)
        assert response.status_code == 200, response.text
        assert response.json() == {"message": "Infrastructure activated successfully"}


class TestManagerInfrastructureRoute:
    def test_get_my_infrastructures(self, test_db_with_infrastructures):
        response = client.get("/api/infrastructures/manager/", headers=MANAGER)

        assert response.status_code == 200, response.text
        assert [infrastructure['id'] for infrastructure in response.json()] == [1]

    def test_get_my_infrastructures_when_none_assigned(self, test_db_with_infrastructures):
        response = client.get("/api/infrastructures/manager/", headers=OTHER_MANAGER)

        assert response.status_code == 200, response.text
        assert response.json() == []

    def test_get_my_infrastructures_should_return_403_when_not_manager(self, test_db_with_infrastructures):
        response = client.get("/api/infrastructures/manager/", headers=STUDENT)

        assert response.status_code == 403, response.text
