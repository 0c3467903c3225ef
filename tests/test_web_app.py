import tempfile
import unittest
from pathlib import Path
from unittest import mock

from reservation_desk import ReservationGateway
from reservation_desk.config import load_settings
from reservation_desk.web_app import create_app, main


class WebAppTestCase(unittest.TestCase):
    def setUp(self) -> None:
        temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(temp_dir.cleanup)
        self.gateway = ReservationGateway(f"sqlite:///{Path(temp_dir.name) / 'reservations.db'}")
        self.gateway.open()
        self.addCleanup(self.gateway.close)
        self.gateway.ensure_schema()
        self.client = create_app(self.gateway).test_client()


class TestCreateReservationEndpoint(WebAppTestCase):
    def test_valid_request_is_created(self) -> None:
        response = self.client.post(
            "/api/reservations",
            json={"name": "Alice", "date": "2024-05-01", "time": "3:00 PM", "is_vip": True},
        )

        self.assertEqual(response.status_code, 201)
        payload = response.get_json()
        self.assertEqual(payload["status"], "success")
        self.assertEqual(payload["message"], "Reservation added successfully.")
        self.assertIsInstance(payload["id"], int)

        records = self.gateway.list_reservations()
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].to_dict()["time"], "15:00:00")
        self.assertTrue(records[0].is_vip)

    def test_missing_field_returns_400(self) -> None:
        response = self.client.post("/api/reservations", json={"name": "Alice", "time": "3:00 PM"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.get_json(),
            {"status": "error", "message": "Name, date, and time are required."},
        )
        self.assertEqual(self.gateway.list_reservations(), [])

    def test_empty_body_returns_400(self) -> None:
        response = self.client.post("/api/reservations", data="", content_type="application/json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["message"], "Name, date, and time are required.")

    def test_non_object_body_returns_400(self) -> None:
        response = self.client.post("/api/reservations", json=["Alice", "2024-05-01", "3:00 PM"])

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["status"], "error")

    def test_time_without_meridiem_returns_400(self) -> None:
        response = self.client.post(
            "/api/reservations",
            json={"name": "Alice", "date": "2024-05-01", "time": "15:00"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["status"], "error")
        self.assertEqual(self.gateway.list_reservations(), [])

    def test_non_ascii_digits_in_time_return_400(self) -> None:
        response = self.client.post(
            "/api/reservations",
            json={"name": "Alice", "date": "2024-05-01", "time": "3:²² PM"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.get_json(),
            {"status": "error", "message": "Time must be in 'h:mm AM' or 'h:mm PM' format."},
        )
        self.assertEqual(self.gateway.list_reservations(), [])

    def test_invalid_vip_flag_returns_400(self) -> None:
        response = self.client.post(
            "/api/reservations",
            json={"name": "Alice", "date": "2024-05-01", "time": "3:00 PM", "is_vip": "sometimes"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["message"], "is_vip must be a boolean.")

    def test_storage_failure_returns_500_with_detail(self) -> None:
        self.gateway.close()

        response = self.client.post(
            "/api/reservations",
            json={"name": "Alice", "date": "2024-05-01", "time": "3:00 PM"},
        )

        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.get_json(),
            {"status": "error", "message": "Error adding reservation: Storage handle is not open."},
        )


class TestListReservationsEndpoint(WebAppTestCase):
    def test_lists_created_reservations(self) -> None:
        self.client.post("/api/reservations", json={"name": "Alice", "date": "2024-05-01", "time": "3:00 PM"})
        self.client.post(
            "/api/reservations",
            json={"name": "<em>Bob</em>", "date": "2024-05-02", "time": "12:30 AM", "is_vip": True},
        )

        response = self.client.get("/api/reservations")

        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual(payload["status"], "success")
        self.assertEqual(
            [(row["name"], row["date"], row["time"], row["is_vip"]) for row in payload["data"]],
            [
                ("Alice", "2024-05-01", "15:00:00", False),
                ("Bob", "2024-05-02", "00:30:00", True),
            ],
        )
        self.assertNotEqual(payload["data"][0]["id"], payload["data"][1]["id"])

    def test_storage_failure_returns_500_with_detail(self) -> None:
        self.gateway.close()

        response = self.client.get("/api/reservations")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.get_json()["message"],
            "Error fetching reservations: Storage handle is not open.",
        )

    def test_storage_detail_can_be_redacted(self) -> None:
        client = create_app(self.gateway, expose_storage_errors=False).test_client()
        self.gateway.close()

        response = client.get("/api/reservations")

        self.assertEqual(response.status_code, 500)
        self.assertNotIn("Storage handle", response.get_json()["message"])

    def test_unexpected_error_hides_detail(self) -> None:
        with mock.patch.object(self.gateway, "list_reservations", side_effect=KeyError("secret")):
            response = self.client.get("/api/reservations")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.get_json(),
            {"status": "error", "message": "An unexpected error occurred"},
        )


class TestAppSurface(WebAppTestCase):
    def test_index_serves_landing_page(self) -> None:
        response = self.client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertIn(b"/api/reservations", response.data)
        response.close()

    def test_cors_headers_are_added(self) -> None:
        response = self.client.get("/api/reservations")

        self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")
        self.assertIn("POST", response.headers["Access-Control-Allow-Methods"])

    def test_unknown_route_uses_json_envelope(self) -> None:
        response = self.client.get("/api/unknown")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["status"], "error")

    def test_wrong_method_uses_json_envelope(self) -> None:
        response = self.client.delete("/api/reservations")

        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.get_json()["status"], "error")


class TestStartup(unittest.TestCase):
    def test_unreachable_database_is_fatal(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            missing = Path(temp_dir) / "missing" / "reservations.db"
            settings = load_settings(env={"DATABASE_URL": f"sqlite:///{missing}"})

            with mock.patch("flask.Flask.run") as run:
                exit_code = main(settings)

        self.assertEqual(exit_code, 1)
        run.assert_not_called()

    def test_reachable_database_starts_serving(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            settings = load_settings(
                env={"DATABASE_URL": f"sqlite:///{Path(temp_dir) / 'reservations.db'}", "PORT": "5123"}
            )

            with mock.patch("flask.Flask.run") as run:
                exit_code = main(settings)

        self.assertEqual(exit_code, 0)
        run.assert_called_once_with(host="127.0.0.1", port=5123, debug=False)


if __name__ == "__main__":
    unittest.main()
