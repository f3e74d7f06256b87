from django.test import override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from apps.core.models import Warehouse


class HealthApiTests(APITestCase):
    def test_health_needs_no_api_key(self):
        response = self.client.get("/api/v1/health/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["status"], "ok")


class WarehouseApiTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_X_API_KEY="dev-api-key")

    def test_create_warehouse_normalizes_code(self):
        payload = {"code": "depot oran", "name": "Depot Oran", "type": "WHOLESALE"}

        response = self.client.post("/api/v1/warehouses/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Warehouse.objects.get().code, "DEPOT-ORAN")

    def test_list_hides_inactive_and_filters_type(self):
        Warehouse.objects.create(code="DEPOT", name="Depot central")
        Warehouse.objects.create(code="SHOW", name="Showroom", type=Warehouse.Type.RETAIL)
        Warehouse.objects.create(code="OLD", name="Ancien depot", is_active=False)

        active = self.client.get("/api/v1/warehouses/").json()
        retail = self.client.get("/api/v1/warehouses/?type=retail").json()
        everything = self.client.get("/api/v1/warehouses/?include_inactive=true").json()

        self.assertEqual([row["code"] for row in active], ["DEPOT", "SHOW"])
        self.assertEqual([row["code"] for row in retail], ["SHOW"])
        self.assertEqual(len(everything), 3)

    def test_missing_api_key_returns_401(self):
        self.client.credentials()

        response = self.client.get("/api/v1/warehouses/")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.json()["code"], "authentication_failed")

    def test_invalid_api_key_returns_401(self):
        self.client.credentials(HTTP_X_API_KEY="wrong-key")

        response = self.client.get("/api/v1/warehouses/")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    @override_settings(INVENTORY_READONLY_API_KEYS=["viewer-key"])
    def test_read_only_key_cannot_write(self):
        self.client.credentials(HTTP_X_API_KEY="viewer-key")

        read = self.client.get("/api/v1/warehouses/")
        write = self.client.post("/api/v1/warehouses/", {"code": "X", "name": "X"}, format="json")

        self.assertEqual(read.status_code, status.HTTP_200_OK)
        self.assertEqual(write.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(write.json()["code"], "permission_denied")


@override_settings(DEBUG=False, CORS_ALLOWED_ORIGINS=["http://backoffice.local"])
class CorsTests(APITestCase):
    def test_preflight_from_allowed_origin(self):
        response = self.client.options(
            "/api/v1/warehouses/",
            HTTP_ORIGIN="http://backoffice.local",
            HTTP_ACCESS_CONTROL_REQUEST_METHOD="POST",
        )

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(response["Access-Control-Allow-Origin"], "http://backoffice.local")
        self.assertIn("X-Actor", response["Access-Control-Allow-Headers"])

    def test_unknown_origin_gets_no_cors_headers(self):
        response = self.client.get("/api/v1/health/", HTTP_ORIGIN="http://elsewhere.example")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn("Access-Control-Allow-Origin", response)
