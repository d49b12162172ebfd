"""
Integration tests for the pharmacy API.

These tests exercise the HTTP surface: the response envelope, role based
access control, status codes for each error kind and the dispensing flow
end to end.  They use Django REST Framework's APIClient within the
APITestCase base class.

To run the tests:

```
pytest -q pharmacy/tests
```
"""
import uuid
from decimal import Decimal
from unittest import mock

from django.db import OperationalError
from django.urls import reverse
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient, APITestCase

from ..models import Dispensation, InventoryItem, Prescription, User


class PharmacyAPITests(APITestCase):
    def setUp(self) -> None:
        """Create staff of each role, a stocked item and a prescription."""
        self.pharmacist = User.objects.create_user(username="pharm1", password="pharmpass", role="pharmacist")
        self.admin = User.objects.create_user(username="admin1", password="adminpass", role="admin")
        self.doctor = User.objects.create_user(username="doc1", password="docpass", role="doctor")
        self.item = InventoryItem.objects.create(
            name="Amoxicillin 500mg",
            unit="capsule",
            current_stock=50,
            reorder_point=20,
            price_per_unit=Decimal("0.45"),
        )
        self.rx = Prescription.objects.create(
            patient_id="patient-1001",
            medication_name="Amoxicillin 500mg",
            dosage="500mg three times daily",
            prescribed_by="doc1",
        )

    def authenticate(self, user: User) -> APIClient:
        """Return an authenticated APIClient for the given user."""
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def dispense(self, client, quantity, item_id=None, rx_id=None):
        return client.post(
            reverse("dispensations"),
            {
                "prescriptionId": str(rx_id or self.rx.pk),
                "inventoryItemId": str(item_id or self.item.pk),
                "quantity": quantity,
            },
            format="json",
        )

    # Dispensing

    def test_pharmacist_can_fulfill_prescription(self):
        """A pharmacist dispensing 5 units leaves 45 in stock and gets 201."""
        client = self.authenticate(self.pharmacist)
        response = self.dispense(client, 5)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data["ok"])
        self.assertEqual(response.data["data"]["quantity"], 5)
        self.assertEqual(response.data["data"]["dispensedBy"], str(self.pharmacist.pk))
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_stock, 45)

    def test_insufficient_stock_returns_conflict_with_details(self):
        client = self.authenticate(self.pharmacist)
        self.dispense(client, 5)
        response = self.dispense(client, 50)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(response.data["ok"])
        error = response.data["error"]
        self.assertEqual(error["code"], "insufficient_stock")
        self.assertEqual(error["details"], {"available": 45, "requested": 50})
        self.assertIn("Available: 45, Requested: 50", error["message"])
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_stock, 45)
        self.assertEqual(Dispensation.objects.count(), 1)

    def test_unknown_item_and_prescription_return_404(self):
        client = self.authenticate(self.pharmacist)
        response = self.dispense(client, 1, item_id=uuid.uuid4())
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["code"], "item_not_found")
        response = self.dispense(client, 1, rx_id=uuid.uuid4())
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["code"], "prescription_not_found")

    def test_invalid_dispense_payload_returns_400(self):
        client = self.authenticate(self.pharmacist)
        response = client.post(
            reverse("dispensations"),
            {"prescriptionId": "abc", "inventoryItemId": str(self.item.pk), "quantity": 0},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        error = response.data["error"]
        self.assertEqual(error["code"], "invalid_input")
        self.assertIn("prescriptionId", error["details"])
        self.assertIn("quantity", error["details"])

    def test_non_pharmacists_cannot_dispense(self):
        """Doctors and administrators receive 403 and stock is untouched."""
        for user in (self.doctor, self.admin):
            response = self.dispense(self.authenticate(user), 5)
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
            self.assertFalse(response.data["ok"])
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_stock, 50)

    def test_anonymous_requests_are_rejected(self):
        response = APIClient().get(reverse("inventory-list"))
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(response.data["ok"])

    def test_token_authentication(self):
        token = Token.objects.create(user=self.pharmacist)
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Token {token.key}")
        response = client.get(reverse("dispensations"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_database_outage_returns_503(self):
        client = self.authenticate(self.pharmacist)
        with mock.patch("pharmacy.services.inventory.decrement_stock", side_effect=OperationalError("locked")):
            response = self.dispense(client, 5)
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data["error"]["code"], "transient_failure")
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_stock, 50)

    def test_list_and_retrieve_dispensations(self):
        client = self.authenticate(self.pharmacist)
        created = self.dispense(client, 5).data["data"]
        self.dispense(client, 3)
        response = client.get(reverse("dispensations"), {"inventoryItemId": str(self.item.pk), "pageSize": 1})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["pagination"], {"total": 2, "page": 1, "pageSize": 1})
        self.assertEqual(len(response.data["data"]), 1)

        response = client.get(reverse("dispensation-detail", args=[created["id"]]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["quantity"], 5)
        self.assertEqual(response.data["data"]["inventoryItem"]["name"], "Amoxicillin 500mg")

        response = client.get(reverse("dispensation-detail", args=[uuid.uuid4()]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    # Inventory

    def test_any_staff_can_read_inventory(self):
        response = self.authenticate(self.doctor).get(reverse("inventory-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"][0]["name"], "Amoxicillin 500mg")
        self.assertEqual(response.data["data"][0]["pricePerUnit"], "0.45")

    def test_admin_creates_item(self):
        client = self.authenticate(self.admin)
        response = client.post(
            reverse("inventory-list"),
            {"name": "Paracetamol 500mg", "unit": "tablet", "pricePerUnit": "0.08", "currentStock": 200},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["currentStock"], 200)
        self.assertEqual(response.data["data"]["reorderPoint"], 10)

    def test_doctor_cannot_create_item(self):
        response = self.authenticate(self.doctor).post(
            reverse("inventory-list"),
            {"name": "Paracetamol 500mg", "unit": "tablet", "pricePerUnit": "0.08"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(InventoryItem.objects.filter(name="Paracetamol 500mg").exists())

    def test_create_duplicate_or_invalid_item(self):
        client = self.authenticate(self.admin)
        response = client.post(
            reverse("inventory-list"),
            {"name": "Amoxicillin 500mg", "unit": "capsule", "pricePerUnit": "1.00"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "duplicate_name")

        response = client.post(
            reverse("inventory-list"),
            {"name": "Saline", "unit": "mL", "pricePerUnit": "-1", "currentStock": -5},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("pricePerUnit", response.data["error"]["details"])
        self.assertIn("currentStock", response.data["error"]["details"])

    def test_counts_beyond_column_range_are_rejected(self):
        """Stock figures too large for the database column are a 400, not a server error."""
        client = self.authenticate(self.admin)
        response = client.post(
            reverse("inventory-list"),
            {"name": "Saline", "unit": "mL", "pricePerUnit": "0.01", "currentStock": 10 ** 19},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "invalid_input")
        self.assertIn("currentStock", response.data["error"]["details"])
        self.assertFalse(InventoryItem.objects.filter(name="Saline").exists())

        response = client.patch(
            reverse("inventory-detail", args=[self.item.pk]), {"reorderPoint": 10 ** 19}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("reorderPoint", response.data["error"]["details"])
        self.item.refresh_from_db()
        self.assertEqual(self.item.reorder_point, 20)

    def test_update_item(self):
        client = self.authenticate(self.pharmacist)
        url = reverse("inventory-detail", args=[self.item.pk])
        response = client.patch(url, {"currentStock": 120, "reorderPoint": 30}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["currentStock"], 120)
        response = client.patch(url, {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_item(self):
        client = self.authenticate(self.admin)
        spare = InventoryItem.objects.create(name="Spare", unit="tablet", price_per_unit=Decimal("1.00"))
        response = client.delete(reverse("inventory-detail", args=[spare.pk]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = client.delete(reverse("inventory-detail", args=[spare.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_item_with_history_conflicts(self):
        self.dispense(self.authenticate(self.pharmacist), 5)
        response = self.authenticate(self.admin).delete(reverse("inventory-detail", args=[self.item.pk]))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "referential_conflict")
        self.assertTrue(InventoryItem.objects.filter(pk=self.item.pk).exists())

    def test_malformed_item_id_returns_400(self):
        response = self.authenticate(self.admin).get(reverse("inventory-detail", args=["not-a-uuid"]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_low_stock_and_dashboard(self):
        client = self.authenticate(self.pharmacist)
        self.dispense(client, 35)
        response = client.get(reverse("inventory-low-stock"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([i["name"] for i in response.data["data"]], ["Amoxicillin 500mg"])

        response = client.get(reverse("pharmacy-dashboard"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["lowStock"], 1)
        self.assertEqual(response.data["data"]["unitsDispensedLast24h"], 35)
        self.assertEqual(len(response.data["lowStockItems"]), 1)

        response = self.authenticate(self.doctor).get(reverse("pharmacy-dashboard"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_healthz(self):
        response = APIClient().get("/healthz")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.json()["ok"])
