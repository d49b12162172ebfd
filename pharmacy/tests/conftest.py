from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from pharmacy.models import InventoryItem, Prescription, User
from pharmacy.services.identity import PharmacistIdentity


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def pharmacist(db):
    return User.objects.create_user(username='pharm1', password='P@ssw0rd1', role='pharmacist',
                                    external_id='idp|pharm1')


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(username='admin1', password='P@ssw0rd1', role='admin')


@pytest.fixture
def doctor(db):
    return User.objects.create_user(username='doc1', password='P@ssw0rd1', role='doctor')


@pytest.fixture
def identity(pharmacist):
    return PharmacistIdentity.from_user(pharmacist)


@pytest.fixture
def amoxicillin(db):
    return InventoryItem.objects.create(
        name='Amoxicillin 500mg', unit='capsule', current_stock=50, reorder_point=10,
        price_per_unit=Decimal('0.45'), supplier='MedSupply Co.',
    )


@pytest.fixture
def prescription(db):
    return Prescription.objects.create(
        patient_id='patient-1001', medication_name='Amoxicillin 500mg',
        dosage='500mg three times daily', prescribed_by='doc1',
    )


@pytest.fixture
def client_for():
    def make(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return make
