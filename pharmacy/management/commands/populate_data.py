"""
Management command to populate the database with demo pharmacy data.
"""
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from pharmacy.models import InventoryItem, Prescription, User

MEDICINES = [
    # name, unit, stock, reorder point, price, supplier
    ('Amoxicillin 500mg', 'capsule', 50, 20, Decimal('0.45'), 'MedSupply Co.'),
    ('Paracetamol 500mg', 'tablet', 200, 50, Decimal('0.08'), 'MedSupply Co.'),
    ('Ibuprofen 400mg', 'tablet', 120, 40, Decimal('0.12'), 'HealthLine Ltd.'),
    ('Metformin 850mg', 'tablet', 8, 30, Decimal('0.20'), 'HealthLine Ltd.'),
    ('Salbutamol Inhaler 100mcg', 'inhaler', 12, 5, Decimal('4.90'), 'Respira Pharma'),
    ('Amoxicillin Suspension 250mg/5mL', 'mL', 0, 500, Decimal('0.03'), 'MedSupply Co.'),
    ('Omeprazole 20mg', 'capsule', 75, 25, Decimal('0.15'), 'GastroMed'),
    ('Cetirizine 10mg', 'tablet', 60, 20, Decimal('0.06'), 'HealthLine Ltd.'),
]

PRESCRIPTIONS = [
    ('patient-1001', 'Amoxicillin 500mg', '500mg three times daily', 'Take for 7 days with food.'),
    ('patient-1002', 'Paracetamol 500mg', '1-2 tablets every 6 hours', 'Max 8 tablets in 24 hours.'),
    ('patient-1003', 'Metformin 850mg', '850mg twice daily', 'Take with meals.'),
    ('patient-1004', 'Salbutamol Inhaler 100mcg', '2 puffs as needed', 'Up to 4 times daily.'),
]


class Command(BaseCommand):
    help = 'Populate database with demo inventory and prescriptions'

    def add_arguments(self, parser):
        parser.add_argument('--reset-stock', action='store_true',
                            help='Reset stock of existing demo items to the seed values.')

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('Creating demo pharmacy data...')
        self.create_inventory(options['reset_stock'])
        self.create_prescriptions()
        self.stdout.write(self.style.SUCCESS('Demo data ready.'))

    def create_inventory(self, reset_stock=False):
        created = 0
        for name, unit, stock, reorder, price, supplier in MEDICINES:
            item, was_created = InventoryItem.objects.get_or_create(
                name=name,
                defaults={
                    'unit': unit,
                    'current_stock': stock,
                    'reorder_point': reorder,
                    'price_per_unit': price,
                    'supplier': supplier,
                },
            )
            if was_created:
                created += 1
            elif reset_stock and item.current_stock != stock:
                item.current_stock = stock
                item.save(update_fields=['current_stock', 'updated_at'])
                self.stdout.write(f'  reset {name} to {stock} {unit}')
        self.stdout.write(f'Inventory items created: {created}')

    def create_prescriptions(self):
        doctor = User.objects.filter(role=User.ROLE_DOCTOR).first()
        prescribed_by = doctor.username if doctor else 'doctor1'
        created = 0
        for patient_id, medication, dosage, instructions in PRESCRIPTIONS:
            _, was_created = Prescription.objects.get_or_create(
                patient_id=patient_id,
                medication_name=medication,
                defaults={'dosage': dosage, 'instructions': instructions, 'prescribed_by': prescribed_by},
            )
            created += was_created
        self.stdout.write(f'Prescriptions created: {created}')
