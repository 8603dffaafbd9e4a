"""Seed the product catalog, a few patients and opening stock for a demo pharmacy."""
from datetime import date, timedelta
from decimal import Decimal

from app.core.config import settings
from app.core.permissions import Role
from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.models.patient import Patient
from app.models.product import Product
from app.models.supplier import Manufacturer, Supplier
from app.models.user import User
from app.services.inventory_service import post_movement

PRODUCTS = [
    # name, generic, form, strength, cost, price, rx, controlled, opening units
    {"name": "Panadol 500mg", "generic": "paracetamol", "form": "tablet", "strength": "500mg",
     "cost": "0.80", "price": "1.50", "rx": False, "controlled": False, "units": 500},
    {"name": "Brufen 400mg", "generic": "ibuprofen", "form": "tablet", "strength": "400mg",
     "cost": "1.20", "price": "2.40", "rx": False, "controlled": False, "units": 300},
    {"name": "Disprin 300mg", "generic": "aspirin", "form": "tablet", "strength": "300mg",
     "cost": "0.60", "price": "1.10", "rx": False, "controlled": False, "units": 200},
    {"name": "Amoxil 500mg", "generic": "amoxicillin", "form": "capsule", "strength": "500mg",
     "cost": "2.50", "price": "4.80", "rx": True, "controlled": False, "units": 240},
    {"name": "Augmentin 625mg", "generic": "amoxicillin/clavulanate", "form": "tablet", "strength": "625mg",
     "cost": "6.00", "price": "11.50", "rx": True, "controlled": False, "units": 120},
    {"name": "Warfarin 5mg", "generic": "warfarin", "form": "tablet", "strength": "5mg",
     "cost": "1.80", "price": "3.20", "rx": True, "controlled": False, "units": 90},
    {"name": "Glucophage 500mg", "generic": "metformin", "form": "tablet", "strength": "500mg",
     "cost": "1.00", "price": "2.00", "rx": True, "controlled": False, "units": 400},
    {"name": "Zestril 10mg", "generic": "lisinopril", "form": "tablet", "strength": "10mg",
     "cost": "1.40", "price": "2.70", "rx": True, "controlled": False, "units": 150},
    {"name": "Aldactone 25mg", "generic": "spironolactone", "form": "tablet", "strength": "25mg",
     "cost": "1.60", "price": "3.00", "rx": True, "controlled": False, "units": 60},
    {"name": "Zocor 20mg", "generic": "simvastatin", "form": "tablet", "strength": "20mg",
     "cost": "1.50", "price": "2.90", "rx": True, "controlled": False, "units": 180},
    {"name": "Morphine Sulphate 10mg", "generic": "morphine", "form": "tablet", "strength": "10mg",
     "cost": "4.00", "price": "7.50", "rx": True, "controlled": True, "units": 40},
    {"name": "Tramadol 50mg", "generic": "tramadol", "form": "capsule", "strength": "50mg",
     "cost": "2.20", "price": "4.00", "rx": True, "controlled": True, "units": 60},
    {"name": "ORS Sachet", "generic": "oral rehydration salts", "form": "powder", "strength": None,
     "cost": "0.30", "price": "0.75", "rx": False, "controlled": False, "units": 8},
]

PATIENTS = [
    {"first_name": "Tendai", "last_name": "Moyo", "national_id": "63-123456-A-42",
     "phone": "+263771000001", "allergies": ["penicillin"], "chronic_conditions": []},
    {"first_name": "Rudo", "last_name": "Chikwanha", "national_id": "08-765432-B-13",
     "phone": "+263772000002", "allergies": [], "chronic_conditions": ["hypertension"]},
    {"first_name": "Farai", "last_name": "Ndlovu", "national_id": "29-246810-C-07",
     "phone": "+263773000003", "allergies": ["sulfa"], "chronic_conditions": ["diabetes"]},
]


def seed_catalog():
    init_db()
    db = SessionLocal()
    try:
        admin = db.query(User).filter(User.role == Role.ADMINISTRATOR).first()
        if not admin:
            print("No administrator found. Database not initialized properly.")
            return

        if db.query(Product).count():
            print("Catalog already seeded, nothing to do")
            return

        supplier = Supplier(name="Medsales Zimbabwe", contact_person="Orders desk", phone="+263242000100")
        manufacturer = Manufacturer(name="CAPS Pharmaceuticals", country="Zimbabwe")
        db.add_all([supplier, manufacturer])
        db.flush()

        expiry = date.today() + timedelta(days=540)
        for item in PRODUCTS:
            product = Product(
                name=item["name"],
                generic_name=item["generic"],
                drug_form=item["form"],
                strength=item["strength"],
                supplier_id=supplier.id,
                manufacturer_id=manufacturer.id,
                unit_price=Decimal(item["cost"]),
                selling_price=Decimal(item["price"]),
                vat_percentage=settings.DEFAULT_VAT_PERCENTAGE,
                reorder_level=10,
                requires_prescription=item["rx"],
                is_controlled_substance=item["controlled"],
            )
            db.add(product)
            db.flush()
            post_movement(
                db,
                product.id,
                "grn",
                item["units"],
                admin.id,
                batch_number=f"OPEN-{product.id:04d}",
                expiry_date=expiry,
                reference_number="OPENING-STOCK",
                notes="Opening balance",
            )

        for data in PATIENTS:
            db.add(Patient(**data))

        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print(f"Added {len(PRODUCTS)} products and {len(PATIENTS)} patients")
    for item in PRODUCTS:
        flags = ", ".join(f for f, on in (("Rx", item["rx"]), ("controlled", item["controlled"])) if on)
        print(f"  {item['name']:<26} ${item['price']:>6}  {item['units']:>4} units  {flags}")


if __name__ == "__main__":
    seed_catalog()
