"""Safety screener rules, ordering and failure isolation."""
from app.models.patient import Patient
from app.models.product import Product
from app.services.safety_screener import (
    BLEEDING_RISK_WARNING,
    SafetyScreener,
    parse_advisory_reply,
)


def _patient(allergies=(), conditions=()):
    return Patient(id=1, first_name="Rudo", last_name="Chikwanha",
                   allergies=list(allergies), chronic_conditions=list(conditions))


def _product(pid, name, generic=None, strength=None):
    return Product(id=pid, name=name, generic_name=generic, strength=strength)


local = SafetyScreener(advisor=None)


def test_no_patient_or_no_products_gives_empty_list():
    assert local.screen(None, [_product(1, "Aspirin 100mg")]) == []
    assert local.screen(_patient(allergies=["aspirin"]), []) == []


def test_allergy_matches_name_or_generic_case_insensitively():
    patient = _patient(allergies=["IBUPROFEN", "sulfa"])
    products = [
        _product(1, "Brufen 400mg", generic="Ibuprofen"),
        _product(2, "Sulfasalazine 500mg"),
        _product(3, "Paracetamol 500mg", generic="Paracetamol"),
    ]
    warnings = local.screen(patient, products)
    assert warnings == [
        "ALLERGY ALERT: Patient is allergic to components in Brufen 400mg",
        "ALLERGY ALERT: Patient is allergic to components in Sulfasalazine 500mg",
    ]


def test_allergy_warning_once_per_product_even_with_several_matches():
    patient = _patient(allergies=["amox", "amoxicillin"])
    warnings = local.screen(patient, [_product(1, "Amoxicillin 250mg", generic="Amoxicillin")])
    assert warnings == ["ALLERGY ALERT: Patient is allergic to components in Amoxicillin 250mg"]


def test_penicillin_allergy_does_not_flag_amoxicillin():
    # Substring matching has no drug-class knowledge
    patient = _patient(allergies=["Penicillin"])
    product = _product(1, "Amoxicillin 250mg", generic="Amoxicillin")
    assert local.screen(patient, [product]) == []


def test_condition_rules():
    patient = _patient(conditions=["Type 2 Diabetes", "High Blood Pressure"])
    products = [
        _product(1, "Prednisone Steroid 5mg"),
        _product(2, "Deltacortril", generic="Prednisolone"),
        _product(3, "Ibuprofen 200mg"),
    ]
    assert local.screen(patient, products) == [
        "DIABETES ALERT: Prednisone Steroid 5mg may affect blood sugar levels",
        "DIABETES ALERT: Deltacortril may affect blood sugar levels",
        "HYPERTENSION ALERT: Ibuprofen 200mg may increase blood pressure",
    ]


def test_bleeding_risk_needs_two_products_and_fires_once():
    patient = _patient()
    assert local.screen(patient, [_product(1, "Warfarin Ibuprofen combo")]) == []

    products = [
        _product(1, "Warfarin 5mg"),
        _product(2, "Aspirin 75mg"),
        _product(3, "Ibuprofen 400mg"),
        _product(4, "Diclofenac 50mg"),
    ]
    assert local.screen(patient, products) == [BLEEDING_RISK_WARNING]


def test_warning_order_is_allergy_condition_interaction_then_advisory():
    patient = _patient(allergies=["warfarin"], conditions=["hypertension"])
    products = [_product(1, "Warfarin 5mg"), _product(2, "Ibuprofen 400mg")]
    screener = SafetyScreener(advisor=lambda p, prods: "- Monitor INR closely")
    assert screener.screen(patient, products) == [
        "ALLERGY ALERT: Patient is allergic to components in Warfarin 5mg",
        "HYPERTENSION ALERT: Ibuprofen 400mg may increase blood pressure",
        BLEEDING_RISK_WARNING,
        "Monitor INR closely",
    ]


def test_advisory_failure_keeps_local_warnings():
    def broken(patient, products):
        raise TimeoutError("advisory timed out")

    patient = _patient(allergies=["aspirin"])
    screener = SafetyScreener(advisor=broken)
    assert screener.screen(patient, [_product(1, "Aspirin 75mg")]) == [
        "ALLERGY ALERT: Patient is allergic to components in Aspirin 75mg"
    ]


def test_advisory_none_reply_adds_nothing():
    screener = SafetyScreener(advisor=lambda p, prods: None)
    assert screener.screen(_patient(), [_product(1, "Paracetamol")]) == []


def test_parse_advisory_reply_strips_bullets_and_caps_at_five():
    reply = "\n".join([
        "- first",
        "* second",
        "• third",
        "",
        "   ",
        "fourth",
        "-- fifth",
        "- sixth",
    ])
    assert parse_advisory_reply(reply) == ["first", "second", "third", "fourth", "fifth"]
    assert parse_advisory_reply("") == []
    assert parse_advisory_reply(None) == []


def test_parse_advisory_reply_strips_numbering():
    reply = "1. Check renal function\n2) Avoid alcohol\n10. Monitor INR weekly\n5mg dose is the usual maximum"
    assert parse_advisory_reply(reply) == [
        "Check renal function",
        "Avoid alcohol",
        "Monitor INR weekly",
        "5mg dose is the usual maximum",
    ]
