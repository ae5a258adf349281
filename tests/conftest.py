import pytest

from helpers import ev
from loanfacts.schemas import DocumentMetadata
from loanfacts.weights import WeightPolicy


@pytest.fixture(scope="function")
def policy():
    return WeightPolicy()


@pytest.fixture(scope="function")
def document():
    return DocumentMetadata(
        document_id="doc-1",
        source_filename="doc-1.pdf",
        source_system="fixture-source",
        source_doc_id="src-1",
    )


@pytest.fixture(scope="function")
def paystub_facts():
    """Paystub: employee block address (employee at 3) and employer header address (employee at 0)."""
    return [
        {
            "fact_type": "address",
            "value": {"street1": "175 13th Street", "city": "Washington", "state": "DC", "zip": "20013"},
            "evidence": [ev("paystub_employee_info_block", quote="175 13th Street Washington DC 20013")],
            "names_in_proximity": [
                {
                    "full_name": "John Homeowner",
                    "proximity_score": 3,
                    "evidence": [ev("paystub_employee_info_block", quote="Employee: John Homeowner")],
                }
            ],
        },
        {
            "fact_type": "address",
            "value": {"street1": "1 Corporate Plaza", "city": "Arlington", "state": "VA", "zip": "22201"},
            "evidence": [ev("paystub_header_employer_block", quote="ACME Corp 1 Corporate Plaza")],
            "names_in_proximity": [
                {
                    "full_name": "John Homeowner",
                    "proximity_score": 0,
                    "evidence": [ev("paystub_employee_info_block", quote="Employee: John Homeowner")],
                }
            ],
        },
    ]


@pytest.fixture(scope="function")
def joint_1040_facts():
    """Joint 1040: one SSN per spouse, shared home address, wages closest to John."""
    def john(score):
        return {
            "full_name": "John Homeowner",
            "proximity_score": score,
            "evidence": [ev("tax_return_1040_taxpayer_ssn", quote="Your first name John Homeowner")],
        }

    def mary(score):
        return {
            "full_name": "Mary Homeowner",
            "proximity_score": score,
            "evidence": [ev("tax_return_1040_taxpayer_ssn", quote="Spouse first name Mary Homeowner")],
        }

    return [
        {
            "fact_type": "ssn",
            "value": "999-40-5000",
            "evidence": [ev("tax_return_1040_taxpayer_ssn", quote="Your SSN 999-40-5000")],
            "names_in_proximity": [john(3)],
        },
        {
            "fact_type": "ssn",
            "value": "500-22-2000",
            "evidence": [ev("tax_return_1040_taxpayer_ssn", quote="Spouse SSN 500-22-2000")],
            "names_in_proximity": [mary(3)],
        },
        {
            "fact_type": "address",
            "value": {"street1": "175 13th Street", "city": "Washington", "state": "DC", "zip": "20013"},
            "evidence": [ev("tax_return_1040_taxpayer_address_block", quote="175 13th Street")],
            "names_in_proximity": [john(3), mary(3)],
        },
        {
            "fact_type": "income",
            "value": {
                "amount": 72000.0,
                "currency": "USD",
                "frequency": "annual",
                "period": {"year": 2023},
                "employer": "ACME Corp",
                "source_type": "w2",
            },
            "evidence": [ev("w2_wages_boxes_annual", page=2, quote="Wages 72,000")],
            "names_in_proximity": [john(2), mary(1)],
        },
    ]
