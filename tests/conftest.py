import io
import os

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

# Settings has required fields; give unit tests a complete environment.
TEST_PEPPER = "MDEyMzQ1Njc4OWFiY2RlZjAxMjM0NTY3ODlhYmNkZWY="

os.environ.setdefault("PROVIDER_API_KEY", "test-key")
os.environ.setdefault("PROVIDER_BASE_URL", "https://provider.test/v1")
os.environ.setdefault("PROVIDER_WORKFLOW_ID", "wf-test")
os.environ.setdefault("PII_HASH_PEPPER", TEST_PEPPER)


@pytest.fixture()
def pepper() -> str:
    return TEST_PEPPER


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def payslip_payload() -> dict:
    """Provider payslip result that reconciles exactly."""
    return {
        "schemaName": "uk_payslip",
        "payDate": "2024-05-31",
        "period": {"start": "2024-05-01", "end": "2024-05-31"},
        "employer": {"name": "  Acme Widgets Ltd "},
        "employee": {"nationalInsuranceNumber": "QQ123456C", "taxCode": "1257L"},
        "totals": {
            "gross": "£3,000.00",
            "incomeTax": 400.00,
            "nationalInsurance": 200.00,
            "pension": 150.00,
            "studentLoan": 50.00,
            "net": 2200.00,
        },
    }


@pytest.fixture()
def statement_payload() -> dict:
    """Provider bank statement result whose balances reconcile."""
    return {
        "schemaName": "uk_bank_statement",
        "institution": {"name": "MONZO BANK LTD"},
        "account": {"number": "12345678", "sortCode": "04-00-04"},
        "period": {"start": "2024-05-01", "end": "2024-05-31"},
        "balances": {"opening": "1000.00", "closing": "1450.00"},
        "currency": "GBP",
        "transactions": [
            {"date": "2024-05-01", "description": "ACME SALARY", "amount": 2000.00},
            {"date": "03/05/2024", "description": "TESCO STORES 123", "amount": -50.00},
            {"date": "2024-05-10", "description": "Rent May", "amount": -1200.00},
            {"date": "2024-05-12", "description": "Transfer to savings pot", "debit": "300.00"},
        ],
    }
