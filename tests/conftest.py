import pytest

from facturx.invoice import Invoice
from facturx.samples import reconciled_invoice, reference_invoice


@pytest.fixture
def reference() -> Invoice:
    return reference_invoice()


@pytest.fixture
def reconciled() -> Invoice:
    return reconciled_invoice()
