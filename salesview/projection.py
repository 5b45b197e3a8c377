"""
Mapping from stored rows to the public record shape.

The response field names are the API contract; the column names behind them
can change without callers noticing. The aggregated-window strategy pushes the
same mapping into the store so deep pages come back already projected.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from salesview.domain import fields
from salesview.domain.models import ProjectedRecord

RESPONSE_FIELDS: Dict[str, str] = {
    "id": fields.TRANSACTION_ID,
    "date": fields.DATE,
    "customerId": fields.CUSTOMER_ID,
    "customerName": fields.CUSTOMER_NAME,
    "phoneNumber": fields.PHONE_NUMBER,
    "gender": fields.GENDER,
    "age": fields.AGE,
    "customerRegion": fields.CUSTOMER_REGION,
    "productCategory": fields.PRODUCT_CATEGORY,
    "quantity": fields.QUANTITY,
    "totalAmount": fields.TOTAL_AMOUNT,
    "productId": fields.PRODUCT_ID,
    "employeeName": fields.EMPLOYEE_NAME,
    "paymentMethod": fields.PAYMENT_METHOD,
    "tags": fields.TAGS,
}


def project_record(row: Mapping[str, Any]) -> ProjectedRecord:
    """Map one stored row to the response shape; absent columns become None."""
    return ProjectedRecord(**{name: row.get(column) for name, column in RESPONSE_FIELDS.items()})


def normalize_projected(row: Mapping[str, Any]) -> ProjectedRecord:
    """Pin a row the store already projected to the response field set and order."""
    return ProjectedRecord(**{name: row.get(name) for name in RESPONSE_FIELDS})


__all__ = ["RESPONSE_FIELDS", "project_record", "normalize_projected"]
