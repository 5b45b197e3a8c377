"""
Column names of the `sales_data` table and the public names they map to.

The table keeps the imported column names (with spaces), so every
reference to a column goes through these constants.
"""

from __future__ import annotations

from typing import Dict, Tuple

TRANSACTION_ID = "Transaction ID"
DATE = "Date"
CUSTOMER_ID = "Customer ID"
CUSTOMER_NAME = "Customer Name"
PHONE_NUMBER = "Phone Number"
GENDER = "Gender"
AGE = "Age"
CUSTOMER_REGION = "Customer Region"
PRODUCT_ID = "Product ID"
PRODUCT_NAME = "Product Name"
BRAND = "Brand"
PRODUCT_CATEGORY = "Product Category"
QUANTITY = "Quantity"
TOTAL_AMOUNT = "Total Amount"
EMPLOYEE_NAME = "Employee Name"
PAYMENT_METHOD = "Payment Method"
TAGS = "Tags"

# Public sort keys accepted from callers -> underlying column.
SORT_FIELDS: Dict[str, str] = {
    "id": TRANSACTION_ID,
    "date": DATE,
    "quantity": QUANTITY,
    "customerName": CUSTOMER_NAME,
    "customerId": CUSTOMER_ID,
    "totalAmount": TOTAL_AMOUNT,
    "age": AGE,
    "gender": GENDER,
    "productCategory": PRODUCT_CATEGORY,
    "customerRegion": CUSTOMER_REGION,
    "productId": PRODUCT_ID,
    "employeeName": EMPLOYEE_NAME,
}

# Text columns matched by free-text search (case-insensitive substring).
SEARCH_TEXT_FIELDS: Tuple[str, ...] = (
    CUSTOMER_NAME,
    CUSTOMER_ID,
    PRODUCT_ID,
    EMPLOYEE_NAME,
    PRODUCT_NAME,
    BRAND,
)

# Numeric columns matched by exact equality when the search token has digits.
SEARCH_NUMERIC_FIELDS: Tuple[str, ...] = (
    TRANSACTION_ID,
    AGE,
    QUANTITY,
    TOTAL_AMOUNT,
    PHONE_NUMBER,
)


def resolve_sort_field(sort_by: str | None) -> str:
    """Map a public sort key to its column; unknown keys fall back to the identifier."""
    return SORT_FIELDS.get(sort_by or "", TRANSACTION_ID)


__all__ = [
    "TRANSACTION_ID",
    "DATE",
    "CUSTOMER_ID",
    "CUSTOMER_NAME",
    "PHONE_NUMBER",
    "GENDER",
    "AGE",
    "CUSTOMER_REGION",
    "PRODUCT_ID",
    "PRODUCT_NAME",
    "BRAND",
    "PRODUCT_CATEGORY",
    "QUANTITY",
    "TOTAL_AMOUNT",
    "EMPLOYEE_NAME",
    "PAYMENT_METHOD",
    "TAGS",
    "SORT_FIELDS",
    "SEARCH_TEXT_FIELDS",
    "SEARCH_NUMERIC_FIELDS",
    "resolve_sort_field",
]
