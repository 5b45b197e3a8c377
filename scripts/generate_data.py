"""
Data generation and loading script for SalesView.

Implements deterministic pseudo-random sales rows, CSV emission, and Postgres
COPY loading into the flat `sales_data` table, followed by ANALYZE so the
approximate row count is available right away.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
from datetime import date, timedelta
from pathlib import Path

import psycopg
import typer
from psycopg import sql

from salesview.infrastructure.db_factory import build_dsn

app = typer.Typer(help="Generate synthetic sales data and load into Postgres (CSV + COPY).")

COLUMNS = [
    "Transaction ID",
    "Date",
    "Customer ID",
    "Customer Name",
    "Phone Number",
    "Gender",
    "Age",
    "Customer Region",
    "Customer Type",
    "Product ID",
    "Product Name",
    "Brand",
    "Product Category",
    "Quantity",
    "Price per Unit",
    "Discount Percentage",
    "Total Amount",
    "Final Amount",
    "Payment Method",
    "Order Status",
    "Delivery Type",
    "Store ID",
    "Store Location",
    "Salesperson ID",
    "Employee Name",
    "Tags",
]

REGIONS = ["North", "South", "East", "West", "Central"]
GENDERS = ["Male", "Female", "Other"]
CUSTOMER_TYPES = ["New", "Returning", "Loyal"]
CATEGORIES = {
    "Electronics": ["Headphones", "Smartphone", "Laptop", "Smartwatch"],
    "Clothing": ["Jacket", "T-Shirt", "Jeans", "Sneakers"],
    "Beauty": ["Perfume", "Lipstick", "Face Cream", "Shampoo"],
    "Home": ["Lamp", "Blender", "Cookware Set", "Bedsheet"],
}
BRANDS = ["Acme", "Nimbus", "Orion", "Vertex", "Zephyr"]
PAYMENT_METHODS = ["Cash", "Credit Card", "Debit Card", "UPI", "Wallet"]
ORDER_STATUSES = ["Completed", "Pending", "Cancelled", "Returned"]
DELIVERY_TYPES = ["Standard", "Express", "Store Pickup"]
CITIES = ["Mumbai", "Delhi", "Bengaluru", "Chennai", "Kolkata", "Pune"]
TAGS = ["accessories", "casual", "fashion", "formal", "gadgets", "organic", "portable", "wireless"]
FIRST_NAMES = ["Aarav", "Diya", "Kabir", "Meera", "Rohan", "Saanvi", "Vihaan", "Anaya"]
LAST_NAMES = ["Sharma", "Patel", "Iyer", "Gupta", "Reddy", "Khan", "Das", "Mehta"]

START_DATE = date(2021, 1, 1)
DATE_SPAN_DAYS = 3 * 365


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _generate_row(rng: random.Random, transaction_id: int) -> list[str]:
    category = rng.choice(list(CATEGORIES))
    quantity = rng.randint(1, 10)
    price = round(rng.uniform(5, 2_000), 2)
    discount = rng.choice([0, 5, 10, 15, 20])
    total = round(quantity * price, 2)
    final = round(total * (100 - discount) / 100, 2)
    customer = rng.randint(1, 50_000)
    return [
        str(transaction_id),
        (START_DATE + timedelta(days=rng.randrange(DATE_SPAN_DAYS))).isoformat(),
        f"CUST-{customer:05d}",
        f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
        str(rng.randint(6_000_000_000, 9_999_999_999)),
        rng.choice(GENDERS),
        str(rng.randint(18, 70)),
        rng.choice(REGIONS),
        rng.choice(CUSTOMER_TYPES),
        f"PROD-{rng.randint(1, 2_000):04d}",
        rng.choice(CATEGORIES[category]),
        rng.choice(BRANDS),
        category,
        str(quantity),
        f"{price:.2f}",
        f"{discount:.2f}",
        f"{total:.2f}",
        f"{final:.2f}",
        rng.choice(PAYMENT_METHODS),
        rng.choice(ORDER_STATUSES),
        rng.choice(DELIVERY_TYPES),
        f"ST-{rng.randint(1, 60):03d}",
        rng.choice(CITIES),
        f"SP-{rng.randint(1, 300):04d}",
        f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
        ",".join(sorted(rng.sample(TAGS, rng.randint(1, 3)))),
    ]


def _generate_rows_csv(
    csv_path: Path, rows: int, batch_size: int, seed: int, start_id: int = 1
) -> None:
    rng = random.Random(seed)

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(COLUMNS)

        buffer: list[list[str]] = []
        for i in range(rows):
            buffer.append(_generate_row(rng, start_id + i))
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)


def _copy_into_db(dsn: str, csv_path: Path, table: str = "sales_data", truncate: bool = False) -> int:
    """COPY the CSV into `table` and refresh its statistics. Returns the table's row count."""
    target = sql.Identifier("public", table)
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            if truncate:
                cur.execute(sql.SQL("TRUNCATE TABLE {}").format(target))
            copy_stmt = sql.SQL("COPY {} ({}) FROM STDIN WITH (FORMAT csv, HEADER TRUE)").format(
                target, sql.SQL(", ").join(sql.Identifier(column) for column in COLUMNS)
            )
            with cur.copy(copy_stmt) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            conn.commit()

        conn.autocommit = True
        with conn.cursor() as cur:
            cur.execute(sql.SQL("ANALYZE {}").format(target))
            cur.execute(sql.SQL("SELECT count(*) FROM {}").format(target))
            return cur.fetchone()[0]


@app.command()
def main(
    rows: int = typer.Option(
        100_000,
        "--rows",
        "-r",
        help="Number of rows to generate.",
    ),
    batch_size: int = typer.Option(
        10_000,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    start_id: int = typer.Option(
        1,
        "--start-id",
        help="First Transaction ID; ids are consecutive from here.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    table: str = typer.Option(
        "sales_data",
        "--table",
        help="Target table.",
    ),
    truncate: bool = typer.Option(
        False,
        "--truncate",
        help="Empty the table before loading.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate synthetic sales data and optionally load it into Postgres using COPY.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="salesview_csv_"))
        csv_path = tmpdir / "sales.csv"

    typer.echo(f"Generating {rows:,} rows -> {csv_path} (batch={batch_size}, seed={seed})")
    _generate_rows_csv(csv_path, rows=rows, batch_size=batch_size, seed=seed, start_id=start_id)
    gen_duration = time.perf_counter() - start
    typer.echo(
        f"CSV generation completed in {gen_duration:.2f}s ({rows / gen_duration:,.0f} rows/s)"
    )

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    typer.echo(f"Loading CSV into {table} via COPY...")
    total_rows = _copy_into_db(_build_dsn(dsn), csv_path, table=table, truncate=truncate)
    load_duration = time.perf_counter() - load_start

    total_duration = time.perf_counter() - start
    typer.echo(
        f"Load completed in {load_duration:.2f}s ({total_rows:,} rows in table). "
        f"Total time {total_duration:.2f}s."
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
