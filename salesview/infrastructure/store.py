"""
PostgreSQL implementation of the `SalesStore` protocol.

Predicates are compiled to SQL with `psycopg.sql` so column names (which
contain spaces) are always quoted identifiers and values always travel as bind
parameters. Every call borrows one pooled connection, opens a transaction and
sets `statement_timeout` locally to the call's budget.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple

import psycopg
from psycopg import sql
from psycopg.errors import QueryCanceled
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from salesview.domain import fields as columns
from salesview.domain.models import SortDirection
from salesview.exceptions import QueryTimeoutError, StoreQueryError, StoreUnavailableError
from salesview.query.predicates import Condition, Op, Predicate
from salesview.query.store import Row, SortSpec
from salesview.utils.logging import get_logger

log = get_logger(__name__)

_COMPARISONS = {
    Op.EQ: "=",
    Op.GT: ">",
    Op.GTE: ">=",
    Op.LT: "<",
    Op.LTE: "<=",
}


def like_pattern(text: str) -> str:
    """Literal substring pattern for ILIKE: wildcards in `text` match themselves."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _compile_condition(condition: Condition) -> Tuple[sql.Composable, List[Any]]:
    column = sql.Identifier(condition.field)
    if condition.op is Op.IN:
        return sql.SQL("{} = ANY(%s)").format(column), [list(condition.value)]
    if condition.op is Op.CONTAINS:
        return sql.SQL("{} ILIKE %s").format(column), [like_pattern(str(condition.value))]
    operator = sql.SQL(_COMPARISONS[condition.op])
    return sql.SQL("{} {} %s").format(column, operator), [condition.value]


def compile_predicate(predicate: Predicate) -> Tuple[sql.Composable, List[Any]]:
    """
    Compile a predicate tree into a WHERE clause body and its parameters.

    The universal predicate compiles to `TRUE`.
    """
    if predicate.is_universal:
        return sql.SQL("TRUE"), []

    parts: List[sql.Composable] = []
    params: List[Any] = []
    for term in predicate.terms:
        if isinstance(term, Predicate):
            clause, term_params = compile_predicate(term)
        else:
            clause, term_params = _compile_condition(term)
        parts.append(sql.SQL("({})").format(clause) if isinstance(term, Predicate) else clause)
        params.extend(term_params)

    joiner = sql.SQL(" OR ") if predicate.mode == "or" else sql.SQL(" AND ")
    return joiner.join(parts), params


def compile_sort(sort: SortSpec) -> sql.Composable:
    return sql.SQL(", ").join(
        sql.SQL("{} {}").format(
            sql.Identifier(column),
            sql.SQL("ASC" if direction is SortDirection.ASC else "DESC"),
        )
        for column, direction in sort
    )


@contextmanager
def _translate_errors(operation: str, timeout_ms: int) -> Iterator[None]:
    """Map driver errors onto the SalesView hierarchy."""
    try:
        yield
    except QueryCanceled as exc:
        raise QueryTimeoutError(f"{operation} exceeded {timeout_ms} ms") from exc
    except (psycopg.OperationalError, psycopg.InterfaceError, PoolTimeout) as exc:
        raise StoreUnavailableError(f"{operation} failed: store unavailable") from exc
    except psycopg.Error as exc:
        raise StoreQueryError(f"{operation} failed: {exc}") from exc


class PostgresSalesStore:
    """
    Read-only access to the flat `sales_data` table.

    Parameters
    ----------
    pool : AsyncConnectionPool
        Open connection pool.
    table : str
        Table holding one row per transaction.
    estimate_timeout_ms : int
        Budget of `estimated_count`, which takes no explicit timeout.
    """

    def __init__(
        self,
        pool: AsyncConnectionPool,
        table: str = "sales_data",
        estimate_timeout_ms: int = 15_000,
    ) -> None:
        self.pool = pool
        self.table = table
        self.estimate_timeout_ms = estimate_timeout_ms
        self._table = sql.Identifier(table)

    async def _fetch(
        self, operation: str, query: sql.Composable, params: Sequence[Any], timeout_ms: int
    ) -> List[Row]:
        with _translate_errors(operation, timeout_ms):
            async with self.pool.connection() as conn:
                async with conn.transaction():
                    await conn.execute(
                        sql.SQL("SET LOCAL statement_timeout = {}").format(
                            sql.Literal(int(timeout_ms))
                        )
                    )
                    async with conn.cursor(row_factory=dict_row) as cur:
                        await cur.execute(query, params)
                        return await cur.fetchall()

    async def find(
        self,
        predicate: Predicate,
        *,
        sort: SortSpec,
        skip: int = 0,
        limit: Optional[int] = None,
        fields: Optional[Sequence[str]] = None,
        timeout_ms: int,
    ) -> List[Row]:
        where, params = compile_predicate(predicate)
        selected = (
            sql.SQL(", ").join(sql.Identifier(column) for column in fields)
            if fields
            else sql.SQL("*")
        )
        query = sql.SQL("SELECT {} FROM {} WHERE {} ORDER BY {} OFFSET %s").format(
            selected, self._table, where, compile_sort(sort)
        )
        params = [*params, skip]
        if limit is not None:
            query = sql.SQL("{} LIMIT %s").format(query)
            params.append(limit)
        return await self._fetch("find", query, params, timeout_ms)

    async def count(self, predicate: Predicate, *, timeout_ms: int) -> int:
        where, params = compile_predicate(predicate)
        query = sql.SQL("SELECT count(*) AS total FROM {} WHERE {}").format(self._table, where)
        rows = await self._fetch("count", query, params, timeout_ms)
        return int(rows[0]["total"])

    async def estimated_count(self) -> int:
        """
        Approximate row count from catalog statistics; never scans the table.

        An empty relation file means zero rows. When the table has data but no
        statistics yet (`reltuples = -1` on PostgreSQL 14+, `relpages = 0` on
        older servers) the planner's row estimate is used instead.
        """
        query = sql.SQL(
            "SELECT c.reltuples::bigint AS estimate, c.relpages AS pages, "
            "pg_relation_size(c.oid) AS bytes FROM pg_class c "
            "WHERE c.relname = %s AND c.relkind = 'r' AND pg_table_is_visible(c.oid)"
        )
        rows = await self._fetch("estimated_count", query, [self.table], self.estimate_timeout_ms)
        if rows:
            stats = rows[0]
            if int(stats["bytes"]) == 0:
                return 0
            if int(stats["estimate"]) >= 0 and int(stats["pages"]) > 0:
                return int(stats["estimate"])
        log.debug("No table statistics, using planner estimate", extra={"table": self.table})
        return await self._planner_estimate()

    async def _planner_estimate(self) -> int:
        query = sql.SQL("EXPLAIN (FORMAT JSON) SELECT 1 FROM {}").format(self._table)
        rows = await self._fetch("estimated_count", query, [], self.estimate_timeout_ms)
        plan = rows[0]["QUERY PLAN"]
        return int(plan[0]["Plan"]["Plan Rows"])

    async def window(
        self,
        predicate: Predicate,
        *,
        sort: SortDirection,
        skip: int,
        limit: int,
        projection: Mapping[str, str],
        timeout_ms: int,
    ) -> List[Row]:
        where, params = compile_predicate(predicate)
        selected = sql.SQL(", ").join(
            sql.SQL("{} AS {}").format(sql.Identifier(column), sql.Identifier(alias))
            for alias, column in projection.items()
        )
        query = sql.SQL("SELECT {} FROM {} WHERE {} ORDER BY {} OFFSET %s LIMIT %s").format(
            selected,
            self._table,
            where,
            compile_sort([(columns.TRANSACTION_ID, sort)]),
        )
        return await self._fetch("window", query, [*params, skip, limit], timeout_ms)

    async def distinct(self, field: str, *, timeout_ms: int) -> List[Any]:
        column = sql.Identifier(field)
        query = sql.SQL(
            "SELECT DISTINCT {} AS value FROM {} WHERE {} IS NOT NULL ORDER BY 1"
        ).format(column, self._table, column)
        rows = await self._fetch("distinct", query, [], timeout_ms)
        return [row["value"] for row in rows]

    async def min_max(self, field: str, *, timeout_ms: int) -> Tuple[Any, Any]:
        column = sql.Identifier(field)
        query = sql.SQL("SELECT min({}) AS low, max({}) AS high FROM {}").format(
            column, column, self._table
        )
        rows = await self._fetch("min_max", query, [], timeout_ms)
        if not rows:
            return None, None
        return rows[0]["low"], rows[0]["high"]

    async def sample(self, field: str, *, size: int, timeout_ms: int) -> List[Any]:
        column = sql.Identifier(field)
        query = sql.SQL(
            "SELECT {} AS value FROM {} WHERE {} IS NOT NULL AND {}::text <> '' "
            "ORDER BY random() LIMIT %s"
        ).format(column, self._table, column, column)
        rows = await self._fetch("sample", query, [size], timeout_ms)
        return [row["value"] for row in rows]


__all__ = ["PostgresSalesStore", "compile_predicate", "compile_sort", "like_pattern"]
