"""Shared test fixtures for WishfulSearch."""

from collections.abc import Generator, Sequence
from typing import Any

import pytest

from wishfulsearch import (
    ColumnSpec,
    ExhaustiveEnum,
    ForeignKeyRef,
    MinMaxEnum,
    SchemaSet,
    TableSpec,
    WishfulSearch,
)
from wishfulsearch.core.types import ChatMessage

PARIS_IN_MARCH_SQL = (
    "SELECT flight_number, departure_date FROM flights "
    "WHERE destination = 'Paris' AND departure_date BETWEEN '2024-03-01' AND '2024-03-31' "
    "ORDER BY departure_date"
)


def sql_response(sql: str, explanation: str = "Flights matching the question.") -> str:
    """Model output with one ```sql fence followed by an explanation."""
    return f"```sql\n{sql}\n```\n{explanation}"


class ScriptedLLM:
    """LLM call that replays canned responses and records every conversation.

    Responses that are exceptions are raised instead of returned.
    """

    def __init__(self, responses: Sequence[str | Exception | None]) -> None:
        self.responses = list(responses)
        self.calls: list[list[ChatMessage]] = []

    def __call__(self, messages: Sequence[ChatMessage]) -> str | None:
        self.calls.append(list(messages))
        if not self.responses:
            raise AssertionError("ScriptedLLM ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.calls)


FLIGHTS: list[dict[str, Any]] = [
    {
        "id": "f1",
        "flight_number": "AF1234",
        "origin": "New York",
        "destination": "Paris",
        "departure_date": "2024-03-05",
        "price": 120.0,
        "hash": "a1b2",
        "segments": [
            {"carrier": "AF", "duration_minutes": 420},
            {"carrier": "BA", "duration_minutes": 60},
        ],
    },
    {
        "id": "f2",
        "flight_number": "AF5678",
        "origin": "Boston",
        "destination": "Paris",
        "departure_date": "2024-03-20",
        "price": 95.5,
        "hash": "c3d4",
        "segments": [{"carrier": "AF", "duration_minutes": 400}],
    },
    {
        "id": "f3",
        "flight_number": "AF9012",
        "origin": "Chicago",
        "destination": "Paris",
        "departure_date": "2024-04-02",
        "price": 300,
        "hash": "e5f6",
        "segments": [
            {"carrier": "AF", "duration_minutes": 480},
            {"carrier": "LH", "duration_minutes": 90},
        ],
    },
    {
        "id": "f4",
        "flight_number": "BA0042",
        "origin": "New York",
        "destination": "London",
        "departure_date": "2024-03-10",
        "price": None,
        "hash": "g7h8",
        "segments": [{"carrier": "BA", "duration_minutes": 410}],
    },
]


def flights_to_rows(objects: Sequence[dict[str, Any]]) -> list[list[list[Any]]]:
    """Flatten flight objects into rows for the flights and segments tables."""
    flight_rows: list[list[Any]] = []
    segment_rows: list[list[Any]] = []
    for flight in objects:
        flight_rows.append(
            [
                flight["id"],
                flight["flight_number"],
                flight["origin"],
                flight["destination"],
                flight["departure_date"],
                flight["price"],
                flight["hash"],
            ]
        )
        for segment in flight.get("segments") or []:
            segment_rows.append(
                [flight["id"], segment["carrier"], segment["duration_minutes"]]
            )
    return [flight_rows, segment_rows]


def build_flights_schema() -> SchemaSet:
    """Flights (main) with one hidden bookkeeping column, plus a segments child."""
    return SchemaSet.from_tables(
        [
            TableSpec(
                name="flights",
                columns=[
                    ColumnSpec(name="id", sql_type="TEXT", visible_to_llm=False),
                    ColumnSpec(name="flight_number", sql_type="TEXT", description="IATA flight"),
                    ColumnSpec(name="origin", sql_type="TEXT", description="Departure city"),
                    ColumnSpec(
                        name="destination",
                        sql_type="TEXT",
                        description="Arrival city",
                        dynamic_enum=ExhaustiveEnum(),
                    ),
                    ColumnSpec(
                        name="departure_date",
                        sql_type="TEXT",
                        description="ISO-8601 date",
                        dynamic_enum=MinMaxEnum(format="DATE"),
                    ),
                    ColumnSpec(
                        name="price",
                        sql_type="REAL",
                        description="Fare in USD",
                        dynamic_enum=MinMaxEnum(format="NUMBER"),
                    ),
                    ColumnSpec(
                        name="internal_hash",
                        sql_type="TEXT",
                        description="Deduplication checksum",
                        visible_to_llm=False,
                        example_values=["deadbeef"],
                    ),
                ],
            ),
            TableSpec(
                name="segments",
                columns=[
                    ColumnSpec(
                        name="flight_id",
                        sql_type="TEXT",
                        foreign_key=ForeignKeyRef(table="flights", column="id"),
                    ),
                    ColumnSpec(
                        name="carrier",
                        sql_type="TEXT",
                        description="Operating airline code",
                        dynamic_enum=ExhaustiveEnum(top_k=2),
                    ),
                    ColumnSpec(name="duration_minutes", sql_type="INTEGER"),
                ],
            ),
        ]
    )


@pytest.fixture
def flights() -> list[dict[str, Any]]:
    """Example flight objects."""
    return [dict(flight) for flight in FLIGHTS]


@pytest.fixture
def flights_schema() -> SchemaSet:
    """Schema set for the flight objects."""
    return build_flights_schema()


@pytest.fixture
def ws(
    flights_schema: SchemaSet, flights: list[dict[str, Any]]
) -> Generator[WishfulSearch, None, None]:
    """WishfulSearch over SQLite in-memory, loaded with the example flights."""
    search = WishfulSearch(flights_schema)
    search.insert(flights, flights_to_rows)
    yield search
    search.close()


@pytest.fixture
def empty_ws(flights_schema: SchemaSet) -> Generator[WishfulSearch, None, None]:
    """WishfulSearch over SQLite in-memory with the flight tables and no rows."""
    search = WishfulSearch(flights_schema)
    yield search
    search.close()


@pytest.fixture
def scripted_llm() -> type[ScriptedLLM]:
    """Factory for scripted LLM calls: ``scripted_llm([response, ...])``."""
    return ScriptedLLM


@pytest.fixture
def respond() -> Any:
    """Builds model output with one ```sql fence: ``respond(sql, explanation)``."""
    return sql_response


@pytest.fixture
def object_to_rows() -> Any:
    """Row mapping for the example flights."""
    return flights_to_rows


@pytest.fixture
def paris_sql() -> str:
    """Correct SQL for "flights to Paris in March"."""
    return PARIS_IN_MARCH_SQL
