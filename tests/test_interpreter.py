"""
Tests for the command interpreter and screen rendering.
"""

from datetime import datetime, timezone

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from as400_gateway.claims import ClaimGenerator
from as400_gateway.errors import AS400InvalidCommandError
from as400_gateway.interpreter import (
    CommandInterpreter,
    CommandType,
    Operator,
    resolve_field,
)
from as400_gateway.screen import SCREEN_WIDTH, center_text, render_screen

REFERENCE_TIME = datetime(2025, 10, 31, tzinfo=timezone.utc)
SCREEN_TIME = datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def claims():
    return ClaimGenerator("t1", REFERENCE_TIME).generate_claims(100)


@pytest.fixture
def interpreter(claims):
    return CommandInterpreter(claims, processing_delay_ms=0, now=lambda: SCREEN_TIME)


class TestParsing:
    """Test command parsing."""

    def test_parse_select(self, interpreter):
        parsed = interpreter.parse_command("SELECT * FROM CLAIMS")

        assert parsed.command is CommandType.SELECT
        assert parsed.table == "CLAIMS"
        assert parsed.condition is None

    def test_parse_select_with_where(self, interpreter):
        parsed = interpreter.parse_command("select * from claims where amount > 10000;")

        assert parsed.condition.field == "amount"
        assert parsed.condition.operator is Operator.GT
        assert parsed.condition.value == "10000"

    def test_parse_quoted_value(self, interpreter):
        parsed = interpreter.parse_command("SELECT * FROM CLAIMS WHERE location='Portland, OR'")

        assert parsed.condition.value == "Portland, OR"

    @pytest.mark.parametrize("command, expected", [
        ("INSERT INTO CLAIMS VALUES (1)", CommandType.INSERT),
        ("COUNT", CommandType.COUNT),
        ("count", CommandType.COUNT),
        ("  count ; ", CommandType.COUNT),
        ("SHOW TABLES", CommandType.SHOW_TABLES),
        ("  show   tables ; ", CommandType.SHOW_TABLES),
    ])
    def test_parse_other_commands(self, interpreter, command, expected):
        assert interpreter.parse_command(command).command is expected

    @pytest.mark.parametrize("command", [
        "",
        "   ",
        "DELETE FROM CLAIMS",
        "UPDATE CLAIMS SET amount=1",
        "SHOW",
        "COUNT FROM POLICIES",
        "COUNT WHERE damageType=Fire",
        "SELECT * FROM POLICIES",
        "SELECT id FROM CLAIMS",
        "SELECT * FROM CLAIMS WHERE",
        "SELECT * FROM CLAIMS WHERE invalid syntax",
        "SELECT * FROM CLAIMS WHERE amount>abc",
        "SELECT * FROM CLAIMS WHERE amount>=100",
        "SELECT * FROM CLAIMS WHERE damageType=Fire AND amount>100",
        "SELECT * FROM CLAIMS WHERE damageType=Fire OR damageType=Flood",
        "SELECT * FROM CLAIMS WHERE colour=red",
        "SELECT * FROM CLAIMS WHERE damageType=''",
    ])
    def test_invalid_commands(self, interpreter, command):
        with pytest.raises(AS400InvalidCommandError) as exc_info:
            interpreter.parse_command(command)

        assert not exc_info.value.recoverable

    def test_unsupported_table_message(self, interpreter):
        with pytest.raises(AS400InvalidCommandError, match="Only CLAIMS table is supported"):
            interpreter.parse_command("SELECT * FROM INVALID_TABLE")

    @pytest.mark.parametrize("name, expected", [
        ("damageType", "damage_type"),
        ("DAMAGE_TYPE", "damage_type"),
        ("policyNumber", "policy_number"),
        ("claimantName", "claimant_name"),
        ("Amount", "amount"),
        ("nope", None),
    ])
    def test_resolve_field(self, name, expected):
        assert resolve_field(name) == expected


class TestExecution:
    """Test command execution against the dataset."""

    def test_select_all(self, interpreter, claims):
        result = interpreter.interpret("SELECT * FROM CLAIMS")

        assert result.title == "CLAIM QUERY RESULTS"
        assert [row["id"] for row in result.rows] == [c.id for c in claims]

    def test_filter_by_damage_type_case_insensitive(self, interpreter, claims):
        result = interpreter.interpret("SELECT * FROM CLAIMS WHERE damageType=fire")
        expected = [c for c in claims if c.damage_type == "Fire"]

        assert len(result.rows) == len(expected)
        assert all(row["damage_type"] == "Fire" for row in result.rows)

    def test_filter_amount_greater_than(self, interpreter, claims):
        result = interpreter.interpret("SELECT * FROM CLAIMS WHERE amount>10000")

        assert all(row["amount"] > 10000 for row in result.rows)
        assert len(result.rows) == sum(1 for c in claims if c.amount > 10000)

    def test_filter_amount_less_than(self, interpreter, claims):
        result = interpreter.interpret("SELECT * FROM CLAIMS WHERE amount<10000")

        assert all(row["amount"] < 10000 for row in result.rows)
        assert len(result.rows) == sum(1 for c in claims if c.amount < 10000)

    def test_numeric_operator_on_text_field_never_matches(self, interpreter):
        result = interpreter.interpret("SELECT * FROM CLAIMS WHERE location>5")

        assert result.rows == []

    def test_equality_on_numeric_field(self, interpreter, claims):
        target = claims[0]
        result = interpreter.interpret(f"SELECT * FROM CLAIMS WHERE amount={target.amount}")

        assert target.id in [row["id"] for row in result.rows]

    def test_no_match_returns_empty(self, interpreter):
        result = interpreter.interpret("SELECT * FROM CLAIMS WHERE damageType=Earthquake")

        assert result.rows == []
        assert "Records Found: 0" in result.screen_buffer

    def test_filter_by_quoted_id(self, interpreter, claims):
        target = claims[5]
        result = interpreter.interpret(f'SELECT * FROM CLAIMS WHERE id="{target.id}"')

        assert [row["id"] for row in result.rows] == [target.id]

    def test_insert_does_not_mutate(self, interpreter, claims):
        result = interpreter.interpret("INSERT INTO CLAIMS VALUES ('x')")

        assert result.rows == [{"success": True, "message": "Record inserted"}]
        assert result.title == "INSERT SUCCESSFUL"
        assert len(interpreter.claims) == len(claims)

    def test_count(self, interpreter):
        result = interpreter.interpret("COUNT")

        assert result.rows == [{"count": 100}]
        assert "Records Found: 100" in result.screen_buffer

    def test_show_tables(self, interpreter):
        result = interpreter.interpret("SHOW TABLES")

        assert result.rows == [
            {"name": "CLAIMS", "records": 100},
            {"name": "POLICIES", "records": 250},
            {"name": "CUSTOMERS", "records": 500},
        ]

    @pytest.mark.asyncio
    async def test_execute_applies_delay(self, claims):
        interpreter = CommandInterpreter(claims, processing_delay_ms=10)

        result = await interpreter.execute("COUNT")
        assert result.rows == [{"count": 100}]

    @settings(max_examples=50, deadline=None)
    @given(bound=st.integers(min_value=0, max_value=60000))
    def test_numeric_filters_partition_dataset(self, bound):
        claims = ClaimGenerator("t1", REFERENCE_TIME).generate_claims(100)
        interpreter = CommandInterpreter(claims, processing_delay_ms=0)

        above = interpreter.interpret(f"SELECT * FROM CLAIMS WHERE amount>{bound}").rows
        below = interpreter.interpret(f"SELECT * FROM CLAIMS WHERE amount<{bound}").rows
        equal = interpreter.interpret(f"SELECT * FROM CLAIMS WHERE amount={bound}").rows

        assert len(above) + len(below) + len(equal) == len(claims)


class TestScreen:
    """Test TN5250 screen rendering."""

    def test_layout(self):
        screen = render_screen("COUNT QUERY", 100, SCREEN_TIME)
        lines = screen.split("\n")

        assert lines[0] == "=" * SCREEN_WIDTH
        assert lines[1].strip() == "IBM AS/400 SYSTEM"
        assert lines[2].strip() == "COUNT QUERY"
        assert "  Session: TN5250-MCP-001" in lines
        assert "  User: MCPUSER" in lines
        assert f"  Time: {SCREEN_TIME.isoformat()}" in lines
        assert "  Records Found: 100" in lines
        assert "  Status: SUCCESS" in lines
        assert "  F3=Exit  F5=Refresh  F12=Cancel" in lines
        assert lines[-1] == "=" * SCREEN_WIDTH

    def test_reproducible(self):
        assert render_screen("AVAILABLE TABLES", 3, SCREEN_TIME) == \
            render_screen("AVAILABLE TABLES", 3, SCREEN_TIME)

    def test_lines_fit_width(self):
        screen = render_screen("CLAIM QUERY RESULTS", 12, SCREEN_TIME)

        assert all(len(line) <= SCREEN_WIDTH for line in screen.split("\n"))

    def test_center_text(self):
        assert center_text("ab", 10) == "    ab"
        assert center_text("x" * 100, 10) == "x" * 100
