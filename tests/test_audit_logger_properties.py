"""
Property-based tests for the audit logger.
"""

import json
from io import StringIO

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from pong0.audit_logger import AuditLogger
from pong0.enums import LogLevel
from pong0.exceptions import NetworkError


SENSITIVE_PATTERNS = [
    'token', 'secret', 'password', 'api_key', 'apikey',
    'auth', 'authorization', 'credential', 'private_key',
]


@st.composite
def log_level_strategy(draw) -> LogLevel:
    """Generate valid LogLevel values."""
    return draw(st.sampled_from(list(LogLevel)))


@st.composite
def component_name_strategy(draw) -> str:
    """Generate valid component names."""
    return draw(st.text(
        alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-"),
        min_size=1,
        max_size=50,
    ))


@st.composite
def message_strategy(draw) -> str:
    """Generate valid log messages."""
    return draw(st.text(
        alphabet=st.characters(
            whitelist_categories=('L', 'N', 'P', 'S', 'Z'),
            blacklist_characters='\x00\n\r',
        ),
        min_size=1,
        max_size=200,
    ))


@st.composite
def non_sensitive_key_strategy(draw) -> str:
    """
    Generate keys that are NOT sensitive.

    Every sensitive pattern contains an "a", "e" or "o", so keys drawn
    without those letters can never match one.
    """
    return draw(st.text(
        alphabet=st.sampled_from("bcdfghijklmnpqrstuvwxyz_"),
        min_size=1,
        max_size=20,
    ))


@st.composite
def sensitive_key_strategy(draw) -> str:
    """Generate keys that ARE sensitive."""
    base = draw(st.sampled_from(SENSITIVE_PATTERNS))
    prefix = draw(st.sampled_from(['', 'my_', 'server_', 'X-']))
    suffix = draw(st.sampled_from(['', '_value', '_header', '_1']))
    return f"{prefix}{base}{suffix}"


@st.composite
def simple_value_strategy(draw):
    """Generate simple JSON-serializable values."""
    return draw(st.one_of(
        st.text(min_size=0, max_size=50),
        st.integers(min_value=-1000, max_value=1000),
        st.booleans(),
        st.none(),
    ))


@st.composite
def non_sensitive_data_strategy(draw) -> dict:
    """Generate data dictionaries without sensitive keys."""
    return draw(st.dictionaries(
        non_sensitive_key_strategy(),
        simple_value_strategy(),
        max_size=5,
    ))


class TestOutputFormats:
    """Each output format writes the expected number of lines."""

    @given(
        level=log_level_strategy(),
        component=component_name_strategy(),
        message=message_strategy(),
        data=non_sensitive_data_strategy(),
    )
    @settings(max_examples=100)
    def test_dual_format_produces_both_outputs(
        self,
        level: LogLevel,
        component: str,
        message: str,
        data: dict,
    ) -> None:
        """
        *For any* log entry when output_format is "both", the logger SHALL
        produce a JSON line followed by a human-readable text line.
        """
        output = StringIO()
        logger = AuditLogger(output_format="both", output_stream=output)

        logger.log(level, component, message, data)

        lines = output.getvalue().rstrip('\n').split('\n')
        assert len(lines) == 2

        parsed = json.loads(lines[0])
        assert parsed["level"] == level.value
        assert parsed["component"] == component
        assert parsed["message"] == message
        assert parsed["data"] == data
        assert "timestamp" in parsed

        assert level.value.upper() in lines[1]
        assert f"[{component}]" in lines[1]
        assert message in lines[1]

    @given(
        level=log_level_strategy(),
        component=component_name_strategy(),
        message=message_strategy(),
    )
    @settings(max_examples=50)
    def test_json_only_format(self, level: LogLevel, component: str, message: str) -> None:
        output = StringIO()
        AuditLogger(output_format="json", output_stream=output).log(level, component, message)

        lines = [l for l in output.getvalue().rstrip('\n').split('\n') if l]
        assert len(lines) == 1
        assert json.loads(lines[0])["message"] == message

    def test_unicode_written_unescaped(self) -> None:
        output = StringIO()
        AuditLogger(output_format="json", output_stream=output).log(
            LogLevel.INFO, "ExtractionPipeline", "Extracted ip_location", {"value": "洛杉矶"}
        )
        assert "洛杉矶" in output.getvalue()

    def test_invalid_format_rejected(self) -> None:
        with pytest.raises(ValueError):
            AuditLogger(output_format="xml")


class TestLevelFiltering:

    @given(level=log_level_strategy(), min_level=log_level_strategy())
    def test_entries_below_minimum_are_dropped(self, level: LogLevel, min_level: LogLevel) -> None:
        """
        *For any* pair of levels, an entry SHALL be recorded if and only if
        its level ranks at or above the logger's minimum.
        """
        output = StringIO()
        logger = AuditLogger(output_stream=output, min_level=min_level)

        entry = logger.log(level, "Test", "message")

        if level.rank >= min_level.rank:
            assert entry is not None
            assert len(logger.entries) == 1
        else:
            assert entry is None
            assert logger.entries == []
            assert output.getvalue() == ""

    def test_clear_entries(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        logger.log(LogLevel.INFO, "Test", "one")
        logger.clear_entries()
        assert logger.entries == []


class TestSensitiveDataMasking:

    @given(key=sensitive_key_strategy(), value=st.text(min_size=1, max_size=50))
    @settings(max_examples=100)
    def test_sensitive_values_masked(self, key: str, value: str) -> None:
        """
        *For any* data key containing a sensitive pattern, the logged value
        SHALL be replaced by the mask in the entry and in the output.
        """
        output = StringIO()
        logger = AuditLogger(output_format="json", output_stream=output)

        entry = logger.log(LogLevel.INFO, "Server", "Request", {key: value, "nested": {key: value}})

        assert entry.data[key] == AuditLogger.MASK_VALUE
        assert entry.data["nested"][key] == AuditLogger.MASK_VALUE
        parsed = json.loads(output.getvalue())
        assert parsed["data"][key] == AuditLogger.MASK_VALUE

    def test_sensitive_patterns_need_excluded_letters(self) -> None:
        """Every sensitive pattern SHALL contain a letter the safe keys never use."""
        for pattern in SENSITIVE_PATTERNS:
            assert set(pattern) & set("aeo")
        assert set(SENSITIVE_PATTERNS) == AuditLogger.SENSITIVE_KEYS

    @given(data=non_sensitive_data_strategy())
    @settings(max_examples=100)
    def test_non_sensitive_values_preserved(self, data: dict) -> None:
        logger = AuditLogger(output_stream=StringIO())
        assert logger.mask_sensitive_data(data) == data

    def test_lists_of_dicts_masked(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        masked = logger.mask_sensitive_data({"headers": [{"Authorization": "Bearer abc"}, "plain"]})
        assert masked == {"headers": [{"Authorization": AuditLogger.MASK_VALUE}, "plain"]}


class TestErrorLogging:

    def test_error_context_added(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        error = NetworkError(code="timeout", message="Request timed out")

        entry = logger.log_error("QueryOrchestrator", "Step 1 failed", error, {"step": 1})

        assert entry.level == LogLevel.ERROR
        assert entry.data == {
            "step": 1,
            "error_message": "Request timed out",
            "error_type": "NetworkError",
            "error_code": "timeout",
        }

    def test_plain_exception_has_no_code(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        entry = logger.log_error("Test", "failed", ValueError("bad"))
        assert "error_code" not in entry.data
        assert entry.data["error_type"] == "ValueError"

    def test_additional_data_not_mutated(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        context = {"step": 2}
        logger.log_error("Test", "failed", ValueError("bad"), context)
        assert context == {"step": 2}
