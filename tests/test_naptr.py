"""Tests for rewrite rules, NAPTR record validation and number normalisation.

Coverage target: callrouting/enumservice/naptr.py, callrouting/enumservice/base.py
"""

from unittest.mock import AsyncMock, MagicMock, patch

import dns.exception
import dns.resolver
import pytest

from callrouting.enumservice import EnumRule, NAPTRRecord, RewriteRule, normalize_number
from callrouting.enumservice.base import digits_only
from callrouting.enumservice.naptr import DnspythonResolver, select_rules
from callrouting.exceptions import RewriteRuleError
from tests.fixtures.dns import naptr


# =============================================================================
# Normalisation
# =============================================================================


class TestNormalizeNumber:
    """Test dialled-number normalisation."""

    @pytest.mark.parametrize("raw,expected", [
        ("1-2.3(4)", "1234"),
        ("+1 (510) 858-0271", "+15108580271"),
        ("214+4324", "2144324"),
        ("  +44 20 7946 0000 ", "+442079460000"),
        ("", ""),
        ("+", ""),
        ("abc", ""),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_number(raw) == expected

    def test_digits_only(self):
        assert digits_only("sip:+1234@host") == "1234"


# =============================================================================
# Rewrite rules
# =============================================================================


class TestRewriteRule:
    """Test RFC 3402 substitution expressions."""

    def test_whole_number_capture(self):
        """Test the usual ENUM capture-all rule."""
        rule = RewriteRule.parse(r"!(^.*$)!sip:\1@ut.cw-ngv.com!")
        assert rule.apply("+15108580271") == "sip:+15108580271@ut.cw-ngv.com"

    def test_partial_match_substitutes_in_place(self):
        """Test only the matched span is replaced."""
        rule = RewriteRule.parse("!^0!44!")
        assert rule.apply("02079460000") == "442079460000"

    def test_first_match_only(self):
        """Test only the first match is substituted."""
        rule = RewriteRule.parse("!1!x!")
        assert rule.apply("1121") == "x121"

    def test_no_match(self):
        """Test a non-matching expression returns None."""
        rule = RewriteRule.parse("!^0!44!")
        assert rule.apply("15108580271") is None

    def test_alternative_delimiter(self):
        """Test any non-digit, non-backslash delimiter."""
        rule = RewriteRule.parse(r"#^\+1(.*)$#sip:\1@us.example#")
        assert rule.apply("+15108580271") == "sip:5108580271@us.example"

    def test_escaped_delimiter(self):
        """Test an escaped delimiter is literal within a field."""
        rule = RewriteRule.parse(r"/^(.*)$/sip:\1@host\/path/")
        assert rule.apply("1234") == "sip:1234@host/path"

    def test_flags_ignored(self):
        """Test the trailing flags field is accepted and ignored."""
        rule = RewriteRule.parse(r"!^(.*)$!\1!i")
        assert rule.apply("1234") == "1234"

    def test_unmatched_group_expands_empty(self):
        """Test an optional group that did not participate expands to ''."""
        rule = RewriteRule.parse(r"!^(\+1)?(\d+)$!\1\2!")
        assert rule.apply("5108580271") == "5108580271"

    def test_literal_escape_in_replacement(self):
        """Test an escaped non-digit is copied literally."""
        rule = RewriteRule.parse(r"!^(.*)$!\1\.x!")
        assert rule.apply("12") == "12.x"

    @pytest.mark.parametrize("expression", [
        "",
        "!",
        "!(^.*$)!\\1!!",     # too many fields
        "!(^.*$)!\\1",       # too few fields
        "!!x!",              # empty match expression
        "!(^.*$!\\1!",       # invalid regex
        "!(^.*$)!\\2!",      # backreference beyond group count
        "1^1x1",             # digit delimiter
        "\\^\\x\\",          # backslash delimiter
        "x!a!b!",            # leading text before the delimiter
    ])
    def test_invalid(self, expression):
        with pytest.raises(RewriteRuleError):
            RewriteRule.parse(expression)

    def test_lenient_extra_fields(self):
        rule = RewriteRule.parse("!(^.*$)!\\1!!", strict=False)
        assert rule.apply("+15108580272") == "+15108580272"

    @pytest.mark.parametrize("expression", ["!(^.*$)!\\1", "!(^.*$!\\1!!", "x!a!b!c!"])
    def test_lenient_still_validates(self, expression):
        with pytest.raises(RewriteRuleError):
            RewriteRule.parse(expression, strict=False)


# =============================================================================
# NAPTR records
# =============================================================================


class TestEnumRule:
    """Test NAPTR record qualification."""

    def test_terminal_rule(self):
        rule = EnumRule.from_record(naptr(r"!(^.*$)!sip:\1@h!"))
        assert rule is not None
        assert rule.terminal is True

    def test_non_terminal_rule(self):
        rule = EnumRule.from_record(naptr(r"!(^.*$)!\1!", flags=""))
        assert rule.terminal is False

    @pytest.mark.parametrize("service", ["E2U+SIP", "e2u+pstn:sip", "E2U+pstn:SIP"])
    def test_accepted_services(self, service):
        assert EnumRule.from_record(naptr(r"!(^.*$)!sip:\1@h!", service=service)) is not None

    @pytest.mark.parametrize("service", ["e2u+tel", "e2u+email:mailto", "sip+e2u", ""])
    def test_ignored_services(self, service):
        assert EnumRule.from_record(naptr(r"!(^.*$)!sip:\1@h!", service=service)) is None

    @pytest.mark.parametrize("flags", ["s", "a", "p", "uu"])
    def test_invalid_flags(self, flags):
        assert EnumRule.from_record(naptr(r"!(^.*$)!sip:\1@h!", flags=flags)) is None

    def test_upper_case_flag(self):
        assert EnumRule.from_record(naptr(r"!(^.*$)!sip:\1@h!", flags="U")).terminal is True

    def test_bad_regexp(self):
        assert EnumRule.from_record(naptr("!(^.*$!x!")) is None

    def test_order_out_of_range(self):
        assert EnumRule.from_record(naptr(r"!(^.*$)!sip:\1@h!", order=70000)) is None

    def test_select_rules_sorted_and_stable(self):
        """Test rules sort by (order, preference) and keep reply order on ties."""
        records = [
            naptr("!^(.*)$!sip:c@h!", order=2, preference=1),
            naptr("!^(.*)$!sip:a@h!", order=1, preference=2),
            naptr("!^(.*)$!sip:b@h!", order=1, preference=1),
            naptr("!^(.*)$!sip:b2@h!", order=1, preference=1),
            naptr("!^(.*)$!sip:tel@h!", service="e2u+tel", order=0, preference=0),
        ]
        rules = select_rules(records)

        assert [r.rewrite.apply("1") for r in rules] == ["sip:b@h", "sip:b2@h", "sip:a@h", "sip:c@h"]


# =============================================================================
# dnspython adapter
# =============================================================================


class TestDnspythonResolver:
    """Test the dnspython adapter with a patched resolver."""

    def _rdata(self, order, preference, flags, service, regexp):
        rdata = MagicMock()
        rdata.order = order
        rdata.preference = preference
        rdata.flags = flags
        rdata.service = service
        rdata.regexp = regexp
        rdata.replacement.to_text.return_value = "."
        return rdata

    @pytest.mark.asyncio
    async def test_query_converts_records(self):
        """Test answer rdata is converted to NAPTRRecord values."""
        answer = [self._rdata(10, 20, b"u", b"E2U+sip", b"!^(.*)$!sip:\\1@h!")]
        instance = MagicMock()
        instance.resolve = AsyncMock(return_value=answer)

        with patch("dns.asyncresolver.Resolver", return_value=instance):
            records = await DnspythonResolver(timeout=1.5).query_naptr("4.3.2.1.e164.arpa", "10.0.0.53")

        assert records == [
            NAPTRRecord(order=10, preference=20, flags="u", service="E2U+sip",
                        regexp="!^(.*)$!sip:\\1@h!", replacement=".")
        ]
        assert instance.nameservers == ["10.0.0.53"]
        assert instance.lifetime == 1.5
        instance.resolve.assert_awaited_once_with("4.3.2.1.e164.arpa", "NAPTR")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        dns.resolver.NXDOMAIN(),
        dns.resolver.NoAnswer(),
        dns.exception.Timeout(),
        dns.resolver.NoNameservers(),
    ])
    async def test_query_failures_are_empty(self, error):
        """Test every DNS failure comes back as no records."""
        instance = MagicMock()
        instance.resolve = AsyncMock(side_effect=error)

        with patch("dns.asyncresolver.Resolver", return_value=instance):
            records = await DnspythonResolver().query_naptr("4.3.2.1.e164.arpa", "127.0.0.1")

        assert records == []
