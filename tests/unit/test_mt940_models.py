"""Tests for MT940 balances, references and transactions."""

from datetime import date
from decimal import Decimal

import pytest

from fincodec.core.errors import ConstraintError, GrammarError
from fincodec.core.mt940 import (
    MAX_REFERENCE_LENGTH,
    Balance,
    CreditDebit,
    Reference,
    Transaction,
    format_amount,
    resolve_valuta,
    to_amount,
)


def make_transaction(**changes: object) -> Transaction:
    """Create a test transaction."""
    data: dict[str, object] = {
        "date": date(2024, 5, 2),
        "amount": "150,00",
        "credit_debit": CreditDebit.DEBIT,
        "reference": Reference(transaction_code="NTRF", reference="NONREF"),
    }
    data.update(changes)
    return Transaction(**data)  # type: ignore[arg-type]


class TestAmounts:
    """Tests for amount helpers."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("1234,56", Decimal("1234.56")),
            ("12,345", Decimal("12.35")),
            ("7,", Decimal("7.00")),
            (1.005, Decimal("1.01")),
            (10, Decimal("10.00")),
            (Decimal("0.125"), Decimal("0.13")),
        ],
    )
    def test_to_amount(self, value: object, expected: Decimal) -> None:
        """Test rounding half-up to cents."""
        assert to_amount(value) == expected  # type: ignore[arg-type]

    def test_invalid_amount(self) -> None:
        """Test non-numeric text."""
        with pytest.raises(GrammarError) as exc_info:
            to_amount("12a")
        assert exc_info.value.code == "FC-GRM-005"

    def test_format_amount(self) -> None:
        """Test comma decimal output."""
        assert format_amount(Decimal("1234.5")) == "1234,50"
        assert format_amount(Decimal("0")) == "0,00"


class TestBalance:
    """Tests for Balance."""

    def test_parse(self) -> None:
        """Test balance grammar."""
        balance = Balance.parse("C240501EUR1234,56")
        assert balance.credit_debit is CreditDebit.CREDIT
        assert balance.date == date(2024, 5, 1)
        assert balance.currency == "EUR"
        assert balance.amount == Decimal("1234.56")

    @pytest.mark.parametrize("raw", ["C240501EUR1234,56", "D991231USD0,00", "C000101CHF5,10"])
    def test_round_trip(self, raw: str) -> None:
        """Test canonical balances serialize to their source."""
        assert Balance.parse(raw).to_mt940() == raw

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("C240501EUR12,5", "C240501EUR12,50"),
            ("C240501EUR1234,5", "C240501EUR1234,50"),
            ("C240501EUR123", "C240501EUR123,00"),
        ],
    )
    def test_non_canonical_amount(self, raw: str, expected: str) -> None:
        """Test amounts are re-rendered with two decimals."""
        assert Balance.parse(raw).to_mt940() == expected

    def test_signed_amount(self) -> None:
        """Test debit balances are negative."""
        balance = Balance.parse("D240501EUR10,00")
        assert balance.signed_amount == Decimal("-10.00")
        assert balance.is_debit()
        assert not balance.is_credit()

    @pytest.mark.parametrize("raw", ["X240501EUR1,00", "C2405EUR1,00", "C240501eur1,00", ""])
    def test_invalid_grammar(self, raw: str) -> None:
        """Test malformed balances."""
        with pytest.raises(GrammarError) as exc_info:
            Balance.parse(raw)
        assert exc_info.value.code == "FC-GRM-005"

    def test_invalid_date(self) -> None:
        """Test impossible dates."""
        with pytest.raises(GrammarError) as exc_info:
            Balance.parse("C241301EUR1,00")
        assert exc_info.value.code == "FC-GRM-007"

    def test_amount_rounded_on_construction(self) -> None:
        """Test constructor rounding."""
        balance = Balance(credit_debit=CreditDebit.CREDIT, date=date(2024, 1, 1), amount="2,005")
        assert balance.amount == Decimal("2.01")
        assert str(balance) == "C240101EUR2,01"


class TestReference:
    """Tests for Reference."""

    def test_to_mt940(self) -> None:
        """Test code, reference and bank reference."""
        assert Reference(transaction_code="NTRF", reference="NONREF").to_mt940() == "NTRFNONREF"
        reference = Reference(transaction_code="NTRF", reference="X", bank_reference="B1")
        assert reference.to_mt940() == "NTRFX//B1"

    def test_max_length(self) -> None:
        """Test exactly 16 characters are allowed."""
        reference = Reference(transaction_code="NTRF", reference="A" * 12)
        assert len(reference.to_mt940()) == MAX_REFERENCE_LENGTH

    def test_too_long(self) -> None:
        """Test code plus reference longer than 16 characters."""
        with pytest.raises(ConstraintError) as exc_info:
            Reference(transaction_code="NTRF", reference="A" * 13)
        assert exc_info.value.code == "FC-CON-001"
        assert exc_info.value.issue.context["length"] == 17

    def test_bank_reference_not_counted(self) -> None:
        """Test the bank reference is outside the limit."""
        reference = Reference(transaction_code="NTRF", reference="A" * 12, bank_reference="B" * 16)
        assert reference.bank_reference == "B" * 16


class TestResolveValuta:
    """Tests for resolve_valuta."""

    def test_same_year(self) -> None:
        """Test valuta in the booking year."""
        assert resolve_valuta("0502", date(2024, 5, 2)) == date(2024, 5, 2)

    def test_previous_year(self) -> None:
        """Test valuta at year end for a January booking."""
        assert resolve_valuta("1231", date(2025, 1, 2)) == date(2024, 12, 31)

    def test_next_year(self) -> None:
        """Test valuta in January for a December booking."""
        assert resolve_valuta("0105", date(2024, 12, 30)) == date(2025, 1, 5)

    def test_leap_day(self) -> None:
        """Test 29 February only exists in leap years."""
        assert resolve_valuta("0229", date(2024, 3, 1)) == date(2024, 2, 29)

    @pytest.mark.parametrize("mmdd", ["0230", "1301", "12", "ab01"])
    def test_invalid(self, mmdd: str) -> None:
        """Test impossible or malformed valuta dates."""
        with pytest.raises(GrammarError) as exc_info:
            resolve_valuta(mmdd, date(2024, 1, 1))
        assert exc_info.value.code == "FC-GRM-007"


class TestTransaction:
    """Tests for Transaction."""

    def test_string_dates(self) -> None:
        """Test YYMMDD booking date and MMDD valuta."""
        transaction = make_transaction(date="240502", valuta_date="0502")
        assert transaction.date == date(2024, 5, 2)
        assert transaction.valuta_date == date(2024, 5, 2)

    def test_signed_amount(self) -> None:
        """Test direction."""
        transaction = make_transaction()
        assert transaction.signed_amount == Decimal("-150.00")
        assert transaction.sign == "-"
        assert transaction.is_debit()
        assert make_transaction(credit_debit=CreditDebit.CREDIT).sign == "+"

    def test_to_mt940_lines(self) -> None:
        """Test :61: and :86: lines."""
        transaction = make_transaction(valuta_date=date(2024, 5, 3), purpose="Miete Mai")
        assert transaction.to_mt940_lines() == [
            ":61:2405020503D150,00NTRFNONREF",
            ":86:Miete Mai",
        ]

    def test_without_valuta_and_purpose(self) -> None:
        """Test optional parts are left out; :86: is always written."""
        assert make_transaction().to_mt940() == ":61:240502D150,00NTRFNONREF\r\n:86:"

    def test_purpose_segments(self) -> None:
        """Test purpose is split into 27 character segments."""
        transaction = make_transaction(purpose="A" * 27 + "B" * 27 + "C" * 6)
        lines = transaction.to_mt940_lines()
        assert lines[1:] == [":86:" + "A" * 27, "?20" + "B" * 27, "?21" + "C" * 6]

    def test_purpose_up_to_tag_29(self) -> None:
        """Test ten continuation segments are allowed."""
        transaction = make_transaction(purpose="x" * 27 * 11)
        assert transaction.to_mt940_lines()[-1].startswith("?29")

    def test_purpose_beyond_tag_29(self) -> None:
        """Test eleven continuation segments overflow."""
        transaction = make_transaction(purpose="x" * (27 * 11 + 1))
        with pytest.raises(ConstraintError) as exc_info:
            transaction.to_mt940_lines()
        assert exc_info.value.code == "FC-CON-002"

    def test_invalid_booking_date(self) -> None:
        """Test impossible booking dates."""
        with pytest.raises(GrammarError):
            make_transaction(date="241340")
